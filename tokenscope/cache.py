import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    fetched_at: float


class TTLCache(Generic[K, V]):
    """In-memory read-through cache with lazy expiry.

    Entries are never evicted proactively and there is no size bound; a stale
    entry simply gets overwritten by the next successful fetch. Without
    ``single_flight`` two concurrent misses on the same key both call the
    fetcher and the last write wins.
    """

    def __init__(
        self,
        ttl_seconds: float = 30.0,
        *,
        single_flight: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.single_flight = single_flight
        self._clock = clock
        self._entries: Dict[K, CacheEntry[V]] = {}
        self._inflight: Dict[K, "asyncio.Task[Optional[V]]"] = {}

    def get(self, key: K) -> Optional[V]:
        """Return the fresh value for ``key`` or None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self.ttl_seconds:
            return None
        return entry.value

    def set(self, key: K, value: V) -> None:
        self._entries[key] = CacheEntry(value=value, fetched_at=self._clock())

    async def get_or_fetch(
        self,
        key: K,
        fetcher: Callable[[K], Awaitable[Optional[V]]],
    ) -> Optional[V]:
        cached = self.get(key)
        if cached is not None:
            return cached

        if not self.single_flight:
            return await self._fetch(key, fetcher)

        task = self._inflight.get(key)
        if task is None:
            # The shared fetch runs in its own task so no single caller owns it
            task = asyncio.ensure_future(self._fetch(key, fetcher))
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._finish_inflight(key, done))
        return await asyncio.shield(task)

    def _finish_inflight(self, key: K, task: "asyncio.Task[Optional[V]]") -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Every waiter may have gone away; mark the outcome as retrieved
            task.exception()

    async def _fetch(
        self,
        key: K,
        fetcher: Callable[[K], Awaitable[Optional[V]]],
    ) -> Optional[V]:
        value = await fetcher(key)
        if value is not None:
            self.set(key, value)
        return value

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)
