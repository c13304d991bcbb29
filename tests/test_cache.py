import asyncio

import pytest
from unittest.mock import AsyncMock

from tokenscope.cache import TTLCache


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.mark.asyncio
async def test_second_call_within_ttl_hits_cache():
    clock = FakeClock()
    cache = TTLCache(30.0, clock=clock)
    fetcher = AsyncMock(return_value={"symbol": "wNEAR"})

    first = await cache.get_or_fetch("wrap.near", fetcher)
    clock.advance(29.9)
    second = await cache.get_or_fetch("wrap.near", fetcher)

    assert first == second == {"symbol": "wNEAR"}
    fetcher.assert_awaited_once_with("wrap.near")


@pytest.mark.asyncio
async def test_call_after_ttl_refetches_and_overwrites():
    clock = FakeClock()
    cache = TTLCache(30.0, clock=clock)
    fetcher = AsyncMock(side_effect=["v1", "v2"])

    assert await cache.get_or_fetch("k", fetcher) == "v1"
    assert await cache.get_or_fetch("k", fetcher) == "v1"
    clock.advance(30.0)
    assert await cache.get_or_fetch("k", fetcher) == "v2"

    assert fetcher.await_count == 2
    assert cache.size() == 1
    assert cache.get("k") == "v2"


@pytest.mark.asyncio
async def test_failed_fetch_returns_none_and_keeps_prior_entry():
    clock = FakeClock()
    cache = TTLCache(30.0, clock=clock)

    await cache.get_or_fetch("k", AsyncMock(return_value="old"))
    clock.advance(45)
    result = await cache.get_or_fetch("k", AsyncMock(return_value=None))

    assert result is None
    assert cache.size() == 1
    assert cache._entries["k"].value == "old"


@pytest.mark.asyncio
async def test_absent_value_is_not_cached():
    cache = TTLCache(30.0, clock=FakeClock())
    fetcher = AsyncMock(return_value=None)

    assert await cache.get_or_fetch("missing", fetcher) is None
    assert await cache.get_or_fetch("missing", fetcher) is None
    assert fetcher.await_count == 2
    assert cache.size() == 0


@pytest.mark.asyncio
async def test_concurrent_misses_both_fetch_without_single_flight():
    cache = TTLCache(30.0)
    calls = []

    async def fetcher(key):
        calls.append(key)
        n = len(calls)
        await asyncio.sleep(0.01 * n)
        return f"value-{n}"

    results = await asyncio.gather(
        cache.get_or_fetch("k", fetcher),
        cache.get_or_fetch("k", fetcher),
    )

    assert calls == ["k", "k"]
    assert set(results) == {"value-1", "value-2"}
    # last write wins
    assert cache.get("k") == "value-2"


@pytest.mark.asyncio
async def test_single_flight_shares_one_fetch():
    cache = TTLCache(30.0, single_flight=True)
    calls = []

    async def fetcher(key):
        calls.append(key)
        await asyncio.sleep(0.01)
        return "shared"

    results = await asyncio.gather(*(cache.get_or_fetch("k", fetcher) for _ in range(4)))

    assert calls == ["k"]
    assert results == ["shared"] * 4


@pytest.mark.asyncio
async def test_single_flight_propagates_fetch_errors_to_waiters():
    cache = TTLCache(30.0, single_flight=True)

    async def fetcher(key):
        await asyncio.sleep(0.01)
        raise RuntimeError("boom")

    results = await asyncio.gather(
        cache.get_or_fetch("k", fetcher),
        cache.get_or_fetch("k", fetcher),
        return_exceptions=True,
    )

    assert all(isinstance(r, RuntimeError) for r in results)
    assert cache.size() == 0
    assert cache._inflight == {}


@pytest.mark.asyncio
async def test_single_flight_survives_first_caller_cancelling():
    cache = TTLCache(30.0, single_flight=True)
    calls = []

    async def fetcher(key):
        calls.append(key)
        await asyncio.sleep(0.05)
        return "v"

    first = asyncio.ensure_future(cache.get_or_fetch("k", fetcher))
    await asyncio.sleep(0.01)
    second = asyncio.ensure_future(cache.get_or_fetch("k", fetcher))
    await asyncio.sleep(0.01)
    first.cancel()

    assert await second == "v"
    with pytest.raises(asyncio.CancelledError):
        await first
    assert calls == ["k"]
    assert cache.get("k") == "v"
    assert cache._inflight == {}


@pytest.mark.asyncio
async def test_single_flight_fetch_completes_after_every_caller_leaves():
    cache = TTLCache(30.0, single_flight=True)

    async def fetcher(key):
        await asyncio.sleep(0.03)
        return "late"

    caller = asyncio.ensure_future(cache.get_or_fetch("k", fetcher))
    await asyncio.sleep(0.01)
    caller.cancel()
    await asyncio.sleep(0.05)

    assert caller.cancelled()
    assert cache.get("k") == "late"


def test_clear_drops_all_entries():
    cache = TTLCache(30.0)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.clear()
    assert cache.size() == 0
    assert cache.get("a") is None
