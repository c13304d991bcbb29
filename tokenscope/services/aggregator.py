"""
Token Aggregator

Fans out metadata + balance fetches for an account's candidate tokens,
merges them into ``Token`` records, and filters them through the scam
classifier.

Fetches run in fixed windows: every id in a window is fetched concurrently
and the next window is only issued once the whole window has resolved, so at
most ``concurrency_window`` fetch pairs are ever outstanding. A slow member
holds up its window; that is accepted in exchange for a hard bound and
predictable timing.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..cache import TTLCache
from ..errors import UpstreamError
from ..providers.base import ChainAdapter
from .classifier import ScamClassifier
from .models import Token, TokenBalance, TokenHolding, TokenMetadata
from .normalizer import TOKEN_DISPLAY_PLACES, format_balance

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY_WINDOW = 5


def iter_windows(items: Sequence[str], size: int) -> Iterator[Sequence[str]]:
    """Consecutive slices of ``size``; the last one may be shorter."""
    if size < 1:
        raise ValueError(f"window size must be at least 1, got {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]


class TokenAggregator:
    """Per-chain aggregation pipeline.

    Usage:
        aggregator = TokenAggregator(adapter, TTLCache(30), ScamClassifier())
        tokens = await aggregator.aggregate("alice.near", ["wrap.near", ...])
    """

    def __init__(
        self,
        adapter: ChainAdapter,
        metadata_cache: TTLCache[str, TokenMetadata],
        classifier: ScamClassifier,
        *,
        concurrency_window: int = DEFAULT_CONCURRENCY_WINDOW,
        is_allow_listed: Optional[Callable[[str], bool]] = None,
        display_places: int = TOKEN_DISPLAY_PLACES,
    ) -> None:
        if concurrency_window < 1:
            raise ValueError(f"concurrency_window must be at least 1, got {concurrency_window}")
        self.adapter = adapter
        self.metadata_cache = metadata_cache
        self.classifier = classifier
        self.concurrency_window = concurrency_window
        self.is_allow_listed = is_allow_listed or adapter.config.is_verified
        self.display_places = display_places

    async def aggregate(
        self,
        account: str,
        candidate_ids: Iterable[str],
        concurrency_window: Optional[int] = None,
    ) -> List[Token]:
        ids = list(candidate_ids)
        window_size = self.concurrency_window if concurrency_window is None else concurrency_window

        tokens: List[Token] = []
        for index, window in enumerate(iter_windows(ids, window_size)):
            pairs = [asyncio.ensure_future(self._fetch_pair(account, token_id)) for token_id in window]
            # An abandoned request stops issuing windows, but the one in flight
            # still completes so its metadata lands in the cache
            results = await asyncio.shield(asyncio.gather(*pairs))
            for token_id, (metadata, balance) in zip(window, results):
                token = self._merge(token_id, metadata, balance)
                if token is not None:
                    tokens.append(token)
            logger.debug("window %d for %s resolved (%d ids)", index, account, len(window))

        logger.debug("aggregated %d of %d candidate tokens for %s", len(tokens), len(ids), account)
        return tokens

    async def _fetch_pair(
        self,
        account: str,
        token_id: str,
    ) -> Tuple[Optional[TokenMetadata], Optional[TokenBalance]]:
        metadata, balance = await asyncio.gather(
            self.metadata_cache.get_or_fetch(token_id, self.adapter.token_metadata),
            self.adapter.token_balance(account, token_id),
            return_exceptions=True,
        )
        # Per-token upstream failures count as "absent"; anything else is a bug
        for outcome in (metadata, balance):
            if isinstance(outcome, BaseException) and not isinstance(outcome, UpstreamError):
                raise outcome
        if isinstance(metadata, UpstreamError):
            logger.debug("metadata fetch failed for %s: %s", token_id, metadata)
            metadata = None
        if isinstance(balance, UpstreamError):
            logger.debug("balance fetch failed for %s on %s: %s", account, token_id, balance)
            balance = None
        return metadata, balance

    def _merge(
        self,
        token_id: str,
        metadata: Optional[TokenMetadata],
        balance: Optional[TokenBalance],
    ) -> Optional[Token]:
        if metadata is None or balance is None:
            logger.debug("dropping %s: metadata=%s balance=%s", token_id, metadata is not None, balance is not None)
            return None

        try:
            formatted = format_balance(balance.raw, metadata.decimals, self.display_places)
        except ValueError as exc:
            logger.debug("dropping %s: %s", token_id, exc)
            return None

        token = Token(
            id=token_id,
            symbol=metadata.symbol,
            decimals=metadata.decimals,
            raw_balance=balance.raw,
            formatted_balance=formatted,
            icon=metadata.icon,
            reference=metadata.reference,
            verified=self.is_allow_listed(token_id),
        )
        if not self.classifier.classify(token, self.is_allow_listed):
            logger.debug("classifier excluded %s (%s)", token_id, token.symbol)
            return None
        return token

    def aggregate_holdings(self, holdings: Iterable[TokenHolding]) -> List[Token]:
        """Filter pre-enumerated holdings from an ownership-indexed chain.

        No metadata exists on this path, so classification is limited to the
        allow-list and pattern checks on the bare token id.
        """
        tokens: List[Token] = []
        for holding in holdings:
            if holding.is_non_fungible:
                logger.debug("skipping likely NFT mint %s", holding.token_id)
                continue
            if not self.classifier.classify_identifier(holding.token_id, self.is_allow_listed):
                logger.debug("skipping likely scam mint %s", holding.token_id)
                continue
            tokens.append(
                Token(
                    id=holding.token_id,
                    decimals=holding.decimals,
                    raw_balance=holding.raw,
                    formatted_balance=format_balance(holding.raw, holding.decimals, self.display_places),
                    verified=self.is_allow_listed(holding.token_id),
                )
            )
        return tokens


__all__ = ["TokenAggregator", "iter_windows", "DEFAULT_CONCURRENCY_WINDOW"]
