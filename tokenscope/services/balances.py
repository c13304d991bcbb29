"""
Balance Service.

Entry point used by the HTTP layer: resolves a chain to its adapter, checks
the address, fetches the native balance and, for token-capable chains, the
filtered token list.

Usage:
    service = build_balance_service(settings)
    data = await service.get_balance("near", "alice.near")
    items = await service.get_balances("bitcoin", ["1A1z...", "bc1q..."])
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

import httpx
import structlog

from ..cache import TTLCache
from ..config import Settings
from ..errors import BatchLimitExceeded, InvalidRequestError, TokenscopeError, UnsupportedChainError
from ..providers.base import ChainAdapter
from ..providers.near import NearAdapter
from ..providers.solana import SolanaAdapter
from ..providers.utxo import BlockCypherAdapter, BlockstreamAdapter
from .address import normalize_chain
from .aggregator import TokenAggregator
from .chains import ChainConfig, build_chain_configs
from .classifier import ScamClassifier
from .models import Token, TokenMetadata

logger = structlog.stdlib.get_logger(__name__)

DEFAULT_MAX_BATCH_ADDRESSES = 20

_ADAPTER_CLASSES = {
    "bitcoin": BlockstreamAdapter,
    "dogecoin": BlockCypherAdapter,
    "litecoin": BlockCypherAdapter,
    "near": NearAdapter,
    "solana": SolanaAdapter,
}


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def sort_verified_first(tokens: List[Token]) -> List[Token]:
    """Stable sort: verified tokens first, original order otherwise kept."""
    return sorted(tokens, key=lambda token: not token.verified)


class BalanceService:
    def __init__(
        self,
        adapters: Mapping[str, ChainAdapter],
        aggregators: Mapping[str, TokenAggregator],
        *,
        max_batch_addresses: int = DEFAULT_MAX_BATCH_ADDRESSES,
    ) -> None:
        self._adapters = dict(adapters)
        self._aggregators = dict(aggregators)
        self.max_batch_addresses = max_batch_addresses

    @property
    def chains(self) -> List[str]:
        return list(self._adapters)

    def adapter_for(self, chain: str) -> ChainAdapter:
        adapter = self._adapters.get(normalize_chain(chain))
        if adapter is None:
            raise UnsupportedChainError(chain)
        return adapter

    def describe_networks(self) -> List[Dict[str, Any]]:
        return [adapter.config.describe() for adapter in self._adapters.values()]

    async def collect_tokens(self, adapter: ChainAdapter, account: str, *, discover: bool = False) -> List[Token]:
        aggregator = self._aggregators[adapter.chain]
        if adapter.enumerates_holdings:
            holdings = await adapter.token_holdings(account)
            return aggregator.aggregate_holdings(holdings)
        candidate_ids = await adapter.candidate_token_ids(account, discover=discover)
        return await aggregator.aggregate(account, candidate_ids)

    async def get_balance(self, chain: str, address: str) -> Dict[str, Any]:
        adapter = self.adapter_for(chain)
        adapter.validate_address(address)

        native = await adapter.native_balance(address)
        if not adapter.supports_tokens:
            return native.to_dict()

        tokens = await self.collect_tokens(adapter, address)
        return {
            "network": adapter.chain,
            "address": address,
            "native": native.to_dict(),
            "tokens": [token.to_dict() for token in tokens],
        }

    async def get_balances(self, chain: str, addresses: Any) -> List[Dict[str, Any]]:
        """Batch lookup; limit and shape violations fail the whole request."""
        adapter = self.adapter_for(chain)
        if not isinstance(addresses, list) or not addresses:
            raise InvalidRequestError("Please provide an array of addresses")
        if len(addresses) > self.max_batch_addresses:
            raise BatchLimitExceeded(self.max_batch_addresses)

        return list(await asyncio.gather(*(self._batch_item(adapter, address) for address in addresses)))

    async def _batch_item(self, adapter: ChainAdapter, address: Any) -> Dict[str, Any]:
        try:
            if not isinstance(address, str):
                raise InvalidRequestError(f"Address must be a string, got {type(address).__name__}")
            data = await self.get_balance(adapter.chain, address)
        except TokenscopeError as exc:
            logger.info("batch_item_failed", chain=adapter.chain, address=address, error=exc.message)
            return {"address": address, "status": "failed", "error": exc.message}
        return {"address": address, **data, "status": "success"}

    async def get_verified_tokens(self, account: str, chain: str = "near") -> Dict[str, Any]:
        adapter = self.adapter_for(chain)
        if not adapter.supports_tokens:
            raise InvalidRequestError(f"{adapter.config.name} does not support token balances")
        adapter.validate_address(account)

        native, tokens = await asyncio.gather(
            adapter.native_balance(account),
            self.collect_tokens(adapter, account, discover=True),
        )
        return {
            "account": account,
            "network": adapter.chain,
            "native": native.to_dict(),
            "tokens": [token.to_dict() for token in sort_verified_first(tokens)],
            "updated_at": _utc_now_iso(),
        }


def build_adapter(config: ChainConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> ChainAdapter:
    adapter_cls = _ADAPTER_CLASSES.get(config.slug)
    if adapter_cls is None:
        raise UnsupportedChainError(config.slug)
    return adapter_cls(config, transport=transport)


def build_balance_service(
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> BalanceService:
    """Wire configs, adapters, caches and aggregators once per process."""
    classifier = ScamClassifier(require_descriptive_metadata=settings.require_descriptive_metadata)

    adapters: Dict[str, ChainAdapter] = {}
    aggregators: Dict[str, TokenAggregator] = {}
    for slug, config in build_chain_configs(settings).items():
        adapter = build_adapter(config, transport)
        adapters[slug] = adapter
        if adapter.supports_tokens:
            # One cache per chain: token ids are only unique within a chain
            cache: TTLCache[str, TokenMetadata] = TTLCache(
                settings.metadata_cache_ttl_seconds,
                single_flight=settings.metadata_single_flight,
            )
            aggregators[slug] = TokenAggregator(
                adapter,
                cache,
                classifier,
                concurrency_window=settings.concurrency_window,
            )

    logger.info("balance_service_ready", chains=sorted(adapters))
    return BalanceService(adapters, aggregators, max_batch_addresses=settings.max_batch_addresses)


__all__ = ["BalanceService", "build_balance_service", "build_adapter", "sort_verified_first"]
