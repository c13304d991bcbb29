"""
Per-chain configuration.

Built once from ``Settings`` at startup and handed to the adapters; nothing
in here is mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Tuple

from ..config import Settings

NEAR_DEFAULT_VERIFIED = (
    "usdt.tether-token.near",
    "17208628f84f5d6ad33f0da3bbbeb27ffcb398eac501a31bd6ad2011e36133a1",
    "wrap.near",
    "token.v2.ref-finance.near",
    "meta-pool.near",
    "linear-protocol.near",
)

SOLANA_DEFAULT_VERIFIED = (
    "So11111111111111111111111111111111111111112",  # Wrapped SOL
    "Es9vMFrzaCERbb5xqW6Xh5U9k9XbV7bXv9b6o8u6Xx6u",  # USDT
)

SPL_TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
SOLANA_LOGO_URI = "https://cryptologos.cc/logos/solana-sol-logo.png?v=025"


class ChainFamily(str, Enum):
    CONTRACT_CALL = "contract_call"
    TOKEN_ACCOUNT = "token_account"
    UTXO = "utxo"


@dataclass(frozen=True)
class ChainConfig:
    """Immutable description of one supported network."""
    slug: str
    name: str
    family: ChainFamily
    coin_symbol: str
    unit: str
    native_decimals: int
    native_display_places: int
    endpoint: str
    # address prefix groups, e.g. {"p2pkh": ("1",)}
    prefixes: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    address_length: Optional[Tuple[int, int]] = None
    verified_tokens: FrozenSet[str] = frozenset()
    token_program_ids: Tuple[str, ...] = ()
    indexer_url: Optional[str] = None
    indexer_timeout_seconds: Optional[float] = None
    logo_uri: Optional[str] = None

    @property
    def all_prefixes(self) -> Tuple[str, ...]:
        return tuple(prefix for group in self.prefixes.values() for prefix in group)

    def is_verified(self, token_id: str) -> bool:
        return token_id in self.verified_tokens

    def describe(self) -> dict:
        return {
            "name": self.slug,
            "displayName": self.name,
            "coinSymbol": self.coin_symbol,
            "unit": self.unit,
            "prefixes": {key: list(values) for key, values in self.prefixes.items()},
        }


def _parse_id_list(raw: str, default: Tuple[str, ...]) -> FrozenSet[str]:
    values = [item.strip() for item in (raw or "").split(",") if item.strip()]
    return frozenset(values or default)


def _prefixes(**groups: Tuple[str, ...]) -> Mapping[str, Tuple[str, ...]]:
    return MappingProxyType(dict(groups))


def build_chain_configs(settings: Settings) -> Mapping[str, ChainConfig]:
    """Return the read-only ``slug -> ChainConfig`` table for this process."""

    configs = {
        "bitcoin": ChainConfig(
            slug="bitcoin",
            name="Bitcoin",
            family=ChainFamily.UTXO,
            coin_symbol="BTC",
            unit="satoshi",
            native_decimals=8,
            native_display_places=8,
            endpoint=settings.bitcoin_api_base,
            prefixes=_prefixes(p2pkh=("1",), p2sh=("3",), bech32=("bc1",)),
            address_length=(26, 62),
        ),
        "dogecoin": ChainConfig(
            slug="dogecoin",
            name="Dogecoin",
            family=ChainFamily.UTXO,
            coin_symbol="DOGE",
            unit="koinu",
            native_decimals=8,
            native_display_places=8,
            endpoint=settings.dogecoin_api_base,
            prefixes=_prefixes(p2pkh=("D",), p2sh=("9", "A")),
            address_length=(27, 34),
        ),
        "litecoin": ChainConfig(
            slug="litecoin",
            name="Litecoin",
            family=ChainFamily.UTXO,
            coin_symbol="LTC",
            unit="litoshi",
            native_decimals=8,
            native_display_places=8,
            endpoint=settings.litecoin_api_base,
            prefixes=_prefixes(p2pkh=("L",), p2sh=("M",), bech32=("ltc1",)),
            address_length=(26, 34),
        ),
        "near": ChainConfig(
            slug="near",
            name="NEAR Protocol",
            family=ChainFamily.CONTRACT_CALL,
            coin_symbol="NEAR",
            unit="yoctoNEAR",
            native_decimals=24,
            native_display_places=5,
            endpoint=settings.near_rpc_url,
            verified_tokens=_parse_id_list(settings.near_verified_tokens, NEAR_DEFAULT_VERIFIED),
            indexer_url=settings.near_indexer_url,
            indexer_timeout_seconds=settings.indexer_timeout_seconds,
        ),
        "solana": ChainConfig(
            slug="solana",
            name="Solana",
            family=ChainFamily.TOKEN_ACCOUNT,
            coin_symbol="SOL",
            unit="lamports",
            native_decimals=9,
            native_display_places=9,
            endpoint=settings.solana_rpc_url,
            address_length=(32, 44),
            verified_tokens=_parse_id_list(settings.solana_verified_tokens, SOLANA_DEFAULT_VERIFIED),
            token_program_ids=(SPL_TOKEN_PROGRAM_ID,),
            logo_uri=SOLANA_LOGO_URI,
        ),
    }
    return MappingProxyType(configs)


__all__ = [
    "ChainConfig",
    "ChainFamily",
    "build_chain_configs",
    "NEAR_DEFAULT_VERIFIED",
    "SOLANA_DEFAULT_VERIFIED",
    "SPL_TOKEN_PROGRAM_ID",
]
