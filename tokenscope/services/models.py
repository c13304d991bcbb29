"""
Token Holding Models

Plain records passed between adapters, the aggregator and the API layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TokenMetadata:
    """Descriptive metadata for a fungible token; immutable once fetched."""
    symbol: str
    decimals: int
    icon: Optional[str] = None
    reference: Optional[str] = None


@dataclass(frozen=True)
class TokenBalance:
    """Raw base-unit balance, kept as a string so no precision is lost.

    ``decimals`` is None when the balance call does not report it (contract
    chains), in which case the metadata's decimals apply.
    """
    raw: str
    decimals: Optional[int] = None


@dataclass(frozen=True)
class TokenHolding:
    """One entry from an ownership-indexed enumeration (no metadata)."""
    token_id: str
    raw: str
    decimals: int

    @property
    def is_non_fungible(self) -> bool:
        return self.decimals == 0 and self.raw == "1"


@dataclass
class Token:
    """Merged output unit for one token held by an account."""
    id: str
    decimals: int
    raw_balance: str
    formatted_balance: str
    verified: bool
    symbol: Optional[str] = None
    icon: Optional[str] = None
    reference: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "raw_balance": self.raw_balance,
            "formatted_balance": self.formatted_balance,
            "icon": self.icon,
            "reference": self.reference,
            "verified": self.verified,
        }


@dataclass
class NativeBalance:
    """Native coin balance plus whatever chain-specific details upstream returned."""
    symbol: str
    raw: str
    decimals: int
    formatted: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "balance": self.raw,
            "decimals": self.decimals,
            "formatted_balance": self.formatted,
            **self.details,
        }
