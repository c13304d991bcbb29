"""Helpers for normalizing chain identifiers and validating wallet addresses."""

from __future__ import annotations

import re
from functools import lru_cache

from ..errors import AddressValidationError
from .chains import ChainConfig

_BASE58_ALPHABET = set("123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz")

# Named accounts: dot-separated parts of lowercase alphanumerics joined by - or _
_NEAR_NAMED_ACCOUNT_RE = re.compile(r"^(([a-z\d]+[-_])*[a-z\d]+\.)*([a-z\d]+[-_])*[a-z\d]+$")
_NEAR_IMPLICIT_ACCOUNT_RE = re.compile(r"^[a-f0-9]{64}$")

_CHAIN_ALIASES = {
    "btc": "bitcoin",
    "bitcoin": "bitcoin",
    "doge": "dogecoin",
    "dogecoin": "dogecoin",
    "ltc": "litecoin",
    "litecoin": "litecoin",
    "near": "near",
    "sol": "solana",
    "solana": "solana",
}


def normalize_chain(chain: str | None) -> str:
    """Collapse user-provided chain identifiers into canonical slugs."""

    if not chain:
        return ""
    canonical = _CHAIN_ALIASES.get(chain.lower().strip())
    return canonical or chain.lower().strip()


@lru_cache(maxsize=128)
def is_valid_solana_address(address: str) -> bool:
    if not address:
        return False
    length = len(address)
    if length < 32 or length > 44:
        return False
    return all(ch in _BASE58_ALPHABET for ch in address)


def is_valid_near_account_id(account_id: str) -> bool:
    if not account_id or len(account_id) < 2 or len(account_id) > 64:
        return False
    if _NEAR_IMPLICIT_ACCOUNT_RE.fullmatch(account_id):
        return True
    return bool(_NEAR_NAMED_ACCOUNT_RE.fullmatch(account_id))


def validate_prefixed_address(config: ChainConfig, address: str) -> None:
    """Accept iff ``address`` has one of the chain's prefixes and an in-range length.

    Raises:
        AddressValidationError: naming the rule that failed.
    """
    if not address or not address.startswith(config.all_prefixes):
        raise AddressValidationError(config.name, address, f"Invalid {config.name} address format")

    if config.address_length is not None:
        low, high = config.address_length
        if not low <= len(address) <= high:
            raise AddressValidationError(config.name, address, f"Invalid {config.name} address length")


__all__ = [
    "normalize_chain",
    "is_valid_solana_address",
    "is_valid_near_account_id",
    "validate_prefixed_address",
]
