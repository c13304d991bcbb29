"""Coin-only UTXO chains: one explorer call reshaped into a native balance."""

from __future__ import annotations

from typing import Any, Dict

from ..errors import UpstreamError
from ..services.address import validate_prefixed_address
from ..services.models import NativeBalance
from ..services.normalizer import format_balance
from .base import ChainAdapter


def _as_int(data: Dict[str, Any], key: str) -> int:
    value = data.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{key} is not an integer")
    return value


class UtxoAdapter(ChainAdapter):
    """Prefix/length validated chains with no token support."""

    def validate_address(self, address: str) -> None:
        validate_prefixed_address(self.config, address)

    def _native(self, raw: int, details: Dict[str, Any]) -> NativeBalance:
        return NativeBalance(
            symbol=self.config.coin_symbol,
            raw=str(raw),
            decimals=self.config.native_decimals,
            formatted=format_balance(max(raw, 0), self.config.native_decimals, self.config.native_display_places),
            details={"network": self.chain, "coinSymbol": self.config.coin_symbol, "unit": self.config.unit, **details},
        )


class BlockstreamAdapter(UtxoAdapter):
    """Esplora-style ``address/{addr}`` endpoint (Bitcoin)."""

    async def native_balance(self, account: str) -> NativeBalance:
        data = await self._get_json(f"{self.config.endpoint}address/{account}")
        try:
            chain_stats = data["chain_stats"]
            mempool_stats = data["mempool_stats"]
            confirmed = _as_int(chain_stats, "funded_txo_sum") - _as_int(chain_stats, "spent_txo_sum")
            unconfirmed = _as_int(mempool_stats, "funded_txo_sum") - _as_int(mempool_stats, "spent_txo_sum")
            tx_count = _as_int(chain_stats, "tx_count") + _as_int(mempool_stats, "tx_count")
        except (KeyError, TypeError, AttributeError) as exc:
            raise UpstreamError(f"Unexpected response from {self.config.name} explorer", upstream=self.chain) from exc

        total = confirmed + unconfirmed
        return self._native(
            total,
            {
                "address": account,
                "confirmed_balance": confirmed,
                "unconfirmed_balance": unconfirmed,
                "total_balance": total,
                "transaction_count": tx_count,
            },
        )


class BlockCypherAdapter(UtxoAdapter):
    """BlockCypher ``addrs/{addr}/balance`` endpoint (Dogecoin, Litecoin)."""

    async def native_balance(self, account: str) -> NativeBalance:
        data = await self._get_json(f"{self.config.endpoint}addrs/{account}/balance")
        try:
            final_balance = _as_int(data, "final_balance")
            details = {
                "address": data.get("address", account),
                "total_received": _as_int(data, "total_received"),
                "total_sent": _as_int(data, "total_sent"),
                "confirmed_balance": _as_int(data, "balance"),
                "unconfirmed_balance": _as_int(data, "unconfirmed_balance"),
                "final_balance": final_balance,
                "transaction_count": _as_int(data, "n_tx"),
                "unconfirmed_transaction_count": _as_int(data, "unconfirmed_n_tx"),
                "final_transaction_count": _as_int(data, "final_n_tx"),
            }
        except (TypeError, AttributeError) as exc:
            raise UpstreamError(f"Unexpected response from {self.config.name} explorer", upstream=self.chain) from exc

        return self._native(final_balance, details)
