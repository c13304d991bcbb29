"""NEAR adapter: account-addressed chain with NEP-141 fungible token contracts."""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from typing import Any, Dict, List, Optional

from ..errors import AddressValidationError, UpstreamError
from ..services.address import is_valid_near_account_id
from ..services.models import NativeBalance, TokenBalance, TokenMetadata
from ..services.normalizer import format_balance
from .base import JsonRpcAdapter

logger = logging.getLogger(__name__)


def encode_args(args: Dict[str, Any]) -> str:
    return base64.b64encode(json.dumps(args, separators=(",", ":")).encode("utf-8")).decode("ascii")


def decode_call_result(payload: Any) -> Any:
    """Decode the byte payload of a ``call_function`` result as UTF-8 JSON.

    The RPC returns the bytes as a list of ints; some gateways hand back a
    base64 string instead, so both are accepted.
    """
    if isinstance(payload, list):
        raw = bytes(payload)
    elif isinstance(payload, str):
        raw = base64.b64decode(payload, validate=True)
    else:
        raise ValueError(f"unexpected call result payload: {type(payload).__name__}")
    return json.loads(raw.decode("utf-8"))


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


class NearAdapter(JsonRpcAdapter):
    """Balances and metadata via read-only contract calls."""

    supports_tokens = True

    def validate_address(self, address: str) -> None:
        if not is_valid_near_account_id(address):
            raise AddressValidationError(self.config.name, address, "Invalid NEAR account id")

    async def _view_function(self, contract_id: str, method_name: str, args: Dict[str, Any]) -> Any:
        result = await self._rpc(
            "query",
            {
                "request_type": "call_function",
                "account_id": contract_id,
                "method_name": method_name,
                "args_base64": encode_args(args),
                "finality": "final",
            },
        )
        if not isinstance(result, dict) or result.get("result") is None:
            return None
        return decode_call_result(result["result"])

    async def native_balance(self, account: str) -> NativeBalance:
        result = await self._rpc(
            "query",
            {"request_type": "view_account", "account_id": account, "finality": "final"},
        )
        if not isinstance(result, dict) or result.get("amount") is None:
            raise UpstreamError("Account not found", upstream=self.chain)

        amount = str(result["amount"])
        return NativeBalance(
            symbol=self.config.coin_symbol,
            raw=amount,
            decimals=self.config.native_decimals,
            formatted=format_balance(amount, self.config.native_decimals, self.config.native_display_places),
            details={"storage_usage": result.get("storage_usage")},
        )

    async def candidate_token_ids(self, account: str, *, discover: bool = False) -> List[str]:
        """Verified contracts by default; the discovery index when ``discover`` is set."""
        if not discover:
            return sorted(self.config.verified_tokens)
        return await self._likely_tokens(account)

    async def _likely_tokens(self, account: str) -> List[str]:
        if not self.config.indexer_url:
            raise UpstreamError("Token discovery index is not configured", upstream="near-indexer")

        url = f"{self.config.indexer_url.rstrip('/')}/{account}/likelyTokens"
        timeout = self.config.indexer_timeout_seconds
        try:
            payload = await asyncio.wait_for(self._get_json(url), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise UpstreamError(
                f"Token discovery index timed out after {timeout:g}s",
                upstream="near-indexer",
            ) from exc

        if not isinstance(payload, list):
            raise UpstreamError("Unexpected response from token discovery index", upstream="near-indexer")

        seen: Dict[str, None] = {}
        for item in payload:
            if isinstance(item, str) and item:
                seen.setdefault(item, None)
        return list(seen)

    async def token_metadata(self, token_id: str) -> Optional[TokenMetadata]:
        try:
            metadata = await self._view_function(token_id, "ft_metadata", {})
        except (UpstreamError, ValueError) as exc:
            logger.debug("ft_metadata unavailable for %s: %s", token_id, exc)
            return None

        if not isinstance(metadata, dict):
            return None
        symbol = metadata.get("symbol")
        decimals = metadata.get("decimals")
        if not isinstance(symbol, str) or not symbol.strip() or decimals is None:
            return None
        try:
            decimals = int(decimals)
        except (TypeError, ValueError):
            return None
        if decimals < 0:
            return None

        return TokenMetadata(
            symbol=symbol.strip(),
            decimals=decimals,
            icon=_optional_str(metadata.get("icon")),
            reference=_optional_str(metadata.get("reference")),
        )

    async def token_balance(self, account: str, token_id: str) -> Optional[TokenBalance]:
        # ft_balance_of carries no decimals; the aggregator takes them from metadata
        try:
            balance = await self._view_function(token_id, "ft_balance_of", {"account_id": account})
        except (UpstreamError, ValueError) as exc:
            logger.debug("ft_balance_of unavailable for %s on %s: %s", account, token_id, exc)
            return None

        if isinstance(balance, int) and not isinstance(balance, bool) and balance >= 0:
            balance = str(balance)
        if not isinstance(balance, str) or not (balance.isascii() and balance.isdigit()):
            return None
        return TokenBalance(raw=balance)
