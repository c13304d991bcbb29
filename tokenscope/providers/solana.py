"""Solana adapter backed by plain JSON-RPC."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..errors import AddressValidationError, UpstreamError
from ..services.address import is_valid_solana_address
from ..services.models import NativeBalance, TokenBalance, TokenHolding
from ..services.normalizer import format_balance
from .base import JsonRpcAdapter

logger = logging.getLogger(__name__)


class SolanaAdapter(JsonRpcAdapter):
    """Ownership-indexed token accounts; no per-token metadata lookup.

    Ids and balances come from a single ``getParsedTokenAccountsByOwner``
    call per token program, so ``token_metadata`` stays absent and the
    classifier only sees the mint address.
    """

    supports_tokens = True
    enumerates_holdings = True
    rpc_request_id = "1"

    def validate_address(self, address: str) -> None:
        if not is_valid_solana_address(address):
            raise AddressValidationError(self.config.name, address, "Invalid Solana address format")

    async def native_balance(self, account: str) -> NativeBalance:
        result = await self._rpc("getBalance", [account])
        lamports_raw: Any = result.get("value") if isinstance(result, dict) else result
        if isinstance(lamports_raw, bool) or not isinstance(lamports_raw, int) or lamports_raw < 0:
            raise UpstreamError("Unexpected getBalance response from Solana RPC", upstream=self.chain)

        lamports = str(lamports_raw)
        return NativeBalance(
            symbol=self.config.coin_symbol,
            raw=lamports,
            decimals=self.config.native_decimals,
            formatted=format_balance(lamports, self.config.native_decimals, self.config.native_display_places),
            details={"verified": True, "logoURI": self.config.logo_uri},
        )

    async def token_holdings(self, account: str) -> List[TokenHolding]:
        holdings: List[TokenHolding] = []
        for program_id in self.config.token_program_ids:
            result = await self._rpc(
                "getParsedTokenAccountsByOwner",
                [account, {"programId": program_id}, {"encoding": "jsonParsed"}],
            )
            accounts = result.get("value") if isinstance(result, dict) else None
            if not isinstance(accounts, list):
                raise UpstreamError("Unexpected token account listing from Solana RPC", upstream=self.chain)

            logger.debug("found %d token accounts for %s under %s", len(accounts), account, program_id)
            for entry in accounts:
                holding = self._parse_token_account(entry)
                if holding is not None:
                    holdings.append(holding)
        return holdings

    @staticmethod
    def _parse_token_account(entry: Any) -> Optional[TokenHolding]:
        if not isinstance(entry, dict):
            return None
        info: Dict[str, Any] = (
            ((entry.get("account") or {}).get("data") or {}).get("parsed") or {}
        ).get("info") or {}
        mint = info.get("mint")
        token_amount = info.get("tokenAmount") or {}
        amount = token_amount.get("amount")
        decimals = token_amount.get("decimals")
        if not isinstance(mint, str) or not mint:
            return None
        if not isinstance(amount, str) or not (amount.isascii() and amount.isdigit()):
            return None
        if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
            return None
        return TokenHolding(token_id=mint, raw=amount, decimals=decimals)

    async def candidate_token_ids(self, account: str, *, discover: bool = False) -> List[str]:
        return [h.token_id for h in await self.token_holdings(account) if not h.is_non_fungible]

    async def token_balance(self, account: str, token_id: str) -> Optional[TokenBalance]:
        """Single-token lookup for callers that need the generic interface.

        Every call lists all token accounts again, so driving ``aggregate``
        over Solana ids costs one listing per id. The balance service avoids
        this by taking the ``token_holdings`` path.
        """
        try:
            holdings = await self.token_holdings(account)
        except UpstreamError as exc:
            logger.debug("token accounts unavailable for %s: %s", account, exc)
            return None
        for holding in holdings:
            if holding.token_id == token_id:
                return TokenBalance(raw=holding.raw, decimals=holding.decimals)
        return None
