import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from ..services.balances import BalanceService
from ..types import BatchBalanceRequest, StandardResponse
from .deps import get_balance_service

router = APIRouter()
_logger = logging.getLogger(__name__)


@router.get("/balance/{chain}/{address}")
async def get_balance_endpoint(
    chain: str,
    address: str,
    service: BalanceService = Depends(get_balance_service),
) -> StandardResponse:
    """Native balance plus, on token-capable chains, the filtered token list"""

    data = await service.get_balance(chain, address)
    return StandardResponse.ok(data)


@router.post("/balances/{chain}")
async def get_balances_endpoint(
    chain: str,
    payload: BatchBalanceRequest,
    service: BalanceService = Depends(get_balance_service),
) -> StandardResponse:
    """Batch lookup; per-address failures are reported inline"""

    results = await service.get_balances(chain, payload.addresses)
    failed = sum(1 for item in results if item.get("status") == "failed")
    if failed:
        _logger.info("batch for %s finished with %d/%d failed addresses", chain, failed, len(results))
    return StandardResponse.ok(results)


@router.get("/verified-tokens/{account}")
async def get_verified_tokens_endpoint(
    account: str,
    chain: str = Query("near", description="Token-capable network to inspect"),
    service: BalanceService = Depends(get_balance_service),
) -> Dict[str, Any]:
    """Native balance and classified tokens, verified first"""

    return await service.get_verified_tokens(account, chain)
