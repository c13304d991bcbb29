from fastapi import APIRouter, Depends
from typing import Dict, Any

from ..services.balances import BalanceService
from ..types import StandardResponse
from .deps import get_balance_service

router = APIRouter()


@router.get("/healthz")
async def health_check(service: BalanceService = Depends(get_balance_service)) -> Dict[str, Any]:
    """Report configured adapters without calling upstream"""

    adapters = {chain: await service.adapter_for(chain).health_check() for chain in service.chains}
    return {
        "status": "healthy" if adapters else "degraded",
        "supportedNetworks": service.chains,
        "adapters": adapters,
    }


@router.get("/networks")
async def list_networks(service: BalanceService = Depends(get_balance_service)) -> StandardResponse:
    return StandardResponse.ok(service.describe_networks())
