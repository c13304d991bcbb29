from fastapi import Request

from ..services.balances import BalanceService


def get_balance_service(request: Request) -> BalanceService:
    """The service graph is built once in the app lifespan."""
    return request.app.state.balance_service
