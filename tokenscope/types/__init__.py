from .envelope import StandardResponse
from .requests import BatchBalanceRequest

__all__ = [
    "StandardResponse",
    "BatchBalanceRequest",
]
