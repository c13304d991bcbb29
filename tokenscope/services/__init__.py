"""Service layer helpers"""

from .classifier import ScamClassifier
from .models import NativeBalance, Token, TokenBalance, TokenHolding, TokenMetadata
from .normalizer import format_balance

__all__ = [
    "ScamClassifier",
    "NativeBalance",
    "Token",
    "TokenBalance",
    "TokenHolding",
    "TokenMetadata",
    "format_balance",
]
