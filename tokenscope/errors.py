"""Error taxonomy surfaced by the balance service.

Every error here is scoped to a single request or a single batch item and is
rendered by the API layer as an HTTP 400 envelope.
"""

from __future__ import annotations

from typing import Optional


class TokenscopeError(Exception):
    """Base class for errors reported back to the caller."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnsupportedChainError(TokenscopeError):
    def __init__(self, chain: str) -> None:
        super().__init__(f"Unsupported network: {chain}")
        self.chain = chain


class AddressValidationError(TokenscopeError):
    """Malformed or unsupported address; never retried."""

    def __init__(self, chain_name: str, address: str, reason: str) -> None:
        super().__init__(f"Invalid {chain_name} address: {address} ({reason})")
        self.address = address
        self.reason = reason


class UpstreamError(TokenscopeError):
    """Non-success status or network failure from an external call."""

    def __init__(
        self,
        message: str,
        *,
        upstream: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.upstream = upstream
        self.status = status


class InvalidRequestError(TokenscopeError):
    pass


class BatchLimitExceeded(TokenscopeError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"Batch limit exceeded (max {limit} addresses per request)")
        self.limit = limit


__all__ = [
    "TokenscopeError",
    "UnsupportedChainError",
    "AddressValidationError",
    "UpstreamError",
    "InvalidRequestError",
    "BatchLimitExceeded",
]
