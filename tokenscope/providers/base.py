from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from ..errors import UpstreamError
from ..services.chains import ChainConfig
from ..services.models import NativeBalance, TokenBalance, TokenHolding, TokenMetadata


class ChainAdapter(ABC):
    """Per-chain capability interface.

    One subclass per supported network. Token methods default to "nothing
    here" so coin-only chains implement just address validation and the
    native balance.
    """

    # Capability flags consulted by the balance service
    supports_tokens: bool = False
    enumerates_holdings: bool = False

    def __init__(
        self,
        config: ChainConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self._transport = transport

    @property
    def chain(self) -> str:
        return self.config.slug

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        # Only callers with an explicit deadline pass one; everything else
        # inherits httpx's default timeout.
        if timeout is None:
            return httpx.AsyncClient(transport=self._transport)
        return httpx.AsyncClient(transport=self._transport, timeout=timeout)

    async def health_check(self) -> Dict[str, Any]:
        """Report configured state without touching the network."""
        return {"status": "configured", "endpoint": self.config.endpoint}

    @abstractmethod
    def validate_address(self, address: str) -> None:
        """Raise AddressValidationError when ``address`` is not usable on this chain."""
        pass

    @abstractmethod
    async def native_balance(self, account: str) -> NativeBalance:
        """Native coin balance; raises UpstreamError on failure."""
        pass

    async def candidate_token_ids(self, account: str, *, discover: bool = False) -> List[str]:
        return []

    async def token_metadata(self, token_id: str) -> Optional[TokenMetadata]:
        return None

    async def token_balance(self, account: str, token_id: str) -> Optional[TokenBalance]:
        return None

    async def token_holdings(self, account: str) -> List[TokenHolding]:
        """Enumerate ids and balances in one call; empty unless ``enumerates_holdings``."""
        return []

    async def _get_json(self, url: str) -> Any:
        try:
            async with self._client() as client:
                response = await client.get(url, headers={"accept": "application/json"})
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            raise UpstreamError(
                f"API request failed with status {exc.response.status_code}",
                upstream=self.chain,
                status=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"API request failed: {exc}", upstream=self.chain) from exc
        except ValueError as exc:
            raise UpstreamError("API returned invalid JSON", upstream=self.chain) from exc


class JsonRpcAdapter(ChainAdapter):
    """Adapter speaking JSON-RPC 2.0 to ``config.endpoint``."""

    rpc_request_id: str = "dontcare"

    async def _rpc(self, method: str, params: Any) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": self.rpc_request_id,
            "method": method,
            "params": params,
        }
        try:
            async with self._client() as client:
                response = await client.post(self.config.endpoint, json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            raise UpstreamError(
                f"{self.config.name} RPC request failed with status {exc.response.status_code}",
                upstream=self.chain,
                status=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"{self.config.name} RPC request failed: {exc}", upstream=self.chain) from exc
        except ValueError as exc:
            raise UpstreamError(f"{self.config.name} RPC returned invalid JSON", upstream=self.chain) from exc

        if not isinstance(body, dict):
            raise UpstreamError(f"Unexpected response from {self.config.name} RPC", upstream=self.chain)

        error = body.get("error")
        if error:
            if isinstance(error, dict):
                message = error.get("message") or error.get("name") or "unknown error"
                data = error.get("data")
                if isinstance(data, str) and data:
                    message = f"{message}: {data}"
            else:
                message = str(error)
            raise UpstreamError(f"{self.config.name} RPC error: {message}", upstream=self.chain)

        return body.get("result")
