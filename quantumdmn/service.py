"""
Authenticated HTTP access to the QuantumDMN API.
"""

from typing import Any, Optional, Union

import httpx

from quantumdmn.auth.token_provider import StaticTokenProvider, TokenProvider
from quantumdmn.errors import ApiError, ConfigurationError, TransportError
from quantumdmn.logging import get_logger

DEFAULT_BASE_URL = "https://api.quantumdmn.com"


class BearerTokenAuth(httpx.Auth):
    """Attach ``Authorization: Bearer <token>`` from a token provider to every request."""

    def __init__(self, token_provider: TokenProvider):
        self.token_provider = token_provider

    async def async_auth_flow(self, request: httpx.Request):
        token = await self.token_provider.get_token()
        request.headers["Authorization"] = f"Bearer {token}"
        yield request

    def sync_auth_flow(self, request: httpx.Request):
        raise RuntimeError("BearerTokenAuth only supports httpx.AsyncClient")


class DmnService:
    """Authenticated client for the DMN engine API.

    Example::

        provider = ZitadelTokenProvider.from_key_file("key.json", project_id="...")
        async with DmnService("https://api.quantumdmn.com", provider) as service:
            response = await service.request("GET", "/api/v1/projects")
    """

    def __init__(self,
                 base_url: str,
                 token_provider: Union[TokenProvider, str],
                 *,
                 http_timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 close_provider: bool = False):
        if not base_url or not base_url.strip():
            raise ConfigurationError("DMN API base URL is required")
        if isinstance(token_provider, str):
            token_provider = StaticTokenProvider(token_provider)

        self.base_url = base_url.strip().rstrip("/")
        self.token_provider = token_provider
        self.logger = get_logger("quantumdmn.service")
        self._close_provider = close_provider

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=BearerTokenAuth(token_provider),
            timeout=http_timeout,
            transport=transport,
        )

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send an authenticated request; non-2xx responses raise ApiError."""
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            self.logger.error("DMN API unreachable", method=method, path=path, error=str(e))
            raise TransportError(
                "dmn-api",
                str(e),
                details={"method": method, "path": path, "error_type": type(e).__name__}
            ) from e

        self.logger.debug("DMN API response", method=method, path=path, status_code=response.status_code)
        if not response.is_success:
            raise ApiError(response.status_code, response.text)
        return response

    async def aclose(self) -> None:
        await self.client.aclose()
        if self._close_provider:
            await self.token_provider.aclose()

    async def __aenter__(self) -> "DmnService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
