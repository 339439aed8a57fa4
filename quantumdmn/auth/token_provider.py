"""
Access token providers for the DMN API.

ZitadelTokenProvider exchanges a signed service-account assertion for an
access token at the issuer's token endpoint and caches it until shortly
before expiry.
"""

from __future__ import annotations

import asyncio
import os
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

import httpx

from quantumdmn.auth.assertion import AssertionBuilder
from quantumdmn.auth.credentials import CredentialMaterial
from quantumdmn.errors import AuthenticationError, ConfigurationError, TransportError
from quantumdmn.logging import get_logger

DEFAULT_ISSUER = "https://auth.quantumdmn.com"
TOKEN_PATH = "/oauth/v2/token"
JWT_BEARER_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"
BASE_SCOPES = ("openid", "profile", "urn:zitadel:iam:user:resourceowner")
PROJECT_AUDIENCE_SCOPE = "urn:zitadel:iam:org:project:id:{project_id}:aud"
EXPIRY_SAFETY_MARGIN_SECONDS = 60


class TokenProvider:
    """Source of bearer tokens for outbound DMN API requests."""

    async def get_token(self) -> str:
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release any resources held by the provider."""


class StaticTokenProvider(TokenProvider):
    """Always returns the same pre-issued token."""

    def __init__(self, token: str):
        if not token or not token.strip():
            raise ConfigurationError("Static bearer token must not be empty")
        self._token = token.strip()

    async def get_token(self) -> str:
        return self._token


@dataclass(frozen=True)
class CachedToken:
    """An access token and the absolute time (epoch seconds) it expires."""

    access_token: str
    expires_at: float

    def is_fresh(self, now: float, margin: float = EXPIRY_SAFETY_MARGIN_SECONDS) -> bool:
        return now < self.expires_at - margin


class ZitadelTokenProvider(TokenProvider):
    """Token provider backed by a Zitadel service account JSON key.

    Concurrent callers share a single in-flight refresh: the first caller
    to find no fresh token starts it and everyone else awaits the same
    task. Failures are raised to every waiter and are never retried here;
    the previously cached token, if any, is kept.
    """

    def __init__(self,
                 credentials: CredentialMaterial,
                 *,
                 http_timeout: float = 10.0,
                 client: Optional[httpx.AsyncClient] = None,
                 clock: Callable[[], float] = time.time):
        self.credentials = credentials
        self.http_timeout = http_timeout
        self.logger = get_logger("quantumdmn.auth.token_provider")

        self._assertions = AssertionBuilder(credentials)
        self._clock = clock
        self._client = client or httpx.AsyncClient(timeout=http_timeout)
        self._owns_client = client is None

        self._cached: Optional[CachedToken] = None
        self._refresh_task: Optional[asyncio.Future] = None

    @classmethod
    def from_key_file(cls,
                      key_file: Union[str, os.PathLike],
                      issuer: str = DEFAULT_ISSUER,
                      project_id: Optional[str] = None,
                      **kwargs) -> "ZitadelTokenProvider":
        """Load credentials from a key file. Raises ConfigurationError before any network I/O."""
        credentials = CredentialMaterial.from_key_file(key_file, issuer, project_id)
        return cls(credentials, **kwargs)

    @property
    def token_endpoint(self) -> str:
        return f"{self.credentials.issuer}{TOKEN_PATH}"

    @property
    def scopes(self) -> List[str]:
        scopes = list(BASE_SCOPES)
        if self.credentials.project_id:
            scopes.append(PROJECT_AUDIENCE_SCOPE.format(project_id=self.credentials.project_id))
        return scopes

    @property
    def cached_token(self) -> Optional[CachedToken]:
        return self._cached

    async def get_token(self) -> str:
        """Return a fresh access token, refreshing it if needed."""
        cached = self._cached
        if cached is not None and cached.is_fresh(self._clock()):
            return cached.access_token

        task = self._refresh_task
        if task is None or task.done():
            task = asyncio.ensure_future(self._refresh())
            task.add_done_callback(self._refresh_finished)
            self._refresh_task = task

        # A cancelled waiter must not cancel the refresh other callers share
        return await asyncio.shield(task)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ZitadelTokenProvider":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _refresh_finished(self, task: asyncio.Future) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        if not task.cancelled():
            # Waiters receive the exception; mark it retrieved for the loop's
            # unhandled-exception reporting when every waiter was cancelled.
            task.exception()

    async def _refresh(self) -> str:
        assertion = self._assertions.build(self._clock())
        self.logger.info(
            "Refreshing access token",
            token_endpoint=self.token_endpoint,
            user_id=self.credentials.user_id
        )

        try:
            response = await self._client.post(
                self.token_endpoint,
                data={
                    "grant_type": JWT_BEARER_GRANT_TYPE,
                    "scope": " ".join(self.scopes),
                    "assertion": assertion,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.http_timeout,
            )
        except httpx.TransportError as e:
            self.logger.error("Token endpoint unreachable", token_endpoint=self.token_endpoint, error=str(e))
            raise TransportError(
                "zitadel",
                f"Token request failed: {e}",
                details={"token_endpoint": self.token_endpoint, "error_type": type(e).__name__}
            ) from e

        if response.status_code != 200:
            self.logger.warning("Token request rejected", status_code=response.status_code)
            raise AuthenticationError(
                f"Token request failed: {response.status_code}",
                status_code=response.status_code,
                body=response.text
            )

        access_token, expires_in = self._parse_token_response(response)
        self._cached = CachedToken(access_token=access_token, expires_at=self._clock() + expires_in)

        self.logger.info("Access token refreshed", expires_in=expires_in)
        return access_token

    def _parse_token_response(self, response: httpx.Response):
        try:
            payload = response.json()
        except ValueError as e:
            raise AuthenticationError(
                "Token response is not valid JSON",
                status_code=response.status_code,
                body=response.text
            ) from e

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        expires_in = payload.get("expires_in") if isinstance(payload, dict) else None

        if not isinstance(access_token, str) or not access_token:
            raise AuthenticationError(
                "Token response missing access_token",
                status_code=response.status_code,
                body=response.text
            )
        if isinstance(expires_in, bool) or not isinstance(expires_in, int) or expires_in <= 0:
            raise AuthenticationError(
                "Token response missing or invalid expires_in",
                status_code=response.status_code,
                body=response.text
            )

        return access_token, expires_in
