"""
Shared fixtures for QuantumDMN client tests.
"""

import asyncio
import json
import time
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

ISSUER = "https://auth.example.test"
USER_ID = "service-user-1"
KEY_ID = "key-1"


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, now: Optional[float] = None):
        self.now = now if now is not None else float(int(time.time()))

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTokenEndpoint:
    """Zitadel token endpoint stand-in for httpx.MockTransport."""

    def __init__(self, expires_in: int = 3600, delay: float = 0.0):
        self.expires_in = expires_in
        self.delay = delay
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.error_body = '{"error":"invalid_grant"}'
        self.raise_error: Optional[Exception] = None

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raise_error is not None:
            raise self.raise_error
        if self.status_code != 200:
            return httpx.Response(self.status_code, text=self.error_body)
        return httpx.Response(
            200,
            json={
                "access_token": f"access-token-{len(self.requests)}",
                "token_type": "Bearer",
                "expires_in": self.expires_in,
            },
        )

    def form(self, index: int = -1) -> Dict[str, str]:
        parsed = parse_qs(self.requests[index].content.decode("ascii"))
        return {key: values[0] for key, values in parsed.items()}

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture(scope="session")
def rsa_private_key():
    """RSA key shared by the session; generation is slow."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def pkcs8_pem(rsa_private_key) -> str:
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def pkcs1_pem(rsa_private_key) -> str:
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def public_pem(rsa_private_key) -> str:
    return rsa_private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


@pytest.fixture
def key_data(pkcs8_pem) -> Dict[str, Any]:
    return {
        "type": "serviceaccount",
        "keyId": KEY_ID,
        "key": pkcs8_pem,
        "userId": USER_ID,
    }


@pytest.fixture
def key_file(tmp_path, key_data):
    path = tmp_path / "service-account.json"
    path.write_text(json.dumps(key_data), encoding="utf-8")
    return path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_endpoint() -> FakeTokenEndpoint:
    return FakeTokenEndpoint()


@pytest.fixture
def slow_token_endpoint() -> FakeTokenEndpoint:
    """Token endpoint that yields to the event loop before answering."""
    return FakeTokenEndpoint(delay=0.05)
