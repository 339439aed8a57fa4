"""
Integration tests for the authenticated evaluation flow.
"""

import asyncio
import json
from decimal import Decimal
from urllib.parse import parse_qs

import httpx
import pytest
from jose import jwt

from quantumdmn import (
    AuthenticationError,
    DmnEngine,
    DmnService,
    EvaluationOptions,
    ZitadelTokenProvider,
)

ISSUER = "https://auth.example.test"
API_URL = "https://api.example.test"
PROJECT_ID = "6f1c9a52-8a1b-4a8e-9a43-0b7c4f1f6e21"


class FakeBackend:
    """Zitadel token endpoint plus DMN API behind one MockTransport."""

    def __init__(self, public_pem: str):
        self.public_pem = public_pem
        self.token_requests = []
        self.api_requests = []
        self.reject_assertions = False

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "auth.example.test":
            return await self._token(request)
        return self._evaluate(request)

    async def _token(self, request: httpx.Request) -> httpx.Response:
        self.token_requests.append(request)
        await asyncio.sleep(0.02)
        if self.reject_assertions:
            return httpx.Response(401, json={"error": "invalid_grant"})

        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        claims = jwt.decode(form["assertion"], self.public_pem, algorithms=["RS256"], audience=ISSUER)
        return httpx.Response(200, json={
            "access_token": f"token-for-{claims['sub']}-{len(self.token_requests)}",
            "token_type": "Bearer",
            "expires_in": 3600,
        })

    def _evaluate(self, request: httpx.Request) -> httpx.Response:
        self.api_requests.append(request)
        if not request.headers.get("Authorization", "").startswith("Bearer token-for-"):
            return httpx.Response(401, json={"error": "unauthorized"})

        body = json.loads(request.content, parse_float=Decimal)
        income = body["context"]["income"]
        approved = "true" if income >= Decimal("50000.0") else "false"
        return httpx.Response(
            200,
            text=f'{{"approved": {approved}, "income": {income}, "score": 0.1}}',
            headers={"Content-Type": "application/json"},
        )


@pytest.fixture
def backend(public_pem):
    return FakeBackend(public_pem)


@pytest.fixture
def engine(key_file, backend, clock):
    transport = httpx.MockTransport(backend)
    provider = ZitadelTokenProvider.from_key_file(
        key_file,
        issuer=ISSUER,
        project_id="298765",
        client=httpx.AsyncClient(transport=transport),
        clock=clock,
    )
    service = DmnService(API_URL, provider, transport=transport, close_provider=True)
    return DmnEngine(service, PROJECT_ID)


@pytest.mark.integration
class TestAuthFlow:
    """End-to-end: key file, token exchange, authenticated evaluation."""

    @pytest.mark.asyncio
    async def test_complete_flow(self, engine, backend):
        results = await engine.evaluate("loan-approval", {"age": 25, "income": 50000.0})

        assert results["approved"].as_boolean() is True
        assert str(results["income"].as_number()) == "50000.0"
        assert str(results["score"].as_number()) == "0.1"

        assert len(backend.token_requests) == 1
        assert backend.api_requests[0].headers["Authorization"] == "Bearer token-for-service-user-1-1"
        await engine.service.aclose()

    @pytest.mark.asyncio
    async def test_concurrent_evaluations_share_token(self, engine, backend):
        results = await asyncio.gather(*(
            engine.evaluate("loan-approval", {"income": 40000 + i}, EvaluationOptions(request_id=f"req-{i}"))
            for i in range(10)
        ))

        assert len(results) == 10
        assert len(backend.token_requests) == 1
        assert {r.headers["Authorization"] for r in backend.api_requests} == {"Bearer token-for-service-user-1-1"}
        assert {r.headers["X-Request-ID"] for r in backend.api_requests} == {f"req-{i}" for i in range(10)}

    @pytest.mark.asyncio
    async def test_token_refreshed_near_expiry(self, engine, backend, clock):
        await engine.evaluate("loan-approval", {"income": 1})
        clock.advance(3500)
        await engine.evaluate("loan-approval", {"income": 1})
        assert len(backend.token_requests) == 1

        clock.advance(50)
        await engine.evaluate("loan-approval", {"income": 1})

        assert len(backend.token_requests) == 2
        assert backend.api_requests[-1].headers["Authorization"] == "Bearer token-for-service-user-1-2"

    @pytest.mark.asyncio
    async def test_rejected_assertion_stops_request(self, engine, backend):
        backend.reject_assertions = True

        with pytest.raises(AuthenticationError) as exc_info:
            await engine.evaluate("loan-approval", {"income": 1})

        assert exc_info.value.status_code == 401
        assert backend.api_requests == []
