"""Tests for the code-auditor HTTP API."""

import pytest
from httpx import AsyncClient, ASGITransport

from code_auditor.config import AuditConfig
from code_auditor.errors import (
    CodeTooLarge,
    EmptyFix,
    InvalidScore,
    MissingCredential,
    RateLimitExceeded,
    Timeout,
    UpstreamRateLimited,
)
from code_auditor.main import app, get_orchestrator, status_for
from code_auditor.orchestrator import AuditOrchestrator

from conftest import SAMPLE_CODE, FakeOracle, engine_response


@pytest.fixture
def api_orchestrator():
    oracle = FakeOracle(engine_response())
    orchestrator = AuditOrchestrator(
        AuditConfig(api_key="AI-test-key", rate_limit_per_minute=2, timeout_ms=1000),
        oracle=oracle,
    )
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield orchestrator
    app.dependency_overrides.clear()


@pytest.fixture
def test_client(api_orchestrator):
    """Create async test client for FastAPI."""
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestHealthEndpoint:
    """Test /health endpoint."""

    async def test_health_returns_ok(self, test_client):
        async with test_client as client:
            response = await client.get("/health")

            assert response.status_code == 200
            assert response.json() == {"status": "ok"}


class TestScanEndpoint:
    """Test /scan endpoint."""

    async def test_scan_returns_camel_case_result(self, test_client):
        async with test_client as client:
            response = await client.post(
                "/scan", json={"code": SAMPLE_CODE, "fileName": "server.js"}
            )

            assert response.status_code == 200
            data = response.json()
            assert data["fileName"] == "server.js"
            assert data["code"] == SAMPLE_CODE
            assert data["score"] == 40
            assert data["findings"][0]["lineStart"] == 4
            assert data["findings"][0]["attackScenario"] == "GET /user?id=1 OR 1=1"
            assert data["findings"][0]["severity"] == "Critical"

    async def test_empty_code_is_400(self, test_client):
        async with test_client as client:
            response = await client.post("/scan", json={"code": "", "fileName": "server.js"})

            assert response.status_code == 400
            error = response.json()["error"]
            assert error["code"] == "EMPTY_CODE"
            assert error["category"] == "input"

    async def test_rate_limit_by_client_header(self, test_client):
        body = {"code": SAMPLE_CODE, "fileName": "server.js", "skipCache": True}
        async with test_client as client:
            for remaining in ("1", "0"):
                response = await client.post("/scan", json=body, headers={"X-Client-Id": "alice"})
                assert response.status_code == 200
                assert response.headers["X-RateLimit-Remaining"] == remaining

            response = await client.post("/scan", json=body, headers={"X-Client-Id": "alice"})
            assert response.status_code == 429
            assert response.headers["Retry-After"] == "60"
            assert response.json()["error"]["details"] == {"limit": 2, "window_seconds": 60.0}

            response = await client.post("/scan", json=body, headers={"X-Client-Id": "bob"})
            assert response.status_code == 200

    async def test_client_id_in_body_wins(self, test_client, api_orchestrator):
        body = {"code": SAMPLE_CODE, "fileName": "server.js", "clientId": "carol"}
        async with test_client as client:
            await client.post("/scan", json=body, headers={"X-Client-Id": "alice"})

        assert api_orchestrator.rate_limiter.remaining("carol") == 1
        assert api_orchestrator.rate_limiter.remaining("alice") == 2


class TestFixEndpoint:
    """Test /fix endpoint."""

    async def test_fix_round_trip(self, test_client, api_orchestrator):
        api_orchestrator.gateway._oracle = FakeOracle(engine_response(), f"```js\n{SAMPLE_CODE}```")
        async with test_client as client:
            scan = await client.post("/scan", json={"code": SAMPLE_CODE, "fileName": "server.js"})
            findings = scan.json()["findings"]

            response = await client.post(
                "/fix",
                json={"code": SAMPLE_CODE, "fileName": "server.js", "findings": findings},
            )

            assert response.status_code == 200
            assert response.json() == {"fixedCode": SAMPLE_CODE.strip()}

    async def test_fix_without_findings_is_400(self, test_client):
        async with test_client as client:
            response = await client.post(
                "/fix", json={"code": SAMPLE_CODE, "fileName": "server.js", "findings": []}
            )

            assert response.status_code == 400
            assert response.json()["error"]["code"] == "NO_VULNERABILITIES"


class TestStatsAndClear:
    """Test /stats and /clear endpoints."""

    async def test_stats_and_clear(self, test_client):
        async with test_client as client:
            await client.post("/scan", json={"code": SAMPLE_CODE, "fileName": "server.js"})

            stats = (await client.get("/stats")).json()
            assert stats["cacheSize"] == 1
            assert stats["rateLimitEntries"] == 1
            assert "api_key" not in stats["config"]

            response = await client.post("/clear")
            assert response.json() == {"status": "cleared"}

            stats = (await client.get("/stats")).json()
            assert stats["cacheSize"] == 0
            assert stats["rateLimitEntries"] == 0


class TestStatusMapping:
    """Test HTTP status codes per error kind."""

    @pytest.mark.parametrize(
        "error,status",
        [
            (CodeTooLarge(size=10, limit=5), 400),
            (RateLimitExceeded(limit=10, window_seconds=60), 429),
            (MissingCredential(), 500),
            (Timeout(timeout_seconds=30), 504),
            (UpstreamRateLimited(), 503),
            (InvalidScore(150), 502),
            (EmptyFix(), 422),
        ],
    )
    def test_status_for(self, error, status):
        assert status_for(error) == status
