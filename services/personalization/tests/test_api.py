"""
API envelope and infrastructure tests.

Tests:
- Envelope shape (success/error)
- requestId on every response
- Health check endpoint
- 404 and 422 error envelopes
"""

import pytest


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class TestHealthEndpoint:
    """GET /health returns envelope with status and version."""

    @pytest.mark.asyncio
    async def test_health_returns_200(self, client):
        response = await client.get("/health")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_envelope_shape(self, client):
        body = (await client.get("/health")).json()
        assert body["success"] is True
        assert body["data"]["status"] == "healthy"
        assert body["data"]["service"] == "aurora-personalization"
        assert "version" in body["data"]
        assert body["data"]["rateLimiting"] is True
        assert body["data"]["limits"]["maxFeedCandidates"] == 500

    @pytest.mark.asyncio
    async def test_cors_preflight_exposes_rate_limit_headers(self, client):
        response = await client.options(
            "/feed/rank",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


# ---------------------------------------------------------------------------
# Envelope shape
# ---------------------------------------------------------------------------

class TestAPIEnvelope:
    """All responses follow {success, data|error, requestId} shape."""

    @pytest.mark.asyncio
    async def test_404_error_envelope(self, client):
        response = await client.get("/nonexistent-route")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "NOT_FOUND"
        assert "message" in body["error"]
        assert body["requestId"] == response.headers["x-request-id"]

    @pytest.mark.asyncio
    async def test_custom_request_id_echoed(self, client):
        custom_id = "test-req-12345"
        response = await client.get("/health", headers={"x-request-id": custom_id})
        assert response.headers["x-request-id"] == custom_id
        assert response.json()["requestId"] == custom_id

    @pytest.mark.asyncio
    async def test_auto_generated_request_id(self, client):
        response = await client.get("/health")
        req_id = response.headers.get("x-request-id")
        assert req_id
        assert response.json()["requestId"] == req_id


class TestValidationErrors:
    @pytest.mark.asyncio
    async def test_malformed_body_is_422_envelope(self, client):
        response = await client.post("/feed/rank", json={"candidates": []})
        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert "profile" in body["error"]["message"]
        assert body["requestId"] == response.headers["x-request-id"]

    @pytest.mark.asyncio
    async def test_non_json_body_is_422(self, client):
        response = await client.post(
            "/notifications/score",
            content=b"not json",
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
