"""
Tests for app/main.py - FastAPI application, error envelope and health checks.
"""
import pytest
from unittest.mock import AsyncMock, patch
from fastapi import status
from fastapi.testclient import TestClient


@pytest.fixture
def client(mock_db_session):
    from app.api.deps import get_db
    from app.main import app

    async def override_get_db():
        yield mock_db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealthEndpoint:
    """Test application health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_check_healthy(self):
        """Health check should return healthy when DB is connected."""
        from app.main import health_check

        with patch("app.main.check_db_connection", new_callable=AsyncMock) as mock_db:
            mock_db.return_value = True

            response = await health_check()

        assert response.status == "healthy"
        assert response.service == "bizabode-backend"
        assert response.checks == {"database": True}

    @pytest.mark.asyncio
    async def test_health_check_unhealthy_when_db_down(self):
        from app.main import health_check
        from fastapi.responses import JSONResponse

        with patch("app.main.check_db_connection", new_callable=AsyncMock) as mock_db:
            mock_db.return_value = False

            response = await health_check()

        assert isinstance(response, JSONResponse)
        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    def test_health_over_http(self, client):
        with patch("app.main.check_db_connection", new_callable=AsyncMock, return_value=True):
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestErrorEnvelope:

    def test_unknown_route(self, client):
        response = client.get("/api/v1/nowhere")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"]["type"] == "NOT_FOUND_ERROR"
        assert body["error"]["timestamp"].endswith("Z")

    def test_missing_token(self, client):
        response = client.get("/api/v1/crm/leads")

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "No token provided"

    def test_request_validation(self, client):
        response = client.post("/api/v1/auth/login", json={})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["type"] == "VALIDATION_ERROR"
        assert error["message"] == "Request validation failed"
        assert {detail["field"] for detail in error["details"]} >= {"email", "password"}

    def test_request_id_matches_header(self, client):
        response = client.get("/api/v1/nowhere")

        request_id = response.headers["x-request-id"]
        assert request_id
        assert response.json()["error"]["request_id"] == request_id


class TestApplication:

    def test_root(self, client):
        assert client.get("/").json() == {"message": "Welcome to the Bizabode API"}

    def test_security_headers(self, client):
        response = client.get("/")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_email_webhook_challenge(self, client):
        response = client.get("/api/v1/integrations/email-webhook", params={"challenge": "abc123"})

        assert response.status_code == 200
        assert response.text == "abc123"

    def test_email_webhook_status(self, client):
        response = client.get("/api/v1/integrations/email-webhook")

        assert response.json()["message"] == "Email webhook endpoint is active"

    def test_incoming_request_id_is_reused(self, client):
        response = client.get("/", headers={"X-Request-ID": "req-123"})

        assert response.headers["x-request-id"] == "req-123"
