"""
Test suite for health endpoints and request middleware.

System role: Verification of liveness and readiness checks and correlation ids
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine

from kb_engine import __version__
from kb_engine.api.deps import get_service_cache
from kb_engine.api.main import create_app
from kb_engine.application.container import ServiceContainer
from kb_engine.observability.middleware import CORRELATION_HEADER


@pytest.fixture
def client():
    app = create_app()
    return TestClient(app)


def use_database(client: TestClient, url: str) -> None:
    container = ServiceContainer(engine=create_async_engine(url))
    client.app.dependency_overrides[get_service_cache] = lambda: container


class TestHealthEndpoints:
    """Test suite for /health routes."""

    def test_health_check(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "message": "Server Healthy",
            "version": __version__,
        }

    def test_health_check_db(self, client):
        # Arrange
        use_database(client, "sqlite+aiosqlite:///:memory:")

        # Act
        response = client.get("/api/v1/health/db")

        # Assert
        assert response.status_code == 200
        assert response.json()["message"] == "Database connection OK"

    def test_health_check_db_should_report_unavailable_database(self, client, tmp_path):
        # Arrange
        use_database(client, f"sqlite+aiosqlite:///{tmp_path}/missing/dir/kb.db")

        # Act
        response = client.get("/api/v1/health/db")

        # Assert
        assert response.status_code == 503
        assert response.json()["detail"] == "Database unavailable"


class TestCorrelationMiddleware:
    """Test suite for correlation id propagation."""

    def test_response_should_echo_incoming_correlation_id(self, client):
        response = client.get("/api/v1/health", headers={CORRELATION_HEADER: "req-123"})
        assert response.headers[CORRELATION_HEADER] == "req-123"

    def test_response_should_generate_correlation_id(self, client):
        response = client.get("/api/v1/health")
        assert response.headers.get(CORRELATION_HEADER)
