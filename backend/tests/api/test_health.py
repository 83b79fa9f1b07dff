"""Tests for health check endpoints."""

from unittest.mock import PropertyMock, patch

import pytest
from fastapi.testclient import TestClient

from api import create_app
from api.dependencies import ServiceContainer


@pytest.fixture
def client():
    return TestClient(create_app())


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client):
        """Health endpoint should return 200 with status."""
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"

    def test_health_response_structure(self, client):
        """Health response should have correct structure."""
        data = client.get("/api/health").json()
        assert set(data.keys()) == {"status", "version"}

    def test_readiness_check(self, client):
        """Readiness should report the store and optional integrations."""
        with patch.object(ServiceContainer, "video", new_callable=PropertyMock, return_value=None), \
                patch.object(ServiceContainer, "payments", new_callable=PropertyMock, return_value=None):
            response = client.get("/api/ready")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ready",
            "document_store": "memory",
            "video_platform": "not_configured",
            "payment_gateway": "not_configured",
        }

    def test_readiness_store_unavailable(self, client):
        """A store that fails to initialize should make the service not ready."""
        with patch.object(
            ServiceContainer,
            "document_store",
            new_callable=PropertyMock,
            side_effect=RuntimeError("no credentials"),
        ):
            response = client.get("/api/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "not_ready"
        assert response.json()["document_store"] == "unavailable"
