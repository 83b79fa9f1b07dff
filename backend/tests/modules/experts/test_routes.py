"""Tests for expert API endpoints."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import get_expert_service
from modules.experts.service import ExpertService
from tests.conftest import TEST_JWT_SECRET, create_test_token, seed_expert


@pytest.fixture
def client(store):
    app = create_app()
    app.dependency_overrides[get_expert_service] = lambda: ExpertService(store)
    return TestClient(app)


@pytest.fixture
def expert_headers():
    return {"Authorization": f"Bearer {create_test_token(user_id='expert-1')}"}


class TestExpertStore:
    """Tests for GET /api/experts/{expert_id}/store"""

    def test_public_store(self, client, store):
        """Should be readable without authentication."""
        seed_expert(store, "expert-1")

        response = client.get("/api/experts/expert-1/store")

        assert response.status_code == 200
        data = response.json()
        assert data["expert_id"] == "expert-1"
        assert data["consultation_status"] == "FREE"

    def test_unknown_expert(self, client):
        response = client.get("/api/experts/nobody/store")
        assert response.status_code == 404


class TestPresence:
    """Tests for PUT /api/experts/me/presence"""

    @patch("api.middleware.auth.get_settings")
    def test_go_offline(self, mock_settings, client, store, expert_headers):
        mock_settings.return_value.supabase_jwt_secret = TEST_JWT_SECRET
        seed_expert(store, "expert-1")

        response = client.put(
            "/api/experts/me/presence",
            json={"is_online": False},
            headers=expert_headers,
        )

        assert response.status_code == 200
        assert response.json()["consultation_status"] == "OFFLINE"

    def test_requires_auth(self, client):
        response = client.put("/api/experts/me/presence", json={"is_online": True})
        assert response.status_code == 401


class TestEarnings:
    """Tests for GET /api/experts/me/earnings"""

    @patch("api.middleware.auth.get_settings")
    def test_empty_earnings(self, mock_settings, client, expert_headers):
        mock_settings.return_value.supabase_jwt_secret = TEST_JWT_SECRET

        response = client.get("/api/experts/me/earnings", headers=expert_headers)

        assert response.status_code == 200
        assert response.json() == {"expert_id": "expert-1", "balances": {}, "recent": []}
