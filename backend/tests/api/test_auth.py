"""
Tests for JWT authentication middleware.
"""

import os
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from api import create_app
from api.dependencies import get_expert_service
from api.middleware.auth import AuthError, decode_token, get_user_from_payload
from api.models.user import TokenPayload
from modules.experts.service import ExpertService
from tests.conftest import TEST_JWT_SECRET, create_test_token

PROTECTED_PATH = "/api/experts/me/earnings"


@pytest.fixture
def client(store):
    app = create_app()
    app.dependency_overrides[get_expert_service] = lambda: ExpertService(store)
    return TestClient(app)


class TestAuthentication:

    @patch("api.middleware.auth.get_settings")
    def test_valid_token(self, mock_settings):
        """Valid token should decode successfully."""
        mock_settings.return_value.supabase_jwt_secret = TEST_JWT_SECRET
        payload = decode_token(create_test_token())
        assert payload.sub == "test-user-123"
        assert payload.email == "test@example.com"

    @patch("api.middleware.auth.get_settings")
    def test_expired_token(self, mock_settings):
        """Expired token should raise AuthError."""
        mock_settings.return_value.supabase_jwt_secret = TEST_JWT_SECRET
        with pytest.raises(AuthError) as exc_info:
            decode_token(create_test_token(expired=True))
        assert "expired" in str(exc_info.value.detail).lower()

    @patch("api.middleware.auth.get_settings")
    def test_invalid_token(self, mock_settings):
        """Invalid token should raise AuthError."""
        mock_settings.return_value.supabase_jwt_secret = TEST_JWT_SECRET
        with pytest.raises(AuthError) as exc_info:
            decode_token("invalid-token")
        assert "Invalid token" in str(exc_info.value.detail)

    @patch("api.middleware.auth.get_settings")
    def test_wrong_audience(self, mock_settings):
        """Tokens minted for another audience should be rejected."""
        mock_settings.return_value.supabase_jwt_secret = TEST_JWT_SECRET
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": "user-1",
                "email": "a@example.com",
                "aud": "anon",
                "exp": int((now + timedelta(hours=1)).timestamp()),
                "iat": int(now.timestamp()),
            },
            TEST_JWT_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(AuthError):
            decode_token(token)

    def test_missing_auth_header(self, client):
        """Request without auth header should return 401."""
        response = client.get(PROTECTED_PATH)
        assert response.status_code == 401

    @patch("api.middleware.auth.get_settings")
    def test_protected_route_with_valid_token(self, mock_settings, client):
        """Protected route should act on behalf of the token subject."""
        mock_settings.return_value.supabase_jwt_secret = TEST_JWT_SECRET
        response = client.get(
            PROTECTED_PATH,
            headers={"Authorization": f"Bearer {create_test_token(user_id='expert-9')}"},
        )
        assert response.status_code == 200
        assert response.json()["expert_id"] == "expert-9"

    @patch("api.middleware.auth.get_settings")
    def test_protected_route_with_expired_token(self, mock_settings, client):
        """Protected route should return 401 with expired token."""
        mock_settings.return_value.supabase_jwt_secret = TEST_JWT_SECRET
        response = client.get(
            PROTECTED_PATH,
            headers={"Authorization": f"Bearer {create_test_token(expired=True)}"},
        )
        assert response.status_code == 401
        assert "expired" in response.json()["detail"].lower()

    @patch("api.middleware.auth.get_settings")
    def test_missing_jwt_secret(self, mock_settings, client):
        """Missing JWT secret should return 401."""
        mock_settings.return_value.supabase_jwt_secret = ""
        response = client.get(
            PROTECTED_PATH,
            headers={"Authorization": f"Bearer {create_test_token()}"},
        )
        assert response.status_code == 401
        assert "not configured" in response.json()["detail"].lower()


class TestTokenPayloadConversion:

    def test_get_user_from_payload(self):
        """Should convert payload to AuthenticatedUser."""
        payload = TokenPayload(
            sub="user-123",
            email="test@example.com",
            email_confirmed_at="2024-01-01T00:00:00Z",
            aud="authenticated",
            exp=9999999999,
            iat=1704067200,
            role="authenticated",
        )
        user = get_user_from_payload(payload)
        assert user.id == "user-123"
        assert user.email == "test@example.com"
        assert user.email_verified is True
        assert user.role == "user"

    def test_get_user_from_payload_custom_role(self):
        payload = TokenPayload(
            sub="admin-1",
            email="ops@example.com",
            aud="authenticated",
            exp=9999999999,
            iat=1704067200,
            role="service_role",
        )
        assert get_user_from_payload(payload).role == "service_role"

    def test_get_user_from_payload_unverified_email(self):
        """Should handle unverified email correctly."""
        payload = TokenPayload(
            sub="user-456",
            email="unverified@example.com",
            email_confirmed_at=None,
            aud="authenticated",
            exp=9999999999,
            iat=1704067200,
        )
        user = get_user_from_payload(payload)
        assert user.id == "user-456"
        assert user.email_verified is False


# Integration test that uses real JWT secret from environment
@pytest.mark.skipif(
    not os.environ.get("SUPABASE_JWT_SECRET"),
    reason="SUPABASE_JWT_SECRET not set"
)
class TestAuthIntegration:
    """Integration tests using real Supabase JWT secret from environment."""

    def test_real_jwt_secret_rejects_wrong_secret(self, client):
        """Token signed with wrong secret should be rejected."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": "intruder",
            "email": "intruder@example.com",
            "aud": "authenticated",
            "exp": int((now + timedelta(hours=1)).timestamp()),
            "iat": int(now.timestamp()),
        }
        token = jwt.encode(payload, "this-is-not-the-real-secret", algorithm="HS256")

        response = client.get(PROTECTED_PATH, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert "Invalid token" in response.json()["detail"]
