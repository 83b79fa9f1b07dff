"""Tests for the video platform webhook endpoint."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import get_webhook_handler
from modules.video.signature import compute_signature
from modules.webhooks.models import WebhookOutcome, WebhookResult
from shared.models import Trigger

API_KEY = "stream-key"
API_SECRET = "stream-secret"


def signed(body: bytes, secret: str = API_SECRET) -> dict:
    return {
        "X-Signature": compute_signature(body, secret).hex(),
        "X-Api-Key": API_KEY,
        "Content-Type": "application/json",
    }


@pytest.fixture
def mock_handler():
    handler = MagicMock()
    handler.handle = AsyncMock(
        return_value=WebhookResult(
            status=WebhookOutcome.PROCESSED,
            event_type="call.ended",
            order_id="order-1",
        )
    )
    return handler


@pytest.fixture
def client(mock_handler):
    app = create_app()
    app.dependency_overrides[get_webhook_handler] = lambda: mock_handler
    return TestClient(app)


@pytest.fixture(autouse=True)
def stream_settings():
    with patch("modules.webhooks.routes.get_settings") as mock_settings:
        mock_settings.return_value.stream_api_key = API_KEY
        mock_settings.return_value.stream_api_secret = API_SECRET
        yield mock_settings


class TestStreamWebhook:
    """Tests for POST /api/webhooks/stream"""

    def test_valid_signature(self, client, mock_handler):
        """A signed event should be dispatched with a webhook context."""
        body = json.dumps({"type": "call.ended", "call_cid": "consultation_audio:order-1"}).encode()

        response = client.post("/api/webhooks/stream", content=body, headers=signed(body))

        assert response.status_code == 200
        assert response.json()["status"] == "processed"
        payload, ctx = mock_handler.handle.call_args[0]
        assert payload["call_cid"] == "consultation_audio:order-1"
        assert ctx.trigger == Trigger.WEBHOOK

    def test_bad_signature(self, client, mock_handler):
        body = json.dumps({"type": "call.ended"}).encode()

        response = client.post(
            "/api/webhooks/stream", content=body, headers=signed(body, secret="wrong")
        )

        assert response.status_code == 401
        mock_handler.handle.assert_not_called()

    def test_missing_signature(self, client):
        response = client.post(
            "/api/webhooks/stream",
            content=b"{}",
            headers={"X-Api-Key": API_KEY},
        )
        assert response.status_code == 401

    def test_invalid_json(self, client, mock_handler):
        body = b"not json"

        response = client.post("/api/webhooks/stream", content=body, headers=signed(body))

        assert response.status_code == 400
        mock_handler.handle.assert_not_called()

    def test_non_object_body(self, client):
        body = b"[1, 2]"

        response = client.post("/api/webhooks/stream", content=body, headers=signed(body))

        assert response.status_code == 400
