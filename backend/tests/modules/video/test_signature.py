"""Tests for webhook signature verification."""

import base64

import pytest

from modules.video.exceptions import WebhookVerificationError
from modules.video.signature import compute_signature, is_valid_signature, verify_webhook

BODY = b'{"type":"call.ended"}'
SECRET = "stream-secret"


@pytest.fixture
def digest():
    return compute_signature(BODY, SECRET)


class TestIsValidSignature:
    def test_hex(self, digest):
        assert is_valid_signature(BODY, digest.hex(), SECRET)

    def test_uppercase_hex(self, digest):
        assert is_valid_signature(BODY, digest.hex().upper(), SECRET)

    def test_prefixed_hex(self, digest):
        assert is_valid_signature(BODY, f"sha256={digest.hex()}", SECRET)

    def test_base64(self, digest):
        assert is_valid_signature(BODY, base64.b64encode(digest).decode(), SECRET)

    def test_wrong_secret(self, digest):
        assert not is_valid_signature(BODY, digest.hex(), "other-secret")

    def test_tampered_body(self, digest):
        assert not is_valid_signature(BODY + b" ", digest.hex(), SECRET)

    def test_empty_values(self, digest):
        assert not is_valid_signature(BODY, "", SECRET)
        assert not is_valid_signature(BODY, digest.hex(), "")


class TestVerifyWebhook:
    def test_accepts_valid_delivery(self, digest):
        verify_webhook(BODY, digest.hex(), "key", "key", SECRET)

    def test_api_key_mismatch(self, digest):
        with pytest.raises(WebhookVerificationError) as exc_info:
            verify_webhook(BODY, digest.hex(), "other", "key", SECRET)
        assert exc_info.value.code == "WEBHOOK_VERIFICATION_FAILED"

    def test_api_key_not_checked_when_unset(self, digest):
        verify_webhook(BODY, digest.hex(), "", "", SECRET)

    def test_bad_signature(self):
        with pytest.raises(WebhookVerificationError):
            verify_webhook(BODY, "deadbeef", "key", "key", SECRET)
