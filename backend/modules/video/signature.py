"""
Webhook signature verification for the video platform.

The platform signs the raw request body with HMAC-SHA256 using the API
secret. Depending on the delivery path the signature arrives as plain
hex, hex with a "sha256=" prefix, or base64.
"""

import base64
import hashlib
import hmac

from .exceptions import WebhookVerificationError


def compute_signature(body: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()


def is_valid_signature(body: bytes, signature: str, secret: str) -> bool:
    """Check a webhook signature in any of the accepted encodings."""
    if not signature or not secret:
        return False

    digest = compute_signature(body, secret)
    expected_hex = digest.hex()
    candidate = signature.strip()
    if candidate.startswith("sha256="):
        candidate = candidate[len("sha256="):]

    if hmac.compare_digest(expected_hex, candidate.lower()):
        return True
    return hmac.compare_digest(base64.b64encode(digest).decode("ascii"), signature.strip())


def verify_webhook(
    body: bytes,
    signature: str,
    api_key: str,
    expected_api_key: str,
    secret: str,
) -> None:
    """
    Verify a webhook delivery.

    Raises:
        WebhookVerificationError: If the API key or signature is wrong
    """
    if expected_api_key and api_key != expected_api_key:
        raise WebhookVerificationError("Webhook API key mismatch")
    if not is_valid_signature(body, signature, secret):
        raise WebhookVerificationError()
