"""
Razorpay payment gateway client.

Orders are created through the REST API with basic auth. Checkout
signatures are HMAC-SHA256 of "{order_id}|{payment_id}" keyed with the
key secret, hex encoded.
"""

import hashlib
import hmac
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import httpx

from shared.config import Settings, get_settings

from .exceptions import PaymentGatewayError
from .models import GatewayOrder

logger = logging.getLogger(__name__)


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount (rupees) to minor units (paise)."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class RazorpayGateway:
    """IPaymentGateway implementation backed by Razorpay."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self._key_id = settings.razorpay_key_id
        self._key_secret = settings.razorpay_key_secret
        self._base_url = settings.razorpay_api_base_url.rstrip("/")

    @property
    def is_configured(self) -> bool:
        return bool(self._key_id and self._key_secret)

    async def create_order(self, amount: Decimal, currency: str, receipt: str) -> GatewayOrder:
        if not self.is_configured:
            raise PaymentGatewayError("Razorpay credentials not configured")

        payload = {
            "amount": to_minor_units(amount),
            "currency": currency,
            "receipt": receipt,
        }
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self._base_url}/orders",
                    json=payload,
                    auth=(self._key_id, self._key_secret),
                    timeout=15.0,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise PaymentGatewayError("Failed to create payment order", gateway_error=str(e))

        logger.info(f"Created Razorpay order {data['id']} for receipt {receipt}")
        return GatewayOrder(
            gateway_order_id=data["id"],
            amount=amount,
            currency=currency,
            receipt=receipt,
            key_id=self._key_id,
        )

    def verify_payment(self, gateway_order_id: str, payment_id: str, signature: str) -> bool:
        if not self._key_secret or not signature:
            return False
        message = f"{gateway_order_id}|{payment_id}".encode("utf-8")
        expected = hmac.new(self._key_secret.encode("utf-8"), message, hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected, signature)
