"""Tests for the Razorpay gateway client."""

import hashlib
import hmac
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from modules.payments.exceptions import PaymentGatewayError
from modules.payments.razorpay import RazorpayGateway, to_minor_units
from shared.config import Settings


@pytest.fixture
def settings():
    return Settings(razorpay_key_id="rzp_test_1", razorpay_key_secret="secret")


def sign(order_id: str, payment_id: str, secret: str = "secret") -> str:
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def mock_async_client(response=None, error=None):
    """Patchable stand-in for httpx.AsyncClient used as a context manager."""
    client = MagicMock()
    if error is not None:
        client.post = AsyncMock(side_effect=error)
    else:
        client.post = AsyncMock(return_value=response)
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=client)
    context.__aexit__ = AsyncMock(return_value=False)
    return context, client


class TestToMinorUnits:
    def test_converts_to_paise(self):
        assert to_minor_units(Decimal("500")) == 50000
        assert to_minor_units(Decimal("10.005")) == 1001


class TestVerifyPayment:
    def test_valid_signature(self, settings):
        gateway = RazorpayGateway(settings)
        assert gateway.verify_payment("order_1", "pay_1", sign("order_1", "pay_1"))

    def test_invalid_signature(self, settings):
        gateway = RazorpayGateway(settings)
        assert not gateway.verify_payment("order_1", "pay_1", sign("order_1", "pay_2"))

    def test_empty_signature(self, settings):
        gateway = RazorpayGateway(settings)
        assert not gateway.verify_payment("order_1", "pay_1", "")

    def test_not_configured(self):
        gateway = RazorpayGateway(Settings(razorpay_key_id="", razorpay_key_secret=""))
        assert not gateway.is_configured
        assert not gateway.verify_payment("order_1", "pay_1", sign("order_1", "pay_1"))


class TestCreateOrder:
    @pytest.mark.asyncio
    async def test_creates_order(self, settings):
        """Should post the amount in minor units and map the response."""
        response = MagicMock()
        response.json.return_value = {"id": "order_gw_1"}
        context, client = mock_async_client(response=response)

        with patch("modules.payments.razorpay.httpx.AsyncClient", return_value=context):
            order = await RazorpayGateway(settings).create_order(Decimal("500"), "INR", "tx-1")

        assert order.gateway_order_id == "order_gw_1"
        assert order.key_id == "rzp_test_1"
        _, kwargs = client.post.call_args
        assert kwargs["json"] == {"amount": 50000, "currency": "INR", "receipt": "tx-1"}
        assert kwargs["auth"] == ("rzp_test_1", "secret")

    @pytest.mark.asyncio
    async def test_http_error(self, settings):
        """Transport failures should surface as PaymentGatewayError."""
        context, _ = mock_async_client(error=httpx.ConnectError("refused"))

        with patch("modules.payments.razorpay.httpx.AsyncClient", return_value=context):
            with pytest.raises(PaymentGatewayError):
                await RazorpayGateway(settings).create_order(Decimal("500"), "INR", "tx-1")

    @pytest.mark.asyncio
    async def test_not_configured(self):
        gateway = RazorpayGateway(Settings(razorpay_key_id="", razorpay_key_secret=""))
        with pytest.raises(PaymentGatewayError):
            await gateway.create_order(Decimal("500"), "INR", "tx-1")
