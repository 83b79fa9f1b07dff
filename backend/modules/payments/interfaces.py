"""
Payment module interface.

The wallet module funds recharges through IPaymentGateway. Billing math
never depends on the gateway.
"""

from decimal import Decimal
from typing import Protocol, runtime_checkable

from .models import GatewayOrder


@runtime_checkable
class IPaymentGateway(Protocol):
    """Interface to the payment gateway."""

    async def create_order(self, amount: Decimal, currency: str, receipt: str) -> GatewayOrder:
        """
        Create a gateway order for the client to pay.

        Raises:
            PaymentGatewayError: If the gateway rejects the request
        """
        ...

    def verify_payment(self, gateway_order_id: str, payment_id: str, signature: str) -> bool:
        """Check the checkout signature for a completed payment."""
        ...
