"""
Payment module exceptions.
"""

from typing import Optional

from shared.exceptions import ExternalServiceError


class PaymentGatewayError(ExternalServiceError):
    """Raised when the payment gateway API fails."""

    def __init__(self, message: str, gateway_error: Optional[str] = None):
        super().__init__(
            message,
            service="razorpay",
            code="PAYMENT_GATEWAY_ERROR",
            details={"gateway_error": gateway_error} if gateway_error else {},
        )
