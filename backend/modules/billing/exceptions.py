"""
Billing module exceptions.

These exceptions are raised by the billing coordinator and can be caught
by API error handlers to return appropriate HTTP responses.
"""

from shared.exceptions import ConsultLedgerError


class BillingError(ConsultLedgerError):
    """Base exception for billing-related errors."""

    pass


class OrderMissingDuringFinalizeError(BillingError):
    """Raised when an order disappears between the pre-read and the transaction."""

    def __init__(self, order_id: str):
        super().__init__(
            f"Order vanished while finalizing: {order_id}",
            code="ORDER_MISSING_DURING_FINALIZE",
            details={"order_id": order_id},
        )
