"""
Consultation module exceptions.

These exceptions are raised by the consultation module and can be caught
by API error handlers to return appropriate HTTP responses.
"""

from typing import TYPE_CHECKING, Optional

from shared.exceptions import ConsultLedgerError, ConflictError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from .models import ConsultationStatus


class ConsultationError(ConsultLedgerError):
    """Base exception for consultation-related errors."""

    pass


class OrderNotFoundError(NotFoundError):
    """Raised when a consultation order doesn't exist."""

    def __init__(self, order_id: str):
        super().__init__(
            f"Consultation order not found: {order_id}",
            code="ORDER_NOT_FOUND",
            details={"order_id": order_id},
        )


class OrderAccessDeniedError(ConsultationError):
    """Raised when a user touches an order that isn't theirs."""

    def __init__(self, order_id: str, user_id: str):
        super().__init__(
            "Access denied to consultation order",
            code="ORDER_ACCESS_DENIED",
            details={"order_id": order_id, "user_id": user_id},
        )


class InvalidTransitionError(ConflictError):
    """Raised when an order cannot move to the requested state."""

    def __init__(
        self,
        order_id: str,
        current: "ConsultationStatus",
        target: "ConsultationStatus",
    ):
        super().__init__(
            f"Order {order_id} cannot move from {current.value} to {target.value}",
            code="INVALID_TRANSITION",
            details={"order_id": order_id, "current": current.value, "target": target.value},
        )
        self.current = current
        self.target = target


class OrderStateConflictError(ConflictError):
    """
    Raised inside a transaction when the order is no longer in the state
    the operation expected (another trigger got there first).
    """

    def __init__(
        self,
        order_id: str,
        current: "ConsultationStatus",
        operation: str,
    ):
        super().__init__(
            f"Order {order_id} is {current.value}; cannot {operation}",
            code="ORDER_STATE_CONFLICT",
            details={"order_id": order_id, "status": current.value, "operation": operation},
        )
        self.current = current


class UnsupportedConsultationTypeError(ValidationError):
    """Raised when the expert has no rate for the requested type."""

    def __init__(self, consultation_type: str, expert_id: Optional[str] = None):
        super().__init__(
            f"Consultation type not offered: {consultation_type}",
            code="UNSUPPORTED_CONSULTATION_TYPE",
            details={"consultation_type": consultation_type, "expert_id": expert_id},
        )


class CallSetupError(ConsultationError):
    """Raised when the video call could not be created."""

    def __init__(self, order_id: str, reason: str):
        super().__init__(
            f"Could not set up call for order {order_id}: {reason}",
            code="CALL_SETUP_FAILED",
            details={"order_id": order_id, "reason": reason},
        )
