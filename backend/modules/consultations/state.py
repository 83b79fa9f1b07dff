"""
Consultation order state machine.

INITIATED -> CONNECTED | FAILED | CANCELLED
CONNECTED -> COMPLETED | TERMINATED
TERMINATED -> COMPLETED

COMPLETED, FAILED and CANCELLED admit no further transition.
"""

from .exceptions import InvalidTransitionError
from .models import ConsultationOrder, ConsultationStatus

ALLOWED_TRANSITIONS: dict[ConsultationStatus, frozenset[ConsultationStatus]] = {
    ConsultationStatus.INITIATED: frozenset(
        {ConsultationStatus.CONNECTED, ConsultationStatus.FAILED, ConsultationStatus.CANCELLED}
    ),
    ConsultationStatus.CONNECTED: frozenset(
        {ConsultationStatus.COMPLETED, ConsultationStatus.TERMINATED}
    ),
    ConsultationStatus.TERMINATED: frozenset({ConsultationStatus.COMPLETED}),
    ConsultationStatus.COMPLETED: frozenset(),
    ConsultationStatus.FAILED: frozenset(),
    ConsultationStatus.CANCELLED: frozenset(),
}


def can_transition(current: ConsultationStatus, target: ConsultationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(order: ConsultationOrder, target: ConsultationStatus) -> None:
    """
    Raise unless the order may move to target.

    Raises:
        InvalidTransitionError: If the transition is not allowed
    """
    if not can_transition(order.status, target):
        raise InvalidTransitionError(order.order_id, order.status, target)


def transition(order: ConsultationOrder, target: ConsultationStatus, **fields) -> ConsultationOrder:
    """Return a copy of the order in the target state with extra fields set."""
    ensure_transition(order, target)
    return order.model_copy(update={"status": target, **fields})
