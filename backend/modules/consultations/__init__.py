"""
Consultations module.

Handles the on-demand consultation order lifecycle: initiation, presence
tracking, heartbeats, ending and cancellation.

Public API:
- IConsultationService: Interface for order lifecycle operations
- ConsultationOrder: The persisted order
- ConsultationStatus: Order lifecycle states
- Interval overlap helpers for billable time
"""

from .interfaces import IConsultationService
from .models import (
    ORDER_TYPE,
    ActiveCallResponse,
    ConsultationOrder,
    ConsultationStatus,
    ConsultationType,
    EndConsultationResponse,
    ExtendDurationResponse,
    HeartbeatAction,
    HeartbeatReason,
    HeartbeatResponse,
    InitiateConsultationRequest,
    InitiateConsultationResponse,
    ParticipantEventResult,
    ParticipantInterval,
    ParticipantRole,
)
from .intervals import coarse_billable_seconds, overlap_seconds
from .exceptions import (
    ConsultationError,
    OrderNotFoundError,
    OrderAccessDeniedError,
    InvalidTransitionError,
    OrderStateConflictError,
    UnsupportedConsultationTypeError,
    CallSetupError,
)

__all__ = [
    # Interface
    "IConsultationService",
    # Models
    "ORDER_TYPE",
    "ActiveCallResponse",
    "ConsultationOrder",
    "ConsultationStatus",
    "ConsultationType",
    "EndConsultationResponse",
    "ExtendDurationResponse",
    "HeartbeatAction",
    "HeartbeatReason",
    "HeartbeatResponse",
    "InitiateConsultationRequest",
    "InitiateConsultationResponse",
    "ParticipantEventResult",
    "ParticipantInterval",
    "ParticipantRole",
    # Intervals
    "coarse_billable_seconds",
    "overlap_seconds",
    # Exceptions
    "ConsultationError",
    "OrderNotFoundError",
    "OrderAccessDeniedError",
    "InvalidTransitionError",
    "OrderStateConflictError",
    "UnsupportedConsultationTypeError",
    "CallSetupError",
]
