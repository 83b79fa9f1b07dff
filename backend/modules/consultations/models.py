"""
Consultation module data models.

These models define the on-demand consultation order, its participant
presence intervals, and the request/response shapes of the consultation
endpoints.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

ORDER_TYPE = "ON_DEMAND_CONSULTATION"


class ConsultationType(str, Enum):
    """Medium of the consultation."""

    AUDIO = "audio"
    VIDEO = "video"
    CHAT = "chat"


class ConsultationStatus(str, Enum):
    """Consultation order lifecycle states."""

    INITIATED = "INITIATED"    # Created, waiting for both parties
    CONNECTED = "CONNECTED"    # Both parties present, billing clock running
    COMPLETED = "COMPLETED"    # Finalized and charged
    FAILED = "FAILED"          # Never connected (setup failure or timeout)
    CANCELLED = "CANCELLED"    # Cancelled before connecting
    TERMINATED = "TERMINATED"  # Force-ended by the sweep, awaiting finalize

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        """Holds the expert (INITIATED, CONNECTED, or TERMINATED awaiting finalize)."""
        return self in ACTIVE_STATUSES


TERMINAL_STATUSES = frozenset(
    {ConsultationStatus.COMPLETED, ConsultationStatus.FAILED, ConsultationStatus.CANCELLED}
)
ACTIVE_STATUSES = frozenset(
    {ConsultationStatus.INITIATED, ConsultationStatus.CONNECTED, ConsultationStatus.TERMINATED}
)
FINALIZABLE_STATUSES = frozenset({ConsultationStatus.CONNECTED, ConsultationStatus.TERMINATED})


class ParticipantRole(str, Enum):
    USER = "user"
    EXPERT = "expert"


class ParticipantInterval(BaseModel):
    """One presence span. left_at is None only for the currently open span."""

    joined_at: datetime
    left_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.left_at is None


class ConsultationOrder(BaseModel):
    """
    An on-demand consultation order.

    Commercial terms are fixed when the order is created. Billing outputs
    are written exactly once, when the order is finalized.
    """

    model_config = {"extra": "ignore"}

    # Identity
    order_id: str = Field(..., description="Order ID")
    user_id: str = Field(..., description="Paying user")
    expert_id: str = Field(..., description="Consulted expert")
    type: str = Field(default=ORDER_TYPE)

    # Commercial terms
    consultation_type: ConsultationType
    category: Optional[str] = Field(None, description="Expert category at creation")
    rate_per_minute: Decimal = Field(..., description="Per-minute rate")
    currency: str = Field(..., description="ISO currency code")
    platform_fee_percent: Decimal = Field(..., description="Platform fee percent")

    # Lifecycle
    status: ConsultationStatus = Field(default=ConsultationStatus.INITIATED)
    max_allowed_duration: int = Field(..., ge=0, description="Billable seconds the wallet covers")
    created_at: datetime
    start_time: Optional[datetime] = Field(None, description="First dual presence")
    end_time: Optional[datetime] = None
    failure_reason: Optional[str] = None

    # Presence tracking
    user_joined_at: Optional[datetime] = None
    expert_joined_at: Optional[datetime] = None
    both_participants_joined_at: Optional[datetime] = None
    user_intervals: list[ParticipantInterval] = Field(default_factory=list)
    expert_intervals: list[ParticipantInterval] = Field(default_factory=list)

    # External correlation
    stream_call_cid: Optional[str] = None

    # Billing outputs
    duration_seconds: Optional[int] = Field(None, description="Billable seconds")
    cost: Optional[Decimal] = None
    platform_fee_amount: Optional[Decimal] = None
    expert_earnings: Optional[Decimal] = None
    effective_real_amount: Optional[Decimal] = None
    billing_trigger: Optional[str] = Field(None, description="Trigger that finalized the order")

    def elapsed_seconds(self, now: datetime) -> int:
        """Whole seconds since the billing clock started (0 if not started)."""
        if self.start_time is None:
            return 0
        return max(0, int((now - self.start_time).total_seconds()))

    def role_of(self, participant_id: str) -> Optional[ParticipantRole]:
        if participant_id == self.user_id:
            return ParticipantRole.USER
        if participant_id == self.expert_id:
            return ParticipantRole.EXPERT
        return None


# ---------------------------------------------------------------------------
# Requests and responses
# ---------------------------------------------------------------------------


class InitiateConsultationRequest(BaseModel):
    """Request to start an on-demand consultation."""

    expert_id: str = Field(..., min_length=1)
    consultation_type: ConsultationType


class InitiateConsultationResponse(BaseModel):
    order_id: str
    status: ConsultationStatus
    stream_call_cid: str
    rate_per_minute: Decimal
    currency: str
    max_allowed_duration: int


class HeartbeatAction(str, Enum):
    CONTINUE = "CONTINUE"
    TERMINATE = "TERMINATE"


class HeartbeatReason(str, Enum):
    NOT_CONNECTED = "NOT_CONNECTED"
    LOW_BALANCE = "LOW_BALANCE"


class HeartbeatResponse(BaseModel):
    """Advice to the client on whether to keep the call going."""

    order_id: str
    action: HeartbeatAction
    reason: Optional[HeartbeatReason] = None
    status: ConsultationStatus
    remaining_seconds: int = 0
    elapsed_seconds: int = 0


class ExtendDurationResponse(BaseModel):
    order_id: str
    max_allowed_duration: int
    remaining_seconds: int


class ActiveCallResponse(BaseModel):
    has_active_call: bool
    order: Optional[ConsultationOrder] = None


class EndConsultationResponse(BaseModel):
    order_id: str
    status: ConsultationStatus
    duration_seconds: int = 0
    cost: Decimal = Decimal("0")
    already_finalized: bool = False


class ParticipantEventResult(BaseModel):
    """Outcome of applying a participant join/leave to an order."""

    order_id: str
    status: ConsultationStatus
    applied: bool = Field(..., description="Whether the event changed the order")
    connected: bool = Field(default=False, description="This event started the billing clock")
