"""
Video platform webhook event models.

Events are discriminated on ``type``. Only the call lifecycle events that
drive billing are modelled; anything else is acknowledged and ignored.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


class WebhookUser(BaseModel):
    model_config = {"extra": "ignore"}

    id: Optional[str] = None


class WebhookParticipant(BaseModel):
    model_config = {"extra": "ignore"}

    user: Optional[WebhookUser] = None
    user_session_id: Optional[str] = None
    joined_at: Optional[datetime] = None
    left_at: Optional[datetime] = None


class WebhookCall(BaseModel):
    model_config = {"extra": "ignore"}

    cid: Optional[str] = None


class WebhookCallSession(BaseModel):
    model_config = {"extra": "ignore"}

    call: Optional[WebhookCall] = None


class StreamEvent(BaseModel):
    """Fields shared by every call event."""

    model_config = {"extra": "ignore"}

    created_at: Optional[datetime] = Field(None, description="When the platform emitted the event")
    call_cid: Optional[str] = None
    call: Optional[WebhookCall] = None
    call_session: Optional[WebhookCallSession] = None

    @property
    def resolved_call_cid(self) -> Optional[str]:
        """The call CID, wherever this event type carries it."""
        if self.call_cid:
            return self.call_cid
        if self.call is not None and self.call.cid:
            return self.call.cid
        if self.call_session is not None and self.call_session.call is not None:
            return self.call_session.call.cid
        return None


class ParticipantEvent(StreamEvent):
    participant: Optional[WebhookParticipant] = None

    @property
    def participant_id(self) -> Optional[str]:
        if self.participant is None or self.participant.user is None:
            return None
        return self.participant.user.id


class ParticipantJoinedEvent(ParticipantEvent):
    type: Literal["call.session_participant_joined"]


class ParticipantLeftEvent(ParticipantEvent):
    type: Literal["call.session_participant_left"]


class CallEndedEvent(StreamEvent):
    type: Literal["call.ended", "call.session_ended"]


StreamWebhookEvent = Annotated[
    Union[ParticipantJoinedEvent, ParticipantLeftEvent, CallEndedEvent],
    Field(discriminator="type"),
]

KNOWN_EVENT_TYPES = frozenset(
    {
        "call.session_participant_joined",
        "call.session_participant_left",
        "call.ended",
        "call.session_ended",
    }
)

_event_adapter: TypeAdapter[StreamWebhookEvent] = TypeAdapter(StreamWebhookEvent)


def parse_event(payload: dict[str, Any]) -> Optional[StreamWebhookEvent]:
    """
    Parse a webhook payload into a typed event.

    Returns:
        None for event types billing doesn't handle

    Raises:
        pydantic.ValidationError: If a known event type is malformed
    """
    if payload.get("type") not in KNOWN_EVENT_TYPES:
        return None
    return _event_adapter.validate_python(payload)


class WebhookOutcome(str, Enum):
    PROCESSED = "processed"
    IGNORED = "ignored"


class WebhookResult(BaseModel):
    """Acknowledgement returned to the platform."""

    status: WebhookOutcome
    event_type: Optional[str] = None
    reason: Optional[str] = Field(None, description="Why the event was ignored")
    call_cid: Optional[str] = None
    order_id: Optional[str] = None
    connected: bool = False
    billing_status: Optional[str] = None
    billable_seconds: Optional[int] = None
    cost: Optional[Decimal] = None

    @classmethod
    def ignored(cls, reason: str, event_type: Optional[str] = None, **fields: Any) -> "WebhookResult":
        return cls(status=WebhookOutcome.IGNORED, reason=reason, event_type=event_type, **fields)
