"""
Webhooks module.

Verifies and dispatches video platform call events (participant joined
and left, call ended) to the consultation and billing modules.
"""

from .models import (
    CallEndedEvent,
    ParticipantJoinedEvent,
    ParticipantLeftEvent,
    StreamWebhookEvent,
    WebhookOutcome,
    WebhookResult,
    parse_event,
)

__all__ = [
    "CallEndedEvent",
    "ParticipantJoinedEvent",
    "ParticipantLeftEvent",
    "StreamWebhookEvent",
    "WebhookOutcome",
    "WebhookResult",
    "parse_event",
]
