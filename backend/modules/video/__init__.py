"""
Video module.

Wraps the third-party video call platform: call lifecycle, participant
sessions, and webhook signature verification.

Public API:
- IVideoPlatform: Interface for call operations
- CallParticipant: One participant presence session
- parse_call_cid / build_call_cid: Call CID helpers
- Video exceptions: VideoPlatformError, etc.
"""

from .interfaces import IVideoPlatform
from .models import CallParticipant, parse_call_cid, build_call_cid
from .exceptions import (
    VideoPlatformError,
    InvalidCallCidError,
    WebhookVerificationError,
)

__all__ = [
    # Interface
    "IVideoPlatform",
    # Models
    "CallParticipant",
    "parse_call_cid",
    "build_call_cid",
    # Exceptions
    "VideoPlatformError",
    "InvalidCallCidError",
    "WebhookVerificationError",
]
