"""
Video module exceptions.
"""

from typing import Optional

from shared.exceptions import ExternalServiceError, ValidationError


class VideoPlatformError(ExternalServiceError):
    """Raised when the video platform API fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(
            message,
            service="stream",
            code="VIDEO_PLATFORM_ERROR",
            details={"status_code": status_code} if status_code is not None else {},
        )
        self.status_code = status_code


class InvalidCallCidError(ValidationError):
    """Raised when a call CID is malformed."""

    def __init__(self, call_cid: Optional[str]):
        super().__init__(
            f"Invalid call CID: {call_cid!r}",
            code="INVALID_CALL_CID",
            details={"call_cid": call_cid},
        )


class WebhookVerificationError(ValidationError):
    """Raised when a webhook signature or API key does not verify."""

    def __init__(self, reason: str = "Webhook signature verification failed"):
        super().__init__(reason, code="WEBHOOK_VERIFICATION_FAILED")
