"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import uuid

from pydantic import BaseModel, EmailStr, Field


class AuthenticatedUser(BaseModel):
    """
    Represents an authenticated user in the system.

    This model is populated from JWT claims and made available
    to route handlers via dependency injection.
    """

    id: str = Field(..., description="User ID (UUID from Supabase)")
    email: EmailStr = Field(..., description="User's email address")
    email_verified: bool = Field(default=False, description="Whether email is verified")

    created_at: Optional[datetime] = Field(None, description="Account creation time")
    last_sign_in: Optional[datetime] = Field(None, description="Last sign-in time")

    role: str = Field(default="user", description="User role")

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }


class Trigger(str, Enum):
    """Where a unit of work originated."""

    API = "api"
    HEARTBEAT = "heartbeat"
    WEBHOOK = "webhook"
    SWEEP = "sweep"


class RequestContext(BaseModel):
    """
    Per-request context passed explicitly through service calls.

    Carries the evaluation clock so that every decision made while
    handling one request (elapsed time, open interval ends, timestamps
    written to documents) uses the same instant.
    """

    request_id: str = Field(
        default_factory=lambda: uuid.uuid4().hex,
        description="Correlation ID for log lines",
    )
    trigger: Trigger = Field(default=Trigger.API, description="Originating trigger")
    now: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Evaluation time for this request",
    )

    model_config = {"frozen": True}

    @classmethod
    def for_trigger(cls, trigger: Trigger, now: Optional[datetime] = None) -> "RequestContext":
        """Build a context for the given trigger, defaulting the clock to now."""
        if now is None:
            return cls(trigger=trigger)
        return cls(trigger=trigger, now=now)
