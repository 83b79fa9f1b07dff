"""
Video module data models.

Calls are addressed by a call CID of the form ``{call_type}:{call_id}``.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .exceptions import InvalidCallCidError


class CallParticipant(BaseModel):
    """One presence session of a participant in a call."""

    user_id: str = Field(..., description="Platform user ID of the participant")
    joined_at: Optional[datetime] = Field(None, description="When the session started")
    left_at: Optional[datetime] = Field(None, description="When the session ended, if it has")


def parse_call_cid(call_cid: str) -> tuple[str, str]:
    """
    Split a call CID into (call_type, call_id).

    Raises:
        InvalidCallCidError: If the CID is not of the form "type:id"
    """
    if not call_cid or ":" not in call_cid:
        raise InvalidCallCidError(call_cid)
    call_type, call_id = call_cid.split(":", 1)
    if not call_type or not call_id:
        raise InvalidCallCidError(call_cid)
    return call_type, call_id


def build_call_cid(call_type: str, call_id: str) -> str:
    return f"{call_type}:{call_id}"
