"""
Token models for authentication.

The authenticated user itself lives in shared.models; this is the raw
JWT claim set it is built from.
"""

from typing import Optional

from pydantic import BaseModel


class TokenPayload(BaseModel):
    """JWT token payload structure."""
    sub: str  # User ID
    email: str
    email_confirmed_at: Optional[str] = None
    aud: str  # Audience
    exp: int  # Expiration timestamp
    iat: int  # Issued at timestamp
    role: Optional[str] = None
