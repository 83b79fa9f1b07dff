"""
JWT Authentication middleware.

Validates Supabase JWT tokens and builds the AuthenticatedUser that
routes act on behalf of. Users and experts authenticate the same way;
an expert's routes use the token subject as the expert ID.
"""

import logging
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from datetime import datetime, timezone

from shared.config import get_settings
from shared.models import AuthenticatedUser
from ..models.user import TokenPayload

logger = logging.getLogger(__name__)

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)

JWT_AUDIENCE = "authenticated"

# Supabase puts "authenticated" in the role claim for every signed-in user
DEFAULT_ROLE = "user"


class AuthError(HTTPException):
    """Authentication error with consistent format."""
    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


def decode_token(token: str) -> TokenPayload:
    """
    Decode and validate a Supabase JWT.

    Raises:
        AuthError: If the token is invalid, expired, or auth isn't configured
    """
    secret = get_settings().supabase_jwt_secret
    if not secret:
        logger.error("SUPABASE_JWT_SECRET is not set; rejecting all tokens")
        raise AuthError("Server authentication not configured")

    try:
        claims = jwt.decode(token, secret, algorithms=["HS256"], audience=JWT_AUDIENCE)
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired")
    except JWTError as e:
        logger.info(f"Rejected token: {e}")
        raise AuthError(f"Invalid token: {str(e)}")
    return TokenPayload(**claims)


def get_user_from_payload(payload: TokenPayload) -> AuthenticatedUser:
    """Build the request's user from verified claims."""
    role = payload.role if payload.role and payload.role != JWT_AUDIENCE else DEFAULT_ROLE
    return AuthenticatedUser(
        id=payload.sub,
        email=payload.email,
        email_verified=payload.email_confirmed_at is not None,
        last_sign_in=datetime.fromtimestamp(payload.iat, tz=timezone.utc),
        role=role,
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """
    Dependency that requires authentication.

    Usage:
        @router.post("/consultations")
        async def initiate(user: AuthenticatedUser = Depends(get_current_user)):
            ...
    """
    if credentials is None:
        raise AuthError("Missing authorization header")
    return get_user_from_payload(decode_token(credentials.credentials))
