"""
Stream video platform client.

Talks to the Stream Video REST API with a short-lived server token signed
with the API secret. Only the three operations billing needs are
implemented: create a call, end it, and read its participant sessions.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx
from jose import jwt

from shared.config import Settings, get_settings

from .exceptions import VideoPlatformError
from .models import CallParticipant, parse_call_cid

logger = logging.getLogger(__name__)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable timestamp from Stream: {value!r}")
        return None


def parse_participants(payload: dict[str, Any]) -> list[CallParticipant]:
    """
    Extract participant sessions from a get-call response.

    Participants without a user ID are skipped.
    """
    session = payload.get("call", {}).get("session") or payload.get("session") or {}
    participants = []
    for entry in session.get("participants") or []:
        user_id = entry.get("user_id") or (entry.get("user") or {}).get("id")
        if not user_id:
            continue
        participants.append(
            CallParticipant(
                user_id=user_id,
                joined_at=_parse_timestamp(entry.get("joined_at")),
                left_at=_parse_timestamp(entry.get("left_at")),
            )
        )
    return participants


class StreamVideoClient:
    """IVideoPlatform implementation backed by Stream Video."""

    TOKEN_TTL_SECONDS = 3600

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self._api_key = settings.stream_api_key
        self._api_secret = settings.stream_api_secret
        self._base_url = settings.stream_api_base_url.rstrip("/")
        self._timeout = settings.stream_timeout_seconds

    @property
    def is_configured(self) -> bool:
        """Check if API key and secret are configured."""
        return bool(self._api_key and self._api_secret)

    def _server_token(self) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "user_id": "server",
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self.TOKEN_TTL_SECONDS)).timestamp()),
        }
        return jwt.encode(claims, self._api_secret, algorithm="HS256")

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": self._server_token(),
            "stream-auth-type": "jwt",
            "Content-Type": "application/json",
        }

    def _url(self, call_cid: str, suffix: str = "") -> str:
        call_type, call_id = parse_call_cid(call_cid)
        return f"{self._base_url}/call/{call_type}/{call_id}{suffix}"

    def _require_configured(self) -> None:
        if not self.is_configured:
            raise VideoPlatformError("Stream API key/secret not configured")

    async def create_call(
        self,
        call_cid: str,
        created_by: str,
        member_ids: list[str],
    ) -> None:
        """Create the call (get-or-create) with both parties as members."""
        self._require_configured()
        body = {
            "data": {
                "created_by_id": created_by,
                "members": [{"user_id": member_id} for member_id in member_ids],
            }
        }
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self._url(call_cid),
                    params={"api_key": self._api_key},
                    headers=self._headers(),
                    json=body,
                    timeout=self._timeout,
                )
        except httpx.HTTPError as e:
            raise VideoPlatformError(f"Failed to create call {call_cid}: {e}")

        if response.status_code not in (200, 201):
            raise VideoPlatformError(
                f"Failed to create call {call_cid}: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        logger.info(f"Created Stream call {call_cid}")

    async def end_call(self, call_cid: str) -> bool:
        """End the call. A call the platform no longer knows counts as ended."""
        if not self.is_configured:
            logger.warning(f"Cannot end call {call_cid}: Stream not configured")
            return False
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self._url(call_cid, "/mark_ended"),
                    params={"api_key": self._api_key},
                    headers=self._headers(),
                    json={},
                    timeout=self._timeout,
                )
        except httpx.HTTPError as e:
            logger.warning(f"Error ending call {call_cid}: {e}")
            return False

        if response.status_code in (200, 404):
            return True
        logger.warning(f"Failed to end call {call_cid}: HTTP {response.status_code}")
        return False

    async def get_call_participants(self, call_cid: str) -> list[CallParticipant]:
        """Fetch participant sessions for the call."""
        self._require_configured()
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    self._url(call_cid),
                    params={"api_key": self._api_key},
                    headers=self._headers(),
                    timeout=self._timeout,
                )
        except httpx.HTTPError as e:
            raise VideoPlatformError(f"Failed to fetch call {call_cid}: {e}")

        if response.status_code != 200:
            raise VideoPlatformError(
                f"Failed to fetch call {call_cid}: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return parse_participants(response.json())
