"""
Video module interface.

The consultation and billing modules depend on IVideoPlatform, not on a
concrete provider. Every call is addressed by its call CID.
"""

from typing import Protocol, runtime_checkable

from .models import CallParticipant


@runtime_checkable
class IVideoPlatform(Protocol):
    """Interface to the third-party video call platform."""

    async def create_call(
        self,
        call_cid: str,
        created_by: str,
        member_ids: list[str],
    ) -> None:
        """
        Create (or get) a call with the given members.

        Raises:
            VideoPlatformError: If the platform rejects the request
        """
        ...

    async def end_call(self, call_cid: str) -> bool:
        """
        End a call for everyone.

        Returns:
            True if the call is ended (including when it no longer exists),
            False if the platform could not be reached or refused
        """
        ...

    async def get_call_participants(self, call_cid: str) -> list[CallParticipant]:
        """
        Get every participant session recorded for the call.

        Raises:
            VideoPlatformError: If the call cannot be fetched
        """
        ...
