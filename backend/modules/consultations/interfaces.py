"""
Consultations module interface.

The API layer, the webhook handler and the reaper depend on
IConsultationService for every order lifecycle operation.
"""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from shared.models import RequestContext

from .models import (
    ActiveCallResponse,
    ConsultationOrder,
    EndConsultationResponse,
    ExtendDurationResponse,
    HeartbeatResponse,
    InitiateConsultationRequest,
    InitiateConsultationResponse,
    ParticipantEventResult,
)


@runtime_checkable
class IConsultationService(Protocol):
    """
    Interface for consultation order operations.

    Charging is not part of this interface: ending a consultation hands
    off to IBillingCoordinator.finalize.
    """

    async def initiate(
        self,
        user_id: str,
        request: InitiateConsultationRequest,
        ctx: RequestContext,
    ) -> InitiateConsultationResponse:
        """
        Create an INITIATED order and mark the expert BUSY.

        Args:
            user_id: Paying user
            request: Expert and consultation type
            ctx: Request context

        Returns:
            The new order's ID, call CID and commercial terms

        Raises:
            ExpertNotFoundError: If the expert doesn't exist
            ExpertUnavailableError: If the expert can't take a call now
            InsufficientBalanceError: If the wallet can't cover the minimum
            CallSetupError: If the video call could not be created
        """
        ...

    async def get_order(self, user_id: str, order_id: str) -> ConsultationOrder:
        """
        Get an order owned by the user.

        Raises:
            OrderNotFoundError: If the order doesn't exist
            OrderAccessDeniedError: If another user owns it
        """
        ...

    async def get_active_call(self, user_id: str, ctx: RequestContext) -> ActiveCallResponse:
        """Get the user's INITIATED or CONNECTED order, if any."""
        ...

    async def connect(self, user_id: str, order_id: str, ctx: RequestContext) -> ConsultationOrder:
        """Move an INITIATED order to CONNECTED and start the billing clock."""
        ...

    async def record_participant_joined(
        self,
        call_cid: str,
        participant_id: str,
        joined_at: datetime,
        ctx: RequestContext,
    ) -> Optional[ParticipantEventResult]:
        """Open a presence interval; None if no order matches the call."""
        ...

    async def record_participant_left(
        self,
        call_cid: str,
        participant_id: str,
        left_at: datetime,
        ctx: RequestContext,
    ) -> Optional[ParticipantEventResult]:
        """Close a presence interval; None if no order matches the call."""
        ...

    async def heartbeat(self, user_id: str, order_id: str, ctx: RequestContext) -> HeartbeatResponse:
        """Advise CONTINUE or TERMINATE. Never charges."""
        ...

    async def extend_max_duration(
        self,
        user_id: str,
        order_id: str,
        ctx: RequestContext,
    ) -> ExtendDurationResponse:
        """Re-derive the allowed duration from the current wallet balance."""
        ...

    async def end(self, user_id: str, order_id: str, ctx: RequestContext) -> EndConsultationResponse:
        """Finalize a connected order, or cancel one that never connected."""
        ...

    async def cancel(self, user_id: str, order_id: str, ctx: RequestContext) -> ConsultationOrder:
        """Cancel an INITIATED order and release the expert."""
        ...

    async def fail_initiated(
        self,
        order: ConsultationOrder,
        reason: str,
        ctx: RequestContext,
    ) -> bool:
        """Fail an INITIATED order; False if it already moved on."""
        ...

    async def terminate(self, order: ConsultationOrder, ctx: RequestContext) -> bool:
        """Force a CONNECTED order to TERMINATED, pending finalize."""
        ...

    async def end_call_best_effort(self, order: ConsultationOrder) -> None:
        """End the order's video call, logging any failure."""
        ...

    def is_stale_initiated(self, order: ConsultationOrder, now: datetime) -> bool:
        """Whether an INITIATED order has outlived the initiation timeout."""
        ...
