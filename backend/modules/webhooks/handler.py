"""
Video platform webhook dispatch.

Webhooks are one of three finalize triggers. A participant leaving or the
call ending finalizes a CONNECTED order through the billing coordinator;
whichever trigger arrives second gets the persisted result back.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from shared.exceptions import ValidationError
from shared.models import RequestContext
from shared.transactions import IDocumentStore
from modules.billing.interfaces import IBillingCoordinator
from modules.billing.models import BillingResult
from modules.consultations.interfaces import IConsultationService
from modules.consultations.models import FINALIZABLE_STATUSES, ConsultationOrder
from modules.consultations.repository import OrderRepository

from .models import (
    CallEndedEvent,
    ParticipantJoinedEvent,
    ParticipantLeftEvent,
    WebhookOutcome,
    WebhookResult,
    parse_event,
)

logger = logging.getLogger(__name__)


class StreamWebhookHandler:
    """Applies verified video platform events to consultation orders."""

    def __init__(
        self,
        store: IDocumentStore,
        consultations: IConsultationService,
        billing: IBillingCoordinator,
    ):
        self._orders = OrderRepository(store)
        self._consultations = consultations
        self._billing = billing

    async def handle(self, payload: dict[str, Any], ctx: RequestContext) -> WebhookResult:
        """
        Dispatch one event.

        Raises:
            ValidationError: If the payload has no event type
        """
        event_type = payload.get("type")
        if not event_type:
            raise ValidationError("Missing event type", code="MISSING_EVENT_TYPE")

        event = parse_event(payload)
        if event is None:
            logger.debug(f"[{ctx.request_id}] Ignoring webhook event {event_type}")
            return WebhookResult.ignored("unhandled_event_type", event_type)

        call_cid = event.resolved_call_cid
        if not call_cid:
            logger.info(f"[{ctx.request_id}] Webhook {event_type} carries no call CID")
            return WebhookResult.ignored("no_call_cid", event_type)

        order = await self._orders.find_by_call_cid(call_cid)
        if order is None:
            logger.info(f"[{ctx.request_id}] No order for call {call_cid} ({event_type})")
            return WebhookResult.ignored("order_not_found", event_type, call_cid=call_cid)

        logger.info(f"[{ctx.request_id}] Webhook {event_type} for order {order.order_id}")
        if isinstance(event, ParticipantJoinedEvent):
            return await self._participant_joined(event, order, ctx)
        if isinstance(event, ParticipantLeftEvent):
            return await self._participant_left(event, order, ctx)
        return await self._call_ended(event, order, ctx)

    async def _participant_joined(
        self,
        event: ParticipantJoinedEvent,
        order: ConsultationOrder,
        ctx: RequestContext,
    ) -> WebhookResult:
        participant_id = event.participant_id
        if not participant_id:
            return WebhookResult.ignored("no_user_id", event.type, order_id=order.order_id)

        joined_at = _event_time(
            event.participant.joined_at if event.participant else None,
            event.created_at,
            ctx,
        )
        result = await self._consultations.record_participant_joined(
            order.stream_call_cid, participant_id, joined_at, ctx
        )
        if result is None:
            return WebhookResult.ignored("order_not_found", event.type, order_id=order.order_id)
        if not result.applied:
            return WebhookResult.ignored("not_applied", event.type, order_id=order.order_id)

        return WebhookResult(
            status=WebhookOutcome.PROCESSED,
            event_type=event.type,
            call_cid=order.stream_call_cid,
            order_id=order.order_id,
            connected=result.connected,
        )

    async def _participant_left(
        self,
        event: ParticipantLeftEvent,
        order: ConsultationOrder,
        ctx: RequestContext,
    ) -> WebhookResult:
        participant_id = event.participant_id
        if participant_id:
            left_at = _event_time(
                event.participant.left_at if event.participant else None,
                event.created_at,
                ctx,
            )
            result = await self._consultations.record_participant_left(
                order.stream_call_cid, participant_id, left_at, ctx
            )
            if result is None:
                return WebhookResult.ignored("order_not_found", event.type, order_id=order.order_id)
            status = result.status
        else:
            status = order.status

        if status not in FINALIZABLE_STATUSES:
            return WebhookResult.ignored(
                "order_not_connected", event.type, order_id=order.order_id
            )

        billing = await self._billing.finalize(order.order_id, ctx, user_id=order.user_id)
        await self._consultations.end_call_best_effort(order)
        return _finalized(event.type, order, billing)

    async def _call_ended(
        self,
        event: CallEndedEvent,
        order: ConsultationOrder,
        ctx: RequestContext,
    ) -> WebhookResult:
        if order.status not in FINALIZABLE_STATUSES:
            # INITIATED orders are left to the sweep's initiation timeout
            return WebhookResult.ignored(
                "already_completed" if order.status.is_terminal else "order_not_connected",
                event.type,
                order_id=order.order_id,
            )

        billing = await self._billing.finalize(order.order_id, ctx, user_id=order.user_id)
        return _finalized(event.type, order, billing)


def _event_time(
    preferred: Optional[datetime],
    emitted: Optional[datetime],
    ctx: RequestContext,
) -> datetime:
    return preferred or emitted or ctx.now


def _finalized(event_type: str, order: ConsultationOrder, billing: BillingResult) -> WebhookResult:
    return WebhookResult(
        status=WebhookOutcome.PROCESSED,
        event_type=event_type,
        call_cid=order.stream_call_cid,
        order_id=order.order_id,
        billing_status=billing.status.value,
        billable_seconds=billing.billable_seconds,
        cost=billing.cost,
    )
