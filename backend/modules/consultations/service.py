"""
Consultation service implementation.

Owns the order lifecycle up to finalization: creating orders, moving
them to CONNECTED on dual presence, recording presence intervals,
advising heartbeats, cancelling and failing orders. Charging is always
delegated to the billing coordinator.
"""

import logging
import uuid
from decimal import Decimal, ROUND_FLOOR
from datetime import datetime
from typing import Optional

from shared.config import Settings, get_settings
from shared.exceptions import ExternalServiceError, ValidationError
from shared.models import RequestContext
from shared.transactions import IDocumentStore, TransactionContext
from modules.billing.interfaces import IBillingCoordinator
from modules.billing.models import BillingStatus
from modules.billing.payout import consultation_cost
from modules.experts.exceptions import ExpertNotFoundError, ExpertUnavailableError
from modules.experts.models import ExpertPresence
from modules.experts.repository import ExpertRepository
from modules.video.interfaces import IVideoPlatform
from modules.video.models import build_call_cid
from modules.wallet.exceptions import InsufficientBalanceError
from modules.wallet.repository import WalletRepository

from .exceptions import (
    CallSetupError,
    OrderAccessDeniedError,
    OrderNotFoundError,
    OrderStateConflictError,
    UnsupportedConsultationTypeError,
)
from .models import (
    ORDER_TYPE,
    ActiveCallResponse,
    ConsultationOrder,
    ConsultationStatus,
    EndConsultationResponse,
    ExtendDurationResponse,
    HeartbeatAction,
    HeartbeatReason,
    HeartbeatResponse,
    InitiateConsultationRequest,
    InitiateConsultationResponse,
    ParticipantEventResult,
    ParticipantInterval,
    ParticipantRole,
)
from .repository import OrderRepository, has_other_active
from .state import ensure_transition, transition

logger = logging.getLogger(__name__)


def max_duration_for(balance: Decimal, rate_per_minute: Decimal) -> int:
    """Whole seconds a balance covers at a per-minute rate."""
    if rate_per_minute <= 0:
        return 0
    seconds = (balance * 60 / rate_per_minute).to_integral_value(rounding=ROUND_FLOOR)
    return max(0, int(seconds))


class ConsultationService:
    """Consultation order lifecycle backed by the document store."""

    def __init__(
        self,
        store: IDocumentStore,
        billing: IBillingCoordinator,
        video_platform: Optional[IVideoPlatform] = None,
        settings: Optional[Settings] = None,
    ):
        self._store = store
        self._billing = billing
        self._video = video_platform
        self._settings = settings or get_settings()
        self._orders = OrderRepository(store)
        self._wallets = WalletRepository(store)
        self._experts = ExpertRepository(store)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def get_order(self, user_id: str, order_id: str) -> ConsultationOrder:
        """
        Get one of the user's orders.

        Raises:
            OrderNotFoundError: If no such order exists
            OrderAccessDeniedError: If the order belongs to another user
        """
        order = await self._orders.get(user_id, order_id)
        if order is not None:
            return order
        if await self._orders.find(order_id) is not None:
            raise OrderAccessDeniedError(order_id, user_id)
        raise OrderNotFoundError(order_id)

    async def get_active_call(self, user_id: str, ctx: RequestContext) -> ActiveCallResponse:
        """
        Get the user's current consultation, if any.

        An INITIATED order older than the initiation timeout is about to be
        failed by the sweep and is not reported.
        """
        order = await self._orders.latest_active_for_user(user_id)
        if order is None:
            return ActiveCallResponse(has_active_call=False)
        if order.status == ConsultationStatus.INITIATED and self.is_stale_initiated(order, ctx.now):
            logger.debug(f"Order {order.order_id} is a stale INITIATED order")
            return ActiveCallResponse(has_active_call=False)
        return ActiveCallResponse(has_active_call=True, order=order)

    def is_stale_initiated(self, order: ConsultationOrder, now: datetime) -> bool:
        age = (now - order.created_at).total_seconds()
        return age >= self._settings.initiated_order_timeout_seconds

    # -------------------------------------------------------------------------
    # Initiation and connection
    # -------------------------------------------------------------------------

    async def initiate(
        self,
        user_id: str,
        request: InitiateConsultationRequest,
        ctx: RequestContext,
    ) -> InitiateConsultationResponse:
        """
        Create an INITIATED order and the video call for it.

        Raises:
            ExpertNotFoundError: If the expert has no store document
            ExpertUnavailableError: If the expert is offline or busy
            UnsupportedConsultationTypeError: If the expert has no rate for the type
            InsufficientBalanceError: If the wallet can't cover the minimum
            CallSetupError: If the video call could not be created
        """
        expert_id = request.expert_id
        if expert_id == user_id:
            raise ValidationError(
                "Cannot start a consultation with yourself",
                code="SELF_CONSULTATION",
            )

        expert = await self._experts.get_store(expert_id)
        if expert is None:
            raise ExpertNotFoundError(expert_id)
        if not expert.is_available:
            raise ExpertUnavailableError(expert_id, expert.consultation_status.value)

        consultation_type = request.consultation_type.value
        rate = expert.rate_for(consultation_type)
        if rate is None or rate <= 0:
            raise UnsupportedConsultationTypeError(consultation_type, expert_id)

        currency = expert.currency or self._settings.default_currency
        fee_config = await self._experts.get_fee_config(
            expert_id, self._settings.default_platform_fee_percent, expert
        )
        fee_percent = fee_config.fee_percent(ORDER_TYPE, expert.category)

        balance = await self._wallets.get_balance(user_id, expert_id, currency)
        minimum = rate * self._settings.min_consultation_minutes
        if balance.total_balance < minimum:
            raise InsufficientBalanceError(
                required=minimum,
                available=balance.total_balance,
                user_id=user_id,
            )

        order_id = uuid.uuid4().hex
        call_cid = build_call_cid(f"consultation_{consultation_type}", order_id)
        order = ConsultationOrder(
            order_id=order_id,
            user_id=user_id,
            expert_id=expert_id,
            consultation_type=request.consultation_type,
            category=expert.category,
            rate_per_minute=rate,
            currency=currency,
            platform_fee_percent=fee_percent,
            status=ConsultationStatus.INITIATED,
            max_allowed_duration=max_duration_for(balance.total_balance, rate),
            created_at=ctx.now,
            stream_call_cid=call_cid,
        )

        async def apply(tx: TransactionContext) -> None:
            store = await self._experts.read_store(tx, expert_id)
            current = self._experts.store_from(store, expert_id)
            if current is None or not current.is_available:
                status = current.consultation_status.value if current else None
                raise ExpertUnavailableError(expert_id, status)
            self._orders.stage_create(tx, order)
            self._experts.stage_presence(tx, store, ExpertPresence.BUSY)

        await self._store.run_transaction(apply)
        logger.info(
            f"[{ctx.request_id}] Order {order_id} INITIATED: {user_id} -> {expert_id} "
            f"({consultation_type} at {rate}/min, max {order.max_allowed_duration}s)"
        )

        if self._video is not None:
            try:
                await self._video.create_call(call_cid, user_id, [user_id, expert_id])
            except ExternalServiceError as e:
                logger.warning(f"Call setup failed for {order_id}: {e.message}")
                await self._fail(user_id, order_id, "CALL_SETUP_FAILED", ctx)
                raise CallSetupError(order_id, e.message)

        return InitiateConsultationResponse(
            order_id=order_id,
            status=order.status,
            stream_call_cid=call_cid,
            rate_per_minute=rate,
            currency=currency,
            max_allowed_duration=order.max_allowed_duration,
        )

    async def connect(self, user_id: str, order_id: str, ctx: RequestContext) -> ConsultationOrder:
        """
        Start the billing clock for an INITIATED order.

        The allowed duration is re-derived from the wallet at this point.
        Connecting an already CONNECTED order returns it unchanged.
        """
        order = await self.get_order(user_id, order_id)

        async def apply(tx: TransactionContext) -> ConsultationOrder:
            current = await self._orders.read(tx, user_id, order_id)
            if current is None:
                raise OrderNotFoundError(order_id)
            wallet = await self._wallets.read(tx, user_id, current.expert_id)
            store = await self._experts.read_store(tx, current.expert_id)

            if current.status == ConsultationStatus.CONNECTED:
                return current
            ensure_transition(current, ConsultationStatus.CONNECTED)

            balance = self._wallets.balance_from(wallet, user_id, current.expert_id, current.currency)
            connected = transition(
                current,
                ConsultationStatus.CONNECTED,
                start_time=ctx.now,
                both_participants_joined_at=current.both_participants_joined_at or ctx.now,
                max_allowed_duration=max_duration_for(balance.total_balance, current.rate_per_minute),
            )
            self._orders.stage(tx, connected)
            self._experts.stage_presence(tx, store, ExpertPresence.BUSY)
            return connected

        connected = await self._store.run_transaction(apply)
        if order.status != ConsultationStatus.CONNECTED:
            logger.info(f"[{ctx.request_id}] Order {order_id} CONNECTED")
        return connected

    # -------------------------------------------------------------------------
    # Presence events
    # -------------------------------------------------------------------------

    async def record_participant_joined(
        self,
        call_cid: str,
        participant_id: str,
        joined_at: datetime,
        ctx: RequestContext,
    ) -> Optional[ParticipantEventResult]:
        """
        Open a presence interval for a participant.

        The first moment both parties are present moves an INITIATED
        order to CONNECTED. Duplicate joins are ignored.

        Returns:
            None if no order matches the call
        """
        order = await self._orders.find_by_call_cid(call_cid)
        if order is None:
            return None

        async def apply(tx: TransactionContext) -> ParticipantEventResult:
            current = await self._orders.read(tx, order.user_id, order.order_id)
            if current is None:
                raise OrderNotFoundError(order.order_id)
            wallet = await self._wallets.read(tx, current.user_id, current.expert_id)
            store = await self._experts.read_store(tx, current.expert_id)

            ignored = ParticipantEventResult(
                order_id=current.order_id, status=current.status, applied=False
            )
            role = current.role_of(participant_id)
            if role is None or current.status.is_terminal:
                return ignored
            if current.status == ConsultationStatus.TERMINATED:
                return ignored

            field = f"{role.value}_intervals"
            intervals = list(getattr(current, field))
            if intervals and intervals[-1].is_open:
                return ignored
            intervals.append(ParticipantInterval(joined_at=joined_at))

            updates: dict = {field: intervals}
            joined_field = f"{role.value}_joined_at"
            if getattr(current, joined_field) is None:
                updates[joined_field] = joined_at

            user_intervals = intervals if role == ParticipantRole.USER else current.user_intervals
            expert_intervals = intervals if role == ParticipantRole.EXPERT else current.expert_intervals
            both_present = any(i.is_open for i in user_intervals) and any(
                i.is_open for i in expert_intervals
            )
            if both_present and current.both_participants_joined_at is None:
                updates["both_participants_joined_at"] = joined_at

            connected = False
            if both_present and current.status == ConsultationStatus.INITIATED:
                balance = self._wallets.balance_from(
                    wallet, current.user_id, current.expert_id, current.currency
                )
                updates["start_time"] = joined_at
                updates["max_allowed_duration"] = max_duration_for(
                    balance.total_balance, current.rate_per_minute
                )
                updated = transition(current, ConsultationStatus.CONNECTED, **updates)
                self._experts.stage_presence(tx, store, ExpertPresence.BUSY)
                connected = True
            else:
                updated = current.model_copy(update=updates)

            self._orders.stage(tx, updated)
            return ParticipantEventResult(
                order_id=updated.order_id,
                status=updated.status,
                applied=True,
                connected=connected,
            )

        result = await self._store.run_transaction(apply)
        if result.connected:
            logger.info(f"[{ctx.request_id}] Order {result.order_id} CONNECTED on dual presence")
        return result

    async def record_participant_left(
        self,
        call_cid: str,
        participant_id: str,
        left_at: datetime,
        ctx: RequestContext,
    ) -> Optional[ParticipantEventResult]:
        """
        Close the participant's open presence interval.

        A leave with no open interval (duplicate or out of order) is
        ignored. Finalizing is up to the caller.

        Returns:
            None if no order matches the call
        """
        order = await self._orders.find_by_call_cid(call_cid)
        if order is None:
            return None

        async def apply(tx: TransactionContext) -> ParticipantEventResult:
            current = await self._orders.read(tx, order.user_id, order.order_id)
            if current is None:
                raise OrderNotFoundError(order.order_id)

            ignored = ParticipantEventResult(
                order_id=current.order_id, status=current.status, applied=False
            )
            role = current.role_of(participant_id)
            if role is None or current.status.is_terminal:
                return ignored

            field = f"{role.value}_intervals"
            intervals = list(getattr(current, field))
            if not intervals or not intervals[-1].is_open:
                return ignored
            last = intervals[-1]
            intervals[-1] = last.model_copy(update={"left_at": max(left_at, last.joined_at)})

            self._orders.stage(tx, current.model_copy(update={field: intervals}))
            return ParticipantEventResult(
                order_id=current.order_id, status=current.status, applied=True
            )

        return await self._store.run_transaction(apply)

    # -------------------------------------------------------------------------
    # Heartbeat and duration
    # -------------------------------------------------------------------------

    async def heartbeat(self, user_id: str, order_id: str, ctx: RequestContext) -> HeartbeatResponse:
        """
        Advise the client whether to keep the call going.

        Never finalizes: the client ends the call on TERMINATE and the
        resulting webhook (or the sweep) does the charging.
        """
        order = await self.get_order(user_id, order_id)
        if order.status != ConsultationStatus.CONNECTED:
            return HeartbeatResponse(
                order_id=order_id,
                action=HeartbeatAction.TERMINATE,
                reason=HeartbeatReason.NOT_CONNECTED,
                status=order.status,
            )

        elapsed = order.elapsed_seconds(ctx.now)
        remaining = max(0, order.max_allowed_duration - elapsed)
        if remaining <= 0:
            return HeartbeatResponse(
                order_id=order_id,
                action=HeartbeatAction.TERMINATE,
                reason=HeartbeatReason.LOW_BALANCE,
                status=order.status,
                elapsed_seconds=elapsed,
            )
        return HeartbeatResponse(
            order_id=order_id,
            action=HeartbeatAction.CONTINUE,
            status=order.status,
            remaining_seconds=remaining,
            elapsed_seconds=elapsed,
        )

    async def extend_max_duration(
        self,
        user_id: str,
        order_id: str,
        ctx: RequestContext,
    ) -> ExtendDurationResponse:
        """
        Re-derive the allowed duration after a mid-call recharge.

        Raises:
            OrderStateConflictError: If the order is not CONNECTED
            InsufficientBalanceError: If the wallet doesn't cover time already used
        """
        await self.get_order(user_id, order_id)

        async def apply(tx: TransactionContext) -> ExtendDurationResponse:
            current = await self._orders.read(tx, user_id, order_id)
            if current is None:
                raise OrderNotFoundError(order_id)
            wallet = await self._wallets.read(tx, user_id, current.expert_id)
            if current.status != ConsultationStatus.CONNECTED:
                raise OrderStateConflictError(order_id, current.status, "extend duration")

            balance = self._wallets.balance_from(wallet, user_id, current.expert_id, current.currency)
            new_max = max_duration_for(balance.total_balance, current.rate_per_minute)
            elapsed = current.elapsed_seconds(ctx.now)
            if new_max <= elapsed:
                raise InsufficientBalanceError(
                    required=consultation_cost(elapsed + 60, current.rate_per_minute),
                    available=balance.total_balance,
                    user_id=user_id,
                )

            self._orders.stage(tx, current.model_copy(update={"max_allowed_duration": new_max}))
            return ExtendDurationResponse(
                order_id=order_id,
                max_allowed_duration=new_max,
                remaining_seconds=new_max - elapsed,
            )

        result = await self._store.run_transaction(apply)
        logger.info(f"[{ctx.request_id}] Order {order_id} max duration now {result.max_allowed_duration}s")
        return result

    # -------------------------------------------------------------------------
    # Ending
    # -------------------------------------------------------------------------

    async def end(self, user_id: str, order_id: str, ctx: RequestContext) -> EndConsultationResponse:
        """
        End a consultation from the client.

        A CONNECTED or TERMINATED order is finalized (idempotently); an
        INITIATED order is cancelled.
        """
        order = await self.get_order(user_id, order_id)
        if order.status == ConsultationStatus.INITIATED:
            cancelled = await self.cancel(user_id, order_id, ctx)
            return EndConsultationResponse(order_id=order_id, status=cancelled.status)

        result = await self._billing.finalize(order_id, ctx, user_id=user_id)
        await self.end_call_best_effort(order)

        if result.charged:
            status = ConsultationStatus.COMPLETED
        else:
            status = (await self.get_order(user_id, order_id)).status
        return EndConsultationResponse(
            order_id=order_id,
            status=status,
            duration_seconds=result.billable_seconds,
            cost=result.cost,
            already_finalized=result.status == BillingStatus.ALREADY_FINALIZED,
        )

    async def cancel(self, user_id: str, order_id: str, ctx: RequestContext) -> ConsultationOrder:
        """
        Cancel an order that has not connected yet.

        Raises:
            InvalidTransitionError: If the order is past INITIATED
        """
        order = await self.get_order(user_id, order_id)

        async def apply(tx: TransactionContext) -> ConsultationOrder:
            current = await self._orders.read(tx, user_id, order_id)
            if current is None:
                raise OrderNotFoundError(order_id)
            store = await self._experts.read_store(tx, current.expert_id)
            active = await self._orders.read_active_for_expert(tx, current.expert_id)

            if current.status == ConsultationStatus.CANCELLED:
                return current
            cancelled = transition(current, ConsultationStatus.CANCELLED, end_time=ctx.now)
            self._orders.stage(tx, cancelled)
            self._experts.stage_release(tx, store, has_other_active(active, order_id))
            return cancelled

        cancelled = await self._store.run_transaction(apply)
        if order.status != ConsultationStatus.CANCELLED:
            logger.info(f"[{ctx.request_id}] Order {order_id} CANCELLED")
            await self.end_call_best_effort(cancelled)
        return cancelled

    async def fail_initiated(
        self,
        order: ConsultationOrder,
        reason: str,
        ctx: RequestContext,
    ) -> bool:
        """
        Fail an order that never connected and release the expert.

        Returns:
            False if the order had already left INITIATED
        """
        failed = await self._fail(order.user_id, order.order_id, reason, ctx)
        if failed:
            await self.end_call_best_effort(order)
        return failed

    async def terminate(self, order: ConsultationOrder, ctx: RequestContext) -> bool:
        """
        Force a CONNECTED order into TERMINATED ahead of finalizing it.

        Returns:
            True if the order is TERMINATED (by this call or an earlier one)
        """

        async def apply(tx: TransactionContext) -> bool:
            current = await self._orders.read(tx, order.user_id, order.order_id)
            if current is None:
                raise OrderNotFoundError(order.order_id)
            if current.status == ConsultationStatus.TERMINATED:
                return True
            if current.status != ConsultationStatus.CONNECTED:
                return False
            self._orders.stage(
                tx,
                transition(current, ConsultationStatus.TERMINATED, end_time=ctx.now),
            )
            return True

        return await self._store.run_transaction(apply)

    async def end_call_best_effort(self, order: ConsultationOrder) -> None:
        """End the video call, logging rather than raising on failure."""
        if self._video is None or not order.stream_call_cid:
            return
        try:
            ended = await self._video.end_call(order.stream_call_cid)
        except (ExternalServiceError, ValidationError) as e:
            logger.warning(f"Failed to end call for order {order.order_id}: {e.message}")
            return
        if not ended:
            logger.warning(f"Video platform did not end call for order {order.order_id}")

    async def _fail(self, user_id: str, order_id: str, reason: str, ctx: RequestContext) -> bool:
        async def apply(tx: TransactionContext) -> bool:
            current = await self._orders.read(tx, user_id, order_id)
            if current is None:
                raise OrderNotFoundError(order_id)
            store = await self._experts.read_store(tx, current.expert_id)
            active = await self._orders.read_active_for_expert(tx, current.expert_id)

            if current.status != ConsultationStatus.INITIATED:
                return False
            failed = transition(
                current,
                ConsultationStatus.FAILED,
                end_time=ctx.now,
                failure_reason=reason,
            )
            self._orders.stage(tx, failed)
            self._experts.stage_release(tx, store, has_other_active(active, order_id))
            return True

        failed = await self._store.run_transaction(apply)
        if failed:
            logger.info(f"[{ctx.request_id}] Order {order_id} FAILED: {reason}")
        return failed
