"""
Billing coordinator: the single finalize path for consultations.

Heartbeat, webhook and sweep triggers differ only in when they call
finalize, never in how. Finalizing is one document-store transaction
that reads the order, wallet, expert account, expert store document and
the expert's active orders, re-checks that the order is still
CONNECTED or TERMINATED, and only then writes:

- the wallet debit (real and bonus consumed proportionally)
- the CONSULTATION_DEDUCTION ledger entry with the payout breakdown
- the expert earnings balance and earning record
- the order, now COMPLETED with its billing outputs
- the expert presence flag, FREE unless another order holds them

If the re-check fails, another trigger already finalized the order: the
transaction writes nothing and the persisted result is returned.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from shared.exceptions import ExternalServiceError
from shared.models import RequestContext
from shared.transactions import IDocumentStore, TransactionContext
from modules.consultations.exceptions import OrderStateConflictError
from modules.consultations.intervals import (
    coarse_billable_seconds,
    intervals_from_participants,
    overlap_seconds,
)
from modules.consultations.models import (
    FINALIZABLE_STATUSES,
    ConsultationOrder,
    ConsultationStatus,
    ParticipantInterval,
)
from modules.consultations.repository import OrderRepository, has_other_active
from modules.consultations.state import transition
from modules.experts.models import ExpertEarning
from modules.experts.repository import ExpertRepository
from modules.video.exceptions import InvalidCallCidError
from modules.video.interfaces import IVideoPlatform
from modules.wallet import ledger
from modules.wallet.models import WalletTransaction, WalletTransactionType
from modules.wallet.repository import WalletRepository, deduction_id

from .exceptions import OrderMissingDuringFinalizeError
from .models import BillingResult, BillingStatus, PayoutBreakdown
from .payout import calculate, consultation_cost

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

Sessions = tuple[list[ParticipantInterval], list[ParticipantInterval]]


def compute_billable_seconds(
    order: ConsultationOrder,
    now: datetime,
    sessions: Optional[Sessions] = None,
) -> int:
    """
    Billable seconds for an order, capped at its allowed duration.

    Uses the order's own presence intervals when both parties have some,
    then participant sessions from the video platform, then the coarse
    start-to-end span.
    """
    cap = order.max_allowed_duration
    if order.user_intervals and order.expert_intervals:
        return overlap_seconds(order.user_intervals, order.expert_intervals, cap, now)
    if sessions is not None:
        return overlap_seconds(sessions[0], sessions[1], cap, now)
    return coarse_billable_seconds(
        order.start_time, order.both_participants_joined_at, now, cap
    )


def recorded_result(order: ConsultationOrder) -> BillingResult:
    """The result persisted on an order that is already terminal."""
    return BillingResult(
        status=BillingStatus.ALREADY_FINALIZED,
        order_id=order.order_id,
        billable_seconds=order.duration_seconds or 0,
        cost=order.cost or ZERO,
        platform_fee=order.platform_fee_amount or ZERO,
        expert_earnings=order.expert_earnings or ZERO,
        currency=order.currency,
    )


class BillingCoordinator:
    """IBillingCoordinator backed by the transactional document store."""

    def __init__(
        self,
        store: IDocumentStore,
        video_platform: Optional[IVideoPlatform] = None,
    ):
        self._store = store
        self._orders = OrderRepository(store)
        self._wallets = WalletRepository(store)
        self._experts = ExpertRepository(store)
        self._video = video_platform

    async def finalize(
        self,
        order_id: str,
        ctx: RequestContext,
        user_id: Optional[str] = None,
    ) -> BillingResult:
        if user_id is not None:
            order = await self._orders.get(user_id, order_id)
        else:
            order = await self._orders.find(order_id)

        if order is None:
            logger.info(f"[{ctx.request_id}] Finalize {order_id}: order not found")
            return BillingResult.not_found(order_id)
        if order.status.is_terminal:
            logger.debug(f"[{ctx.request_id}] Finalize {order_id}: already {order.status.value}")
            return recorded_result(order)
        if order.status not in FINALIZABLE_STATUSES:
            return BillingResult(
                status=BillingStatus.NOT_ACTIVE,
                order_id=order_id,
                currency=order.currency,
            )

        # External I/O stays outside the transaction
        sessions = await self._fetch_sessions(order)

        async def apply(tx: TransactionContext) -> BillingResult:
            return await self._apply(tx, order.user_id, order_id, sessions, ctx)

        try:
            result = await self._store.run_transaction(apply)
        except OrderStateConflictError as e:
            persisted = await self._orders.get(order.user_id, order_id)
            logger.info(
                f"[{ctx.request_id}] Finalize {order_id} lost the race "
                f"(order is {e.current.value}); returning recorded result"
            )
            if persisted is not None and persisted.status.is_terminal:
                return recorded_result(persisted)
            return BillingResult(
                status=BillingStatus.NOT_ACTIVE,
                order_id=order_id,
                currency=order.currency,
            )

        logger.info(
            f"[{ctx.request_id}] Finalized {order_id} via {ctx.trigger.value}: "
            f"{result.billable_seconds}s, cost {result.cost} {result.currency}, "
            f"fee {result.platform_fee}, earnings {result.expert_earnings}"
        )
        return result

    async def _fetch_sessions(self, order: ConsultationOrder) -> Optional[Sessions]:
        """Participant sessions from the platform, when the order lacks intervals."""
        if order.user_intervals and order.expert_intervals:
            return None
        if self._video is None or not order.stream_call_cid:
            return None
        try:
            participants = await self._video.get_call_participants(order.stream_call_cid)
        except (ExternalServiceError, InvalidCallCidError) as e:
            logger.warning(
                f"Could not fetch participants for {order.order_id}, "
                f"using coarse duration: {e.message}"
            )
            return None

        user_intervals = intervals_from_participants(participants, order.user_id)
        expert_intervals = intervals_from_participants(participants, order.expert_id)
        if not user_intervals or not expert_intervals:
            return None
        return user_intervals, expert_intervals

    async def _apply(
        self,
        tx: TransactionContext,
        user_id: str,
        order_id: str,
        sessions: Optional[Sessions],
        ctx: RequestContext,
    ) -> BillingResult:
        # Reads
        order = await self._orders.read(tx, user_id, order_id)
        if order is None:
            raise OrderMissingDuringFinalizeError(order_id)
        wallet = await self._wallets.read(tx, order.user_id, order.expert_id)
        account = await self._experts.read_account(tx, order.expert_id)
        store = await self._experts.read_store(tx, order.expert_id)
        active = await self._orders.read_active_for_expert(tx, order.expert_id)

        # Preconditions
        if order.status not in FINALIZABLE_STATUSES:
            raise OrderStateConflictError(order_id, order.status, "finalize")

        # Compute
        ended_at = order.end_time or ctx.now
        seconds = compute_billable_seconds(order, ended_at, sessions)
        cost = consultation_cost(seconds, order.rate_per_minute)

        balance = self._wallets.balance_from(wallet, order.user_id, order.expert_id, order.currency)
        if cost > balance.total_balance:
            logger.warning(
                f"Order {order_id}: cost {cost} exceeds wallet balance "
                f"{balance.total_balance}, charging the balance"
            )
            cost = balance.total_balance

        payout = PayoutBreakdown(effective_real_amount=ZERO, platform_fee=ZERO, expert_earnings=ZERO)
        if cost > ZERO:
            payout = calculate(ZERO, cost, balance.real_ratio, order.platform_fee_percent)
            debited = ledger.debit(balance, cost)

            # Writes
            self._wallets.stage_balance(tx, wallet, debited, ctx.now)
            self._wallets.stage_transaction(
                tx,
                WalletTransaction(
                    id=deduction_id(order_id),
                    user_id=order.user_id,
                    expert_id=order.expert_id,
                    type=WalletTransactionType.CONSULTATION_DEDUCTION,
                    amount=-cost,
                    currency=order.currency,
                    order_id=order_id,
                    created_at=ctx.now,
                    description=f"Consultation {order.consultation_type.value} ({seconds}s)",
                    real_amount=ledger.real_amount_consumed(balance, debited),
                    effective_real_amount=payout.effective_real_amount,
                    platform_fee=payout.platform_fee,
                    expert_earnings=payout.expert_earnings,
                ),
            )
            if payout.expert_earnings > ZERO:
                self._experts.stage_earning(
                    tx,
                    account,
                    ExpertEarning(
                        id=order_id,
                        expert_id=order.expert_id,
                        user_id=order.user_id,
                        order_id=order_id,
                        gross_amount=payout.effective_real_amount,
                        platform_fee=payout.platform_fee,
                        amount=payout.expert_earnings,
                        currency=order.currency,
                        created_at=ctx.now,
                    ),
                )

        completed = transition(
            order,
            ConsultationStatus.COMPLETED,
            end_time=ended_at,
            duration_seconds=seconds,
            cost=cost,
            platform_fee_amount=payout.platform_fee,
            expert_earnings=payout.expert_earnings,
            effective_real_amount=payout.effective_real_amount,
            billing_trigger=ctx.trigger.value,
        )
        self._orders.stage(tx, completed)
        self._experts.stage_release(tx, store, has_other_active(active, order_id))

        return BillingResult(
            status=BillingStatus.COMPLETED if cost > ZERO else BillingStatus.ZERO_CHARGE,
            order_id=order_id,
            billable_seconds=seconds,
            cost=cost,
            platform_fee=payout.platform_fee,
            expert_earnings=payout.expert_earnings,
            currency=order.currency,
        )
