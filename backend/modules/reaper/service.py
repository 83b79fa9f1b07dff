"""
Auto-terminate sweep.

Runs periodically (cron) as the safety net behind heartbeats and
webhooks:

1. CONNECTED orders past their allowed duration plus a grace period are
   moved to TERMINATED and finalized.
2. TERMINATED orders left behind by an interrupted sweep are finalized.
3. INITIATED orders older than the initiation timeout are FAILED.
4. A bounded batch of post-call summaries is triggered.

Each order is handled on its own; a failure is logged and counted and the
sweep moves on.
"""

import logging
from typing import Awaitable, Callable, Optional

from shared.config import Settings, get_settings
from shared.exceptions import FatalError
from shared.models import RequestContext
from shared.transactions import IDocumentStore
from modules.billing.interfaces import IBillingCoordinator
from modules.consultations.interfaces import IConsultationService
from modules.consultations.models import ConsultationOrder, ConsultationStatus
from modules.consultations.repository import OrderRepository

from .interfaces import ISummaryGenerator, NullSummaryGenerator
from .models import SweepReport

logger = logging.getLogger(__name__)

TIMEOUT_REASON = "INITIATED_TIMEOUT"


class Reaper:
    """IReaper over the document store."""

    def __init__(
        self,
        store: IDocumentStore,
        consultations: IConsultationService,
        billing: IBillingCoordinator,
        summaries: Optional[ISummaryGenerator] = None,
        settings: Optional[Settings] = None,
    ):
        self._orders = OrderRepository(store)
        self._consultations = consultations
        self._billing = billing
        self._summaries = summaries or NullSummaryGenerator()
        self._settings = settings or get_settings()

    async def sweep(self, ctx: RequestContext) -> SweepReport:
        report = SweepReport()

        connected = await self._orders.list_by_status(ConsultationStatus.CONNECTED)
        for order in connected:
            if self._is_overdue(order, ctx):
                await self._guarded(order, report, self._terminate, ctx)

        terminated = await self._orders.list_by_status(ConsultationStatus.TERMINATED)
        for order in terminated:
            await self._guarded(order, report, self._recover, ctx)

        initiated = await self._orders.list_by_status(ConsultationStatus.INITIATED)
        for order in initiated:
            if self._consultations.is_stale_initiated(order, ctx.now):
                await self._guarded(order, report, self._fail_initiated, ctx)

        try:
            report.summaries_triggered = await self._summaries.generate_pending(
                self._settings.summary_batch_size
            )
        except Exception as e:
            error = FatalError("Summary generation failed", "summaries", e)
            logger.exception(f"[{ctx.request_id}] {error.message}")
            report.record_error(error)

        logger.info(
            f"[{ctx.request_id}] Sweep done: terminated={report.terminated} "
            f"recovered={report.recovered} failed_initiated={report.failed_initiated} "
            f"summaries={report.summaries_triggered} errors={report.errors}"
        )
        return report

    def _is_overdue(self, order: ConsultationOrder, ctx: RequestContext) -> bool:
        deadline = order.max_allowed_duration + self._settings.auto_terminate_grace_seconds
        return order.elapsed_seconds(ctx.now) >= deadline

    async def _guarded(
        self,
        order: ConsultationOrder,
        report: SweepReport,
        action: Callable[[ConsultationOrder, SweepReport, RequestContext], Awaitable[None]],
        ctx: RequestContext,
    ) -> None:
        try:
            await action(order, report, ctx)
        except Exception as e:
            error = FatalError(
                f"Sweep failed for order {order.order_id}: {e}",
                order.order_id,
                e,
            )
            logger.exception(f"[{ctx.request_id}] {error.message}")
            report.record_error(error)

    async def _terminate(self, order: ConsultationOrder, report: SweepReport, ctx: RequestContext) -> None:
        if not await self._consultations.terminate(order, ctx):
            logger.debug(f"Order {order.order_id} left CONNECTED before the sweep reached it")
            return
        logger.info(
            f"[{ctx.request_id}] Order {order.order_id} TERMINATED "
            f"(elapsed {order.elapsed_seconds(ctx.now)}s, max {order.max_allowed_duration}s)"
        )
        await self._billing.finalize(order.order_id, ctx, user_id=order.user_id)
        await self._consultations.end_call_best_effort(order)
        report.terminated += 1

    async def _recover(self, order: ConsultationOrder, report: SweepReport, ctx: RequestContext) -> None:
        await self._billing.finalize(order.order_id, ctx, user_id=order.user_id)
        await self._consultations.end_call_best_effort(order)
        report.recovered += 1

    async def _fail_initiated(self, order: ConsultationOrder, report: SweepReport, ctx: RequestContext) -> None:
        if await self._consultations.fail_initiated(order, TIMEOUT_REASON, ctx):
            report.failed_initiated += 1
