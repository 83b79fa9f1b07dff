"""
Expert service implementation.

Experts toggle their own online flag; the BUSY flag is owned by the
consultation lifecycle and is never cleared here while an order still
holds the expert.
"""

import logging

from shared.models import RequestContext
from shared.transactions import IDocumentStore, TransactionContext
from modules.consultations.repository import OrderRepository

from .exceptions import ExpertNotFoundError
from .models import EarningsSummary, ExpertPresence, ExpertStore
from .repository import ExpertRepository

logger = logging.getLogger(__name__)


class ExpertService:
    """Expert presence and earnings."""

    def __init__(self, store: IDocumentStore):
        self._store = store
        self._experts = ExpertRepository(store)
        self._orders = OrderRepository(store)

    async def get_store(self, expert_id: str) -> ExpertStore:
        """
        Raises:
            ExpertNotFoundError: If the expert has no store document
        """
        store = await self._experts.get_store(expert_id)
        if store is None:
            raise ExpertNotFoundError(expert_id)
        return store

    async def set_presence(
        self,
        expert_id: str,
        is_online: bool,
        ctx: RequestContext,
    ) -> ExpertStore:
        """
        Go online or offline.

        An expert with an active order stays BUSY either way; the flag
        drops once that order ends.
        """

        async def apply(tx: TransactionContext) -> ExpertStore:
            snapshot = await self._experts.read_store(tx, expert_id)
            current = self._experts.store_from(snapshot, expert_id)
            if current is None:
                raise ExpertNotFoundError(expert_id)
            active = await self._orders.read_active_for_expert(tx, expert_id)

            if active:
                presence = ExpertPresence.BUSY
            elif is_online:
                presence = ExpertPresence.FREE
            else:
                presence = ExpertPresence.OFFLINE

            tx.update(
                snapshot.path,
                {"is_online": is_online, "consultation_status": presence.value},
            )
            return current.model_copy(
                update={"is_online": is_online, "consultation_status": presence}
            )

        updated = await self._store.run_transaction(apply)
        logger.info(
            f"[{ctx.request_id}] Expert {expert_id} is_online={is_online} "
            f"({updated.consultation_status.value})"
        )
        return updated

    async def get_earnings(self, expert_id: str, limit: int = 50) -> EarningsSummary:
        """Earnings balances by currency plus the most recent records."""
        balances = await self._experts.get_earnings_balances(expert_id)
        recent = await self._experts.list_earnings(expert_id, limit)
        return EarningsSummary(expert_id=expert_id, balances=balances, recent=recent)
