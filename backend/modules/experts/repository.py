"""
Expert repository for document access.

Document layout:
- users/{expert_id}                                  (earnings balances)
- users/{expert_id}/public/store                     (presence, rates)
- users/{expert_id}/private/platform_fee_config      (fee overrides)
- users/{expert_id}/expert_earnings/{order_id}       (earning records)
"""

import logging
from decimal import Decimal
from typing import Optional

from shared.repository import BaseRepository
from shared.transactions import DocumentSnapshot, TransactionContext
from modules.billing.models import PlatformFeeConfig

from .models import ExpertEarning, ExpertPresence, ExpertStore

logger = logging.getLogger(__name__)

EARNINGS_BALANCES_FIELD = "expert_earnings_balances"


def expert_user_path(expert_id: str) -> str:
    return f"users/{expert_id}"


def store_path(expert_id: str) -> str:
    return f"users/{expert_id}/public/store"


def fee_config_path(expert_id: str) -> str:
    return f"users/{expert_id}/private/platform_fee_config"


def earning_path(expert_id: str, earning_id: str) -> str:
    return f"users/{expert_id}/expert_earnings/{earning_id}"


class ExpertRepository(BaseRepository[ExpertStore]):
    """
    Repository for expert presence, fee configuration and earnings.

    The ``read_*`` methods read inside a transaction; the ``stage_*``
    methods stage writes based on snapshots read earlier in the same
    transaction.
    """

    @staticmethod
    def store_from(snapshot: DocumentSnapshot, expert_id: str) -> Optional[ExpertStore]:
        if not snapshot.exists:
            return None
        return ExpertStore.model_validate({**snapshot.data, "expert_id": expert_id})

    async def get_store(self, expert_id: str) -> Optional[ExpertStore]:
        snapshot = await self._store.get(store_path(expert_id))
        return self.store_from(snapshot, expert_id)

    async def get_fee_config(
        self,
        expert_id: str,
        default_percent: Decimal,
        store: Optional[ExpertStore] = None,
    ) -> PlatformFeeConfig:
        """Private fee config first, then the store document's, then the default."""
        private = await self._store.get(fee_config_path(expert_id))
        if private.exists:
            return PlatformFeeConfig.from_document(private.data, default_percent)
        if store is None:
            store = await self.get_store(expert_id)
        if store is not None and store.platform_fee_config:
            return PlatformFeeConfig.from_document(store.platform_fee_config, default_percent)
        return PlatformFeeConfig(default_fee_percent=default_percent)

    async def read_store(self, tx: TransactionContext, expert_id: str) -> DocumentSnapshot:
        return await tx.get(store_path(expert_id))

    async def read_account(self, tx: TransactionContext, expert_id: str) -> DocumentSnapshot:
        return await tx.get(expert_user_path(expert_id))

    def stage_presence(
        self,
        tx: TransactionContext,
        store: DocumentSnapshot,
        presence: ExpertPresence,
    ) -> None:
        if not store.exists:
            logger.warning(f"No store document at {store.path}, presence not updated")
            return
        tx.update(store.path, {"consultation_status": presence.value})

    def stage_release(
        self,
        tx: TransactionContext,
        store: DocumentSnapshot,
        has_other_active_order: bool,
    ) -> bool:
        """
        Mark the expert FREE unless another order still holds them.

        Returns:
            True if the expert was released
        """
        if has_other_active_order:
            logger.info(f"Expert store {store.path} kept BUSY: another order is active")
            return False
        self.stage_presence(tx, store, ExpertPresence.FREE)
        return store.exists

    def stage_earning(
        self,
        tx: TransactionContext,
        account: DocumentSnapshot,
        earning: ExpertEarning,
    ) -> None:
        """Add the earning to the running balance and record it."""
        balances = account.get(EARNINGS_BALANCES_FIELD) or {}
        current = Decimal(str(balances.get(earning.currency, "0")))
        new_balance = str(current + earning.amount)
        if account.exists:
            tx.update(account.path, {f"{EARNINGS_BALANCES_FIELD}.{earning.currency}": new_balance})
        else:
            tx.set(account.path, {EARNINGS_BALANCES_FIELD: {earning.currency: new_balance}})
        tx.create(earning_path(earning.expert_id, earning.id), self.to_document(earning))

    async def get_earnings_balances(self, expert_id: str) -> dict[str, Decimal]:
        snapshot = await self._store.get(expert_user_path(expert_id))
        balances = snapshot.get(EARNINGS_BALANCES_FIELD) or {}
        return {currency: Decimal(str(value)) for currency, value in balances.items()}

    async def list_earnings(self, expert_id: str, limit: int = 50) -> list[ExpertEarning]:
        snapshots = await self._store.query(
            "expert_earnings",
            [("expert_id", "==", expert_id)],
        )
        earnings = [ExpertEarning.model_validate(s.data) for s in snapshots]
        earnings.sort(key=lambda e: e.created_at, reverse=True)
        return earnings[:limit]
