"""
Consultation order repository.

Orders live at users/{user_id}/orders/{order_id}. Lookups that only know
the order ID or the call CID search the "orders" collection group.
"""

from typing import Optional

from shared.repository import BaseRepository
from shared.transactions import TransactionContext

from .models import ACTIVE_STATUSES, ConsultationOrder, ConsultationStatus, ORDER_TYPE

ORDERS_GROUP = "orders"


def order_path(user_id: str, order_id: str) -> str:
    return f"users/{user_id}/orders/{order_id}"


class OrderRepository(BaseRepository[ConsultationOrder]):
    """
    Repository for consultation orders.

    Note: This repository does NOT perform authorization checks.
    The service layer is responsible for verifying user ownership.
    """

    # -------------------------------------------------------------------------
    # Reads outside transactions
    # -------------------------------------------------------------------------

    async def get(self, user_id: str, order_id: str) -> Optional[ConsultationOrder]:
        snapshot = await self._store.get(order_path(user_id, order_id))
        if not snapshot.exists:
            return None
        return ConsultationOrder.model_validate(snapshot.data)

    async def find(self, order_id: str) -> Optional[ConsultationOrder]:
        """Find an order by ID without knowing its owner."""
        snapshots = await self._store.query(
            ORDERS_GROUP,
            [("order_id", "==", order_id), ("type", "==", ORDER_TYPE)],
            limit=1,
        )
        if not snapshots:
            return None
        return ConsultationOrder.model_validate(snapshots[0].data)

    async def find_by_call_cid(self, call_cid: str) -> Optional[ConsultationOrder]:
        snapshots = await self._store.query(
            ORDERS_GROUP,
            [("stream_call_cid", "==", call_cid)],
            limit=1,
        )
        if not snapshots:
            return None
        return ConsultationOrder.model_validate(snapshots[0].data)

    async def list_by_status(
        self,
        status: ConsultationStatus,
        limit: Optional[int] = None,
    ) -> list[ConsultationOrder]:
        snapshots = await self._store.query(
            ORDERS_GROUP,
            [("type", "==", ORDER_TYPE), ("status", "==", status.value)],
            limit=limit,
        )
        return [ConsultationOrder.model_validate(s.data) for s in snapshots]

    async def latest_active_for_user(self, user_id: str) -> Optional[ConsultationOrder]:
        snapshots = await self._store.query(
            ORDERS_GROUP,
            [
                ("user_id", "==", user_id),
                ("type", "==", ORDER_TYPE),
                ("status", "in", [s.value for s in ACTIVE_STATUSES]),
            ],
        )
        orders = [ConsultationOrder.model_validate(s.data) for s in snapshots]
        if not orders:
            return None
        return max(orders, key=lambda o: o.created_at)

    # -------------------------------------------------------------------------
    # Transactional reads and writes
    # -------------------------------------------------------------------------

    async def read(
        self,
        tx: TransactionContext,
        user_id: str,
        order_id: str,
    ) -> Optional[ConsultationOrder]:
        snapshot = await tx.get(order_path(user_id, order_id))
        if not snapshot.exists:
            return None
        return ConsultationOrder.model_validate(snapshot.data)

    async def read_active_for_expert(
        self,
        tx: TransactionContext,
        expert_id: str,
    ) -> list[ConsultationOrder]:
        snapshots = await tx.query(
            ORDERS_GROUP,
            [
                ("expert_id", "==", expert_id),
                ("type", "==", ORDER_TYPE),
                ("status", "in", [s.value for s in ACTIVE_STATUSES]),
            ],
        )
        return [ConsultationOrder.model_validate(s.data) for s in snapshots]

    def stage_create(self, tx: TransactionContext, order: ConsultationOrder) -> None:
        tx.create(order_path(order.user_id, order.order_id), self.to_document(order))

    def stage(self, tx: TransactionContext, order: ConsultationOrder) -> None:
        tx.set(order_path(order.user_id, order.order_id), self.to_document(order))


def has_other_active(orders: list[ConsultationOrder], order_id: str) -> bool:
    """True if any order other than order_id still holds the expert."""
    return any(o.order_id != order_id and o.status.is_active for o in orders)
