"""
Wallet repository for document access.

Document layout:
- users/{user_id}/expert_wallets/{expert_id}
    balances:      {currency: "decimal"}
    real_balances: {currency: "decimal"}
- users/{user_id}/expert_wallets/{expert_id}/transactions/{transaction_id}
"""

import copy
from datetime import datetime
from decimal import Decimal
from typing import Optional

from shared.repository import BaseRepository
from shared.transactions import DocumentSnapshot, TransactionContext

from .models import WalletBalance, WalletTransaction

TRANSACTIONS_GROUP = "transactions"


def wallet_path(user_id: str, expert_id: str) -> str:
    return f"users/{user_id}/expert_wallets/{expert_id}"


def transaction_path(user_id: str, expert_id: str, transaction_id: str) -> str:
    return f"{wallet_path(user_id, expert_id)}/transactions/{transaction_id}"


def deduction_id(order_id: str) -> str:
    """Deterministic ID of the consultation deduction for an order."""
    return f"consultation_{order_id}"


class WalletRepository(BaseRepository[WalletBalance]):
    """Repository for wallet balances and the transaction ledger."""

    @staticmethod
    def balance_from(
        snapshot: DocumentSnapshot,
        user_id: str,
        expert_id: str,
        currency: str,
    ) -> WalletBalance:
        """Map a wallet document to the balance in one currency."""
        balances = snapshot.get("balances") or {}
        real_balances = snapshot.get("real_balances")
        total = Decimal(str(balances.get(currency, "0")))

        real: Optional[Decimal]
        if real_balances is None or currency not in real_balances:
            # No real balance tracked for a funded wallet: legacy data
            real = None if total > 0 else Decimal("0")
        else:
            real = Decimal(str(real_balances[currency]))

        return WalletBalance(
            user_id=user_id,
            expert_id=expert_id,
            currency=currency,
            total_balance=total,
            real_balance=real,
        )

    async def get_balance(self, user_id: str, expert_id: str, currency: str) -> WalletBalance:
        snapshot = await self._store.get(wallet_path(user_id, expert_id))
        return self.balance_from(snapshot, user_id, expert_id, currency)

    async def read(self, tx: TransactionContext, user_id: str, expert_id: str) -> DocumentSnapshot:
        return await tx.get(wallet_path(user_id, expert_id))

    async def read_transaction(
        self,
        tx: TransactionContext,
        user_id: str,
        expert_id: str,
        transaction_id: str,
    ) -> Optional[WalletTransaction]:
        snapshot = await tx.get(transaction_path(user_id, expert_id, transaction_id))
        if not snapshot.exists:
            return None
        return WalletTransaction.model_validate(snapshot.data)

    def stage_balance(
        self,
        tx: TransactionContext,
        snapshot: DocumentSnapshot,
        balance: WalletBalance,
        now: datetime,
    ) -> None:
        """Write one currency's balances back into the wallet document."""
        data = copy.deepcopy(snapshot.data) if snapshot.exists else {
            "user_id": balance.user_id,
            "expert_id": balance.expert_id,
        }
        data.setdefault("balances", {})[balance.currency] = str(balance.total_balance)
        real = balance.real_balance if balance.real_balance is not None else balance.total_balance
        data.setdefault("real_balances", {})[balance.currency] = str(real)
        data["updated_at"] = now.isoformat()
        tx.set(snapshot.path, data)

    def stage_transaction(self, tx: TransactionContext, transaction: WalletTransaction) -> None:
        tx.create(
            transaction_path(transaction.user_id, transaction.expert_id, transaction.id),
            self.to_document(transaction),
        )

    def stage_transaction_update(self, tx: TransactionContext, transaction: WalletTransaction) -> None:
        tx.set(
            transaction_path(transaction.user_id, transaction.expert_id, transaction.id),
            self.to_document(transaction),
        )

    async def list_transactions(
        self,
        user_id: str,
        expert_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> list[WalletTransaction]:
        """Transactions for one wallet, most recent first."""
        snapshots = await self._store.query(
            TRANSACTIONS_GROUP,
            [("user_id", "==", user_id), ("expert_id", "==", expert_id)],
        )
        transactions = [WalletTransaction.model_validate(s.data) for s in snapshots]
        transactions.sort(key=lambda t: t.created_at, reverse=True)
        return transactions[offset : offset + limit]

    async def find_by_payment_id(self, user_id: str, payment_id: str) -> Optional[WalletTransaction]:
        snapshots = await self._store.query(
            TRANSACTIONS_GROUP,
            [("user_id", "==", user_id), ("payment_id", "==", payment_id)],
            limit=1,
        )
        if not snapshots:
            return None
        return WalletTransaction.model_validate(snapshots[0].data)
