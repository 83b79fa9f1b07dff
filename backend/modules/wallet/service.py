"""
Wallet service implementation.

Every balance change runs in a single document-store transaction that
writes the new balance and its ledger entry together.
"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

from shared.config import Settings, get_settings
from shared.models import RequestContext
from shared.transactions import IDocumentStore, TransactionContext
from modules.experts.exceptions import ExpertNotFoundError
from modules.experts.repository import ExpertRepository
from modules.payments.exceptions import PaymentGatewayError
from modules.payments.interfaces import IPaymentGateway

from . import ledger
from .exceptions import (
    DuplicateTransactionError,
    PaymentVerificationError,
    RechargeMismatchError,
    TransactionNotFoundError,
)
from .models import (
    CreateRechargeRequest,
    RechargeOrderResponse,
    RechargeResult,
    TransactionStatus,
    VerifyRechargeRequest,
    WalletBalance,
    WalletTransaction,
    WalletTransactionType,
)
from .repository import WalletRepository

logger = logging.getLogger(__name__)


class WalletService:
    """Wallet balances, ledger entries and gateway-funded recharges."""

    def __init__(
        self,
        store: IDocumentStore,
        payment_gateway: Optional[IPaymentGateway] = None,
        settings: Optional[Settings] = None,
    ):
        self._store = store
        self._wallets = WalletRepository(store)
        self._experts = ExpertRepository(store)
        self._gateway = payment_gateway
        self._settings = settings or get_settings()

    def _currency(self, currency: Optional[str]) -> str:
        return currency or self._settings.default_currency

    async def get_balance(
        self,
        user_id: str,
        expert_id: str,
        currency: Optional[str] = None,
    ) -> WalletBalance:
        """Get the wallet balance a user holds with an expert."""
        return await self._wallets.get_balance(user_id, expert_id, self._currency(currency))

    async def list_transactions(
        self,
        user_id: str,
        expert_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> list[WalletTransaction]:
        """Get the wallet's ledger entries, most recent first."""
        return await self._wallets.list_transactions(user_id, expert_id, limit, offset)

    async def credit(
        self,
        user_id: str,
        expert_id: str,
        transaction_type: WalletTransactionType,
        amount: Decimal,
        ctx: RequestContext,
        currency: Optional[str] = None,
        order_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> WalletTransaction:
        """
        Credit a wallet.

        RECHARGE and REFUND credits add real money; every other type adds
        bonus credit only.
        """
        currency = self._currency(currency)

        async def apply(tx: TransactionContext) -> WalletTransaction:
            snapshot = await self._wallets.read(tx, user_id, expert_id)
            balance = self._wallets.balance_from(snapshot, user_id, expert_id, currency)
            updated = ledger.credit(balance, transaction_type, amount)

            entry = WalletTransaction(
                id=uuid.uuid4().hex,
                user_id=user_id,
                expert_id=expert_id,
                type=transaction_type,
                amount=amount,
                currency=currency,
                order_id=order_id,
                created_at=ctx.now,
                description=description,
                real_amount=ledger.compute_real_balance_credit(transaction_type, amount),
            )
            self._wallets.stage_balance(tx, snapshot, updated, ctx.now)
            self._wallets.stage_transaction(tx, entry)
            return entry

        entry = await self._store.run_transaction(apply)
        logger.info(
            f"Credited {amount} {currency} ({transaction_type.value}) to wallet {user_id}/{expert_id}"
        )
        return entry

    async def debit(
        self,
        user_id: str,
        expert_id: str,
        amount: Decimal,
        ctx: RequestContext,
        currency: Optional[str] = None,
        order_id: Optional[str] = None,
        description: Optional[str] = None,
        transaction_type: WalletTransactionType = WalletTransactionType.ORDER_PAYMENT,
    ) -> WalletTransaction:
        """
        Debit a wallet, consuming real and bonus money proportionally.

        Raises:
            InsufficientBalanceError: If the wallet cannot cover amount
        """
        currency = self._currency(currency)

        async def apply(tx: TransactionContext) -> WalletTransaction:
            snapshot = await self._wallets.read(tx, user_id, expert_id)
            balance = self._wallets.balance_from(snapshot, user_id, expert_id, currency)
            updated = ledger.debit(balance, amount)

            entry = WalletTransaction(
                id=uuid.uuid4().hex,
                user_id=user_id,
                expert_id=expert_id,
                type=transaction_type,
                amount=-amount,
                currency=currency,
                order_id=order_id,
                created_at=ctx.now,
                description=description,
                real_amount=ledger.real_amount_consumed(balance, updated),
            )
            self._wallets.stage_balance(tx, snapshot, updated, ctx.now)
            self._wallets.stage_transaction(tx, entry)
            return entry

        entry = await self._store.run_transaction(apply)
        logger.info(f"Debited {amount} {currency} from wallet {user_id}/{expert_id}")
        return entry

    async def create_recharge(
        self,
        user_id: str,
        request: CreateRechargeRequest,
        ctx: RequestContext,
    ) -> RechargeOrderResponse:
        """
        Start a recharge: create a gateway order and a PENDING ledger entry.

        The bonus is always taken from the expert's recharge options,
        never from the client.
        """
        if self._gateway is None:
            raise PaymentGatewayError("No payment gateway configured")

        store = await self._experts.get_store(request.expert_id)
        if store is None:
            raise ExpertNotFoundError(request.expert_id)

        currency = request.currency or store.currency or self._settings.default_currency
        bonus = store.bonus_for(request.amount)
        transaction_id = uuid.uuid4().hex

        gateway_order = await self._gateway.create_order(request.amount, currency, transaction_id)

        pending = WalletTransaction(
            id=transaction_id,
            user_id=user_id,
            expert_id=request.expert_id,
            type=WalletTransactionType.RECHARGE,
            amount=request.amount,
            currency=currency,
            status=TransactionStatus.PENDING,
            created_at=ctx.now,
            gateway_order_id=gateway_order.gateway_order_id,
            bonus_amount=bonus,
            description="Wallet recharge",
        )

        async def apply(tx: TransactionContext) -> None:
            self._wallets.stage_transaction(tx, pending)

        await self._store.run_transaction(apply)
        logger.info(
            f"Recharge {transaction_id} pending for {user_id}/{request.expert_id}: "
            f"{request.amount} {currency} + {bonus} bonus"
        )

        return RechargeOrderResponse(
            transaction_id=transaction_id,
            gateway_order_id=gateway_order.gateway_order_id,
            amount=request.amount,
            bonus=bonus,
            currency=currency,
            key_id=gateway_order.key_id,
        )

    async def verify_recharge(
        self,
        user_id: str,
        request: VerifyRechargeRequest,
        ctx: RequestContext,
    ) -> RechargeResult:
        """
        Complete a recharge after the client's checkout succeeds.

        Credits the paid amount as real money and the bonus as bonus credit
        in one transaction.

        Raises:
            PaymentVerificationError: If the gateway signature is invalid
            DuplicateTransactionError: If the payment was already credited
        """
        if self._gateway is None:
            raise PaymentGatewayError("No payment gateway configured")
        if not self._gateway.verify_payment(
            request.gateway_order_id, request.payment_id, request.signature
        ):
            raise PaymentVerificationError(request.gateway_order_id)

        existing = await self._wallets.find_by_payment_id(user_id, request.payment_id)
        if existing is not None:
            raise DuplicateTransactionError(existing.id)

        async def apply(tx: TransactionContext) -> RechargeResult:
            snapshot = await self._wallets.read(tx, user_id, request.expert_id)
            pending = await self._wallets.read_transaction(
                tx, user_id, request.expert_id, request.transaction_id
            )
            if pending is None:
                raise TransactionNotFoundError(request.transaction_id)
            if pending.status == TransactionStatus.COMPLETED:
                raise DuplicateTransactionError(pending.id)
            if pending.gateway_order_id != request.gateway_order_id:
                raise RechargeMismatchError(pending.id, "gateway order does not match")

            balance = self._wallets.balance_from(
                snapshot, user_id, request.expert_id, pending.currency
            )
            updated = ledger.credit(balance, WalletTransactionType.RECHARGE, pending.amount)
            bonus = pending.bonus_amount or Decimal("0")
            if bonus > 0:
                updated = ledger.credit(updated, WalletTransactionType.BONUS, bonus)

            self._wallets.stage_balance(tx, snapshot, updated, ctx.now)
            self._wallets.stage_transaction_update(
                tx,
                pending.model_copy(
                    update={
                        "status": TransactionStatus.COMPLETED,
                        "payment_id": request.payment_id,
                        "real_amount": pending.amount,
                    }
                ),
            )
            if bonus > 0:
                self._wallets.stage_transaction(
                    tx,
                    WalletTransaction(
                        id=f"{pending.id}_bonus",
                        user_id=user_id,
                        expert_id=request.expert_id,
                        type=WalletTransactionType.BONUS,
                        amount=bonus,
                        currency=pending.currency,
                        created_at=ctx.now,
                        description="Recharge bonus",
                        real_amount=Decimal("0"),
                    ),
                )
            return RechargeResult(
                transaction_id=pending.id,
                credited=pending.amount,
                bonus=bonus,
                balance=updated,
            )

        result = await self._store.run_transaction(apply)
        logger.info(
            f"Recharge {result.transaction_id} completed: {result.credited} + {result.bonus} bonus"
        )
        return result
