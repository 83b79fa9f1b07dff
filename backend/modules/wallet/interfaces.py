"""
Wallet module interface.

Routes and other modules depend on IWalletService, not the concrete
implementation.
"""

from decimal import Decimal
from typing import Optional, Protocol, runtime_checkable

from shared.models import RequestContext

from .models import (
    CreateRechargeRequest,
    RechargeOrderResponse,
    RechargeResult,
    VerifyRechargeRequest,
    WalletBalance,
    WalletTransaction,
    WalletTransactionType,
)


@runtime_checkable
class IWalletService(Protocol):
    """Interface for wallet operations."""

    async def get_balance(
        self,
        user_id: str,
        expert_id: str,
        currency: Optional[str] = None,
    ) -> WalletBalance:
        """
        Get the balance a user holds with an expert.

        A wallet that doesn't exist yet has a zero balance.
        """
        ...

    async def list_transactions(
        self,
        user_id: str,
        expert_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> list[WalletTransaction]:
        """Get ledger entries, most recent first."""
        ...

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
        """Credit the wallet and append a ledger entry atomically."""
        ...

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
        Debit the wallet and append a ledger entry atomically.

        Raises:
            InsufficientBalanceError: If the wallet cannot cover amount
        """
        ...

    async def create_recharge(
        self,
        user_id: str,
        request: CreateRechargeRequest,
        ctx: RequestContext,
    ) -> RechargeOrderResponse:
        """Create a gateway order and a pending recharge entry."""
        ...

    async def verify_recharge(
        self,
        user_id: str,
        request: VerifyRechargeRequest,
        ctx: RequestContext,
    ) -> RechargeResult:
        """Verify the payment and credit the recharge plus bonus."""
        ...
