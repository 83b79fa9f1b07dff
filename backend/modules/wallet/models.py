"""
Wallet module data models.

A wallet belongs to a (user, expert) pair and holds, per currency, a
total balance and the real sub-balance backed by settled payments.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from modules.billing.payout import extract_real_ratio


class WalletTransactionType(str, Enum):
    """Types of wallet ledger entries."""

    RECHARGE = "RECHARGE"                              # Paid top-up (real money)
    BONUS = "BONUS"                                    # Promotional top-up bonus
    CASHBACK = "CASHBACK"                              # Promotional cashback
    REFERRAL_BONUS = "REFERRAL_BONUS"                  # Referral reward
    REFUND = "REFUND"                                  # Money returned (real)
    ORDER_PAYMENT = "ORDER_PAYMENT"                    # Wallet spend on a direct order
    CONSULTATION_DEDUCTION = "CONSULTATION_DEDUCTION"  # Per-minute consultation charge


class TransactionStatus(str, Enum):
    """Wallet transaction status."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class WalletBalance(BaseModel):
    """Balance of one wallet in one currency."""

    user_id: str = Field(..., description="Wallet owner")
    expert_id: str = Field(..., description="Expert the wallet is held with")
    currency: str = Field(..., description="ISO currency code")
    total_balance: Decimal = Field(default=Decimal("0"), description="Total spendable balance")
    real_balance: Optional[Decimal] = Field(
        default=Decimal("0"),
        description="Portion backed by real money (None for wallets predating tracking)",
    )

    @property
    def real_ratio(self) -> Decimal:
        """Fraction of the total that is real money, in [0, 1]."""
        return extract_real_ratio(self.total_balance, self.real_balance)

    @property
    def bonus_balance(self) -> Decimal:
        if self.real_balance is None:
            return Decimal("0")
        return self.total_balance - self.real_balance


class WalletTransaction(BaseModel):
    """
    An immutable wallet ledger entry.

    Amounts are signed: positive for credits, negative for debits.
    """

    id: str = Field(..., description="Transaction ID")
    user_id: str = Field(..., description="Wallet owner")
    expert_id: str = Field(..., description="Expert the wallet is held with")
    type: WalletTransactionType = Field(..., description="Transaction type")
    amount: Decimal = Field(..., description="Signed amount")
    currency: str = Field(..., description="ISO currency code")
    status: TransactionStatus = Field(default=TransactionStatus.COMPLETED)
    order_id: Optional[str] = Field(None, description="Correlated consultation order")
    created_at: datetime = Field(..., description="When the entry was written")
    description: Optional[str] = Field(None, description="Human-readable reason")

    # Recharge correlation
    gateway_order_id: Optional[str] = Field(None, description="Payment gateway order ID")
    payment_id: Optional[str] = Field(None, description="Payment gateway payment ID")
    bonus_amount: Optional[Decimal] = Field(None, description="Bonus granted with a recharge")

    # Consultation deduction breakdown
    real_amount: Optional[Decimal] = Field(None, description="Real balance consumed")
    effective_real_amount: Optional[Decimal] = Field(None, description="Real portion of the charge")
    platform_fee: Optional[Decimal] = Field(None, description="Platform fee")
    expert_earnings: Optional[Decimal] = Field(None, description="Expert earnings")


class RechargeOption(BaseModel):
    """A recharge amount an expert offers, with its bonus."""

    amount: Decimal = Field(..., gt=0, description="Amount the user pays")
    bonus: Decimal = Field(default=Decimal("0"), ge=0, description="Bonus credit granted")


class CreateRechargeRequest(BaseModel):
    """Request to start a wallet recharge."""

    expert_id: str = Field(..., min_length=1, description="Expert whose wallet to top up")
    amount: Decimal = Field(..., gt=0, description="Amount to pay")
    currency: Optional[str] = Field(None, description="Currency (defaults to platform currency)")


class RechargeOrderResponse(BaseModel):
    """Gateway order the client completes payment against."""

    transaction_id: str
    gateway_order_id: str
    amount: Decimal
    bonus: Decimal
    currency: str
    key_id: str = Field(..., description="Public gateway key for the client checkout")


class VerifyRechargeRequest(BaseModel):
    """Payment confirmation returned by the gateway checkout."""

    expert_id: str = Field(..., min_length=1)
    transaction_id: str = Field(..., min_length=1)
    gateway_order_id: str = Field(..., min_length=1)
    payment_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)


class RechargeResult(BaseModel):
    """Outcome of a verified recharge."""

    transaction_id: str
    credited: Decimal = Field(..., description="Real money credited")
    bonus: Decimal = Field(..., description="Bonus credited")
    balance: WalletBalance
