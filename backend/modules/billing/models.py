"""
Billing module data models.

These models define the results of finalizing a consultation and the
fee configuration used when an order is created.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


DEFAULT_FEE_PERCENT = Decimal("10")


class BillingStatus(str, Enum):
    """Outcome of a finalize call."""

    COMPLETED = "completed"                  # This call charged the order
    ZERO_CHARGE = "zero_charge"              # Completed with nothing billable
    ALREADY_FINALIZED = "already_finalized"  # Another caller got there first
    NOT_ACTIVE = "not_active"                # Order never connected
    NOT_FOUND = "not_found"                  # No such order


class PayoutBreakdown(BaseModel):
    """
    Split of a charge between platform and expert.

    Transient: embedded into the order and its deduction transaction,
    never stored on its own.
    """

    effective_real_amount: Decimal = Field(
        ...,
        description="Portion of the charge backed by real money",
    )
    platform_fee: Decimal = Field(..., description="Platform fee on the real portion")
    expert_earnings: Decimal = Field(..., description="Expert's share of the real portion")


class BillingResult(BaseModel):
    """Result of finalizing a consultation order."""

    status: BillingStatus = Field(..., description="Finalize outcome")
    order_id: str = Field(..., description="Consultation order ID")
    billable_seconds: int = Field(default=0, description="Seconds both parties were present")
    cost: Decimal = Field(default=Decimal("0"), description="Amount debited from the wallet")
    platform_fee: Decimal = Field(default=Decimal("0"), description="Platform fee")
    expert_earnings: Decimal = Field(default=Decimal("0"), description="Expert earnings")
    currency: Optional[str] = Field(None, description="Currency of all amounts")

    @property
    def charged(self) -> bool:
        """True if this call performed the charge."""
        return self.status in (BillingStatus.COMPLETED, BillingStatus.ZERO_CHARGE)

    @classmethod
    def not_found(cls, order_id: str) -> "BillingResult":
        return cls(status=BillingStatus.NOT_FOUND, order_id=order_id)


class PlatformFeeConfig(BaseModel):
    """
    Platform fee percentages for an expert.

    Resolution order: category-specific, then order-type-specific, then
    the default.
    """

    default_fee_percent: Decimal = Field(
        default=DEFAULT_FEE_PERCENT,
        description="Fee percent when nothing more specific matches",
    )
    fee_by_type: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Fee percent by order type (e.g. ON_DEMAND_CONSULTATION)",
    )
    fee_by_category: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Fee percent by expert category (e.g. TAROT)",
    )

    def fee_percent(self, order_type: Optional[str], category: Optional[str]) -> Decimal:
        if category and category in self.fee_by_category:
            return self.fee_by_category[category]
        if order_type and order_type in self.fee_by_type:
            return self.fee_by_type[order_type]
        return self.default_fee_percent

    @classmethod
    def from_document(
        cls,
        data: Optional[dict[str, Any]],
        default_percent: Decimal = DEFAULT_FEE_PERCENT,
    ) -> "PlatformFeeConfig":
        if not data:
            return cls(default_fee_percent=default_percent)
        merged = {"default_fee_percent": default_percent, **data}
        return cls.model_validate(merged)
