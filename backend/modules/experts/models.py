"""
Expert module data models.

An expert's public store document carries their presence flag, their
on-demand rates and recharge options. Earnings are kept as a per-currency
running balance on the expert's user document plus one record per order.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from modules.wallet.models import RechargeOption


class ExpertPresence(str, Enum):
    """Coarse presence flag (consultation_status on the store document)."""

    FREE = "FREE"
    BUSY = "BUSY"
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


class ExpertStore(BaseModel):
    """The expert's public store document."""

    model_config = {"extra": "ignore"}

    expert_id: str = Field(..., description="Expert user ID")
    is_online: bool = Field(default=False, description="Expert has gone online")
    consultation_status: ExpertPresence = Field(default=ExpertPresence.OFFLINE)
    category: Optional[str] = Field(None, description="Expert category (e.g. TAROT)")
    currency: Optional[str] = Field(None, description="Currency rates are quoted in")
    on_demand_rates: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Per-minute rate by consultation type (audio/video/chat)",
    )
    recharge_options: list[RechargeOption] = Field(default_factory=list)
    platform_fee_config: Optional[dict[str, Any]] = Field(
        None,
        description="Fee overrides when no private fee config exists",
    )

    @property
    def is_available(self) -> bool:
        """Online and not already in a consultation."""
        return self.is_online and self.consultation_status not in (
            ExpertPresence.BUSY,
            ExpertPresence.OFFLINE,
        )

    def rate_for(self, consultation_type: str) -> Optional[Decimal]:
        return self.on_demand_rates.get(consultation_type)

    def bonus_for(self, amount: Decimal) -> Decimal:
        """Bonus for a recharge of exactly this amount, else 0."""
        for option in self.recharge_options:
            if option.amount == amount:
                return option.bonus
        return Decimal("0")


class EarningType(str, Enum):
    """Types of expert earnings records."""

    ORDER_EARNING = "ORDER_EARNING"


class ExpertEarning(BaseModel):
    """Earnings from one finalized order."""

    id: str = Field(..., description="Record ID (the order ID)")
    expert_id: str
    user_id: str
    order_id: str
    type: EarningType = Field(default=EarningType.ORDER_EARNING)
    gross_amount: Decimal = Field(..., description="Real-money portion of the charge")
    platform_fee: Decimal = Field(..., description="Fee kept by the platform")
    amount: Decimal = Field(..., description="Net amount owed to the expert")
    currency: str
    created_at: datetime


class EarningsSummary(BaseModel):
    """An expert's earnings balances and recent records."""

    expert_id: str
    balances: dict[str, Decimal] = Field(default_factory=dict)
    recent: list[ExpertEarning] = Field(default_factory=list)


class UpdatePresenceRequest(BaseModel):
    """Expert going online or offline."""

    is_online: bool
