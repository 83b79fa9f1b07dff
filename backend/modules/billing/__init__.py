"""
Billing module.

Finalizes consultations: billable time, charge, real-money payout split,
wallet debit and expert earnings, committed atomically.

Public API:
- IBillingCoordinator: Interface for the single finalize entry point
- BillingResult / BillingStatus: Finalize outcome
- PayoutBreakdown / PlatformFeeConfig: Fee split inputs and outputs
- Billing exceptions
"""

from .interfaces import IBillingCoordinator
from .models import (
    BillingResult,
    BillingStatus,
    PayoutBreakdown,
    PlatformFeeConfig,
    DEFAULT_FEE_PERCENT,
)
from .exceptions import BillingError, OrderMissingDuringFinalizeError

__all__ = [
    # Interface
    "IBillingCoordinator",
    # Models
    "BillingResult",
    "BillingStatus",
    "PayoutBreakdown",
    "PlatformFeeConfig",
    "DEFAULT_FEE_PERCENT",
    # Exceptions
    "BillingError",
    "OrderMissingDuringFinalizeError",
]
