"""
Billing module interface.

Every trigger that ends a consultation (client end, webhook, sweep)
depends on IBillingCoordinator, so there is exactly one finalize path.
"""

from typing import Optional, Protocol, runtime_checkable

from shared.models import RequestContext

from .models import BillingResult


@runtime_checkable
class IBillingCoordinator(Protocol):
    """
    Interface for finalizing consultation charges.

    finalize is safe to call concurrently for the same order from any
    number of triggers: exactly one call charges the order, every other
    call returns the persisted result.
    """

    async def finalize(
        self,
        order_id: str,
        ctx: RequestContext,
        user_id: Optional[str] = None,
    ) -> BillingResult:
        """
        Charge a CONNECTED or TERMINATED order and mark it COMPLETED.

        Args:
            order_id: Consultation order ID
            ctx: Request context (its clock closes open presence intervals)
            user_id: Order owner, if known (saves a lookup)

        Returns:
            BillingResult. NOT_FOUND when the order doesn't exist,
            ALREADY_FINALIZED when another caller charged it, NOT_ACTIVE
            when it never connected.

        Raises:
            TransactionContentionError: If the store kept conflicting;
                the caller may retry the whole finalize
        """
        ...
