"""
Experts module interface.
"""

from typing import Protocol, runtime_checkable

from shared.models import RequestContext

from .models import EarningsSummary, ExpertStore


@runtime_checkable
class IExpertService(Protocol):
    """Interface for expert presence and earnings."""

    async def get_store(self, expert_id: str) -> ExpertStore:
        """
        Get an expert's public store document.

        Raises:
            ExpertNotFoundError: If the expert doesn't exist
        """
        ...

    async def set_presence(
        self,
        expert_id: str,
        is_online: bool,
        ctx: RequestContext,
    ) -> ExpertStore:
        """Set the expert's online flag. Stays BUSY while an order is active."""
        ...

    async def get_earnings(self, expert_id: str, limit: int = 50) -> EarningsSummary:
        """Get earnings balances and recent earning records."""
        ...
