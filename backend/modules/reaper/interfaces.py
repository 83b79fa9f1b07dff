"""
Reaper module interfaces.
"""

from typing import Protocol, runtime_checkable

from shared.models import RequestContext

from .models import SweepReport


@runtime_checkable
class IReaper(Protocol):
    """Interface for the periodic auto-terminate sweep."""

    async def sweep(self, ctx: RequestContext) -> SweepReport:
        """
        Run one sweep.

        Per-order failures are counted in the report; they never abort
        the run.
        """
        ...


@runtime_checkable
class ISummaryGenerator(Protocol):
    """
    Collaborator that generates post-call summaries.

    The sweep only triggers it with a bounded batch size.
    """

    async def generate_pending(self, limit: int) -> int:
        """
        Generate up to limit pending summaries.

        Returns:
            Number of summaries triggered
        """
        ...


class NullSummaryGenerator:
    """Summary generator used when none is configured."""

    async def generate_pending(self, limit: int) -> int:
        return 0
