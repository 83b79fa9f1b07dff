"""
Reaper module.

Periodic sweep that force-ends overdue calls, finalizes orphaned
TERMINATED orders and fails stale INITIATED orders.

Public API:
- IReaper: Interface for the sweep
- ISummaryGenerator / NullSummaryGenerator: Post-call summary hook
- SweepReport: Aggregate sweep outcome
"""

from .interfaces import IReaper, ISummaryGenerator, NullSummaryGenerator
from .models import SweepReport

__all__ = [
    "IReaper",
    "ISummaryGenerator",
    "NullSummaryGenerator",
    "SweepReport",
]
