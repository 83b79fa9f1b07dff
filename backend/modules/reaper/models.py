"""
Reaper data models.
"""

from typing import Any

from pydantic import BaseModel, Field

from shared.exceptions import FatalError


class SweepReport(BaseModel):
    """Aggregate outcome of one sweep run."""

    terminated: int = Field(default=0, description="CONNECTED orders force-ended and finalized")
    recovered: int = Field(default=0, description="TERMINATED orders left by an earlier sweep, finalized")
    failed_initiated: int = Field(default=0, description="Stale INITIATED orders failed")
    summaries_triggered: int = Field(default=0, description="Post-call summaries requested")
    errors: int = Field(default=0, description="Items that failed")
    error_details: list[dict[str, Any]] = Field(default_factory=list)

    def record_error(self, error: FatalError) -> None:
        self.errors += 1
        self.error_details.append(error.to_dict())
