"""
Expert module exceptions.
"""

from typing import Optional

from shared.exceptions import ConsultLedgerError, NotFoundError


class ExpertError(ConsultLedgerError):
    """Base exception for expert-related errors."""

    pass


class ExpertNotFoundError(NotFoundError):
    """Raised when an expert has no store document."""

    def __init__(self, expert_id: str):
        super().__init__(
            f"Expert not found: {expert_id}",
            code="EXPERT_NOT_FOUND",
            details={"expert_id": expert_id},
        )


class ExpertUnavailableError(ExpertError):
    """Raised when an expert is offline or already in a consultation."""

    def __init__(self, expert_id: str, status: Optional[str] = None):
        super().__init__(
            "Expert is not available for a consultation",
            code="EXPERT_UNAVAILABLE",
            details={"expert_id": expert_id, "status": status},
        )
