"""
Base exception classes for the Consult Ledger backend.

Each module should define its own exceptions that inherit from these bases.
This enables consistent error handling across the application.
"""

from typing import Optional, Any


class ConsultLedgerError(Exception):
    """
    Base exception for all Consult Ledger errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(ConsultLedgerError):
    """Resource not found."""

    pass


class ValidationError(ConsultLedgerError):
    """Input validation failed."""

    pass


class ConflictError(ConsultLedgerError):
    """
    A precondition failed inside a transaction.

    Raised when the state read inside a transaction no longer matches what
    the caller expected. Callers either retry with fresh reads or treat the
    operation as already handled.
    """

    pass


class AuthenticationError(ConsultLedgerError):
    """Authentication failed (invalid or missing credentials)."""

    pass


class AuthorizationError(ConsultLedgerError):
    """Authorization failed (insufficient permissions)."""

    pass


class ExternalServiceError(ConsultLedgerError):
    """Error communicating with an external service."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service


class FatalError(ConsultLedgerError):
    """
    Unexpected failure while processing a single item of a batch.

    Batch jobs wrap the original exception in this type so the failure can
    be reported without aborting the remaining items.
    """

    def __init__(
        self,
        message: str,
        item_id: str,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            message,
            code="FATAL_ITEM_ERROR",
            details={"item_id": item_id},
        )
        self.item_id = item_id
        self.cause = cause
        if cause is not None:
            self.details["cause"] = type(cause).__name__
