"""
Wallet module exceptions.

These exceptions are raised by the wallet module and can be caught
by API error handlers to return appropriate HTTP responses.
"""

from decimal import Decimal
from typing import Optional

from shared.exceptions import ConsultLedgerError, ConflictError, NotFoundError, ValidationError


class WalletError(ConsultLedgerError):
    """Base exception for wallet-related errors."""

    pass


class InsufficientBalanceError(WalletError):
    """
    Raised when a wallet cannot cover an amount.

    The UI should handle this by prompting the user to recharge.
    """

    def __init__(
        self,
        required: Decimal,
        available: Decimal,
        user_id: Optional[str] = None,
    ):
        super().__init__(
            f"Insufficient balance. Required: {required}, available: {available}",
            code="INSUFFICIENT_BALANCE",
            details={
                "required": str(required),
                "available": str(available),
                "shortfall": str(required - available),
            },
        )
        if user_id:
            self.details["user_id"] = user_id


class InvalidAmountError(ValidationError):
    """Raised when an amount is invalid."""

    def __init__(self, amount: Decimal, reason: str):
        super().__init__(
            f"Invalid amount: {amount}. {reason}",
            code="INVALID_AMOUNT",
            details={"amount": str(amount), "reason": reason},
        )


class PaymentVerificationError(WalletError):
    """Raised when the payment gateway signature does not verify."""

    def __init__(self, gateway_order_id: str):
        super().__init__(
            "Payment verification failed",
            code="PAYMENT_VERIFICATION_FAILED",
            details={"gateway_order_id": gateway_order_id},
        )


class DuplicateTransactionError(ConflictError):
    """Raised when a payment has already been credited."""

    def __init__(self, transaction_id: str):
        super().__init__(
            f"Transaction already processed: {transaction_id}",
            code="DUPLICATE_TRANSACTION",
            details={"transaction_id": transaction_id},
        )


class TransactionNotFoundError(NotFoundError):
    """Raised when a wallet transaction doesn't exist."""

    def __init__(self, transaction_id: str):
        super().__init__(
            f"Wallet transaction not found: {transaction_id}",
            code="TRANSACTION_NOT_FOUND",
            details={"transaction_id": transaction_id},
        )


class RechargeMismatchError(ValidationError):
    """Raised when a verification doesn't match the pending recharge."""

    def __init__(self, transaction_id: str, reason: str):
        super().__init__(
            f"Recharge {transaction_id} cannot be verified: {reason}",
            code="RECHARGE_MISMATCH",
            details={"transaction_id": transaction_id, "reason": reason},
        )
