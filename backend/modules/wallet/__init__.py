"""
Wallet module.

Per-(user, expert) wallets that separate real money from bonus credit,
an append-only transaction ledger, and gateway-funded recharges.

Public API:
- IWalletService: Interface for wallet operations
- WalletBalance / WalletTransaction: Balance and ledger entry
- Wallet exceptions: InsufficientBalanceError, etc.
"""

from .interfaces import IWalletService
from .models import (
    WalletBalance,
    WalletTransaction,
    WalletTransactionType,
    TransactionStatus,
    RechargeOption,
)
from .exceptions import (
    WalletError,
    InsufficientBalanceError,
    InvalidAmountError,
    PaymentVerificationError,
    DuplicateTransactionError,
    TransactionNotFoundError,
)

__all__ = [
    # Interface
    "IWalletService",
    # Models
    "WalletBalance",
    "WalletTransaction",
    "WalletTransactionType",
    "TransactionStatus",
    "RechargeOption",
    # Exceptions
    "WalletError",
    "InsufficientBalanceError",
    "InvalidAmountError",
    "PaymentVerificationError",
    "DuplicateTransactionError",
    "TransactionNotFoundError",
]
