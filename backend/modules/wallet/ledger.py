"""
Wallet ledger arithmetic.

Pure functions over WalletBalance. The ledger preserves the real-to-bonus
ratio through every debit: spending from a mixed wallet consumes real and
bonus money in proportion, so promotional credit can never be spent
"first" to leave a wallet that looks fully real.

The ratio is preserved to the cent: the real balance left after a debit is
rounded half-up to 2 decimal places before it is clamped.

Invariant after every operation: 0 <= real_balance <= total_balance.
"""

from decimal import Decimal

from modules.billing.payout import round_money

from .exceptions import InsufficientBalanceError, InvalidAmountError
from .models import WalletBalance, WalletTransactionType

ZERO = Decimal("0")

REAL_MONEY_TYPES = frozenset({WalletTransactionType.RECHARGE, WalletTransactionType.REFUND})


def compute_real_balance_credit(transaction_type: WalletTransactionType, amount: Decimal) -> Decimal:
    """Real money added by a credit: the full amount for paid types, else 0."""
    if transaction_type in REAL_MONEY_TYPES:
        return amount
    return ZERO


def compute_real_balance_after_debit(
    total: Decimal,
    real: Decimal,
    debit: Decimal,
) -> Decimal:
    """
    Real balance left after debiting a wallet proportionally.

    Args:
        total: Total balance before the debit
        real: Real balance before the debit
        debit: Amount being debited

    Returns:
        New real balance, clamped to [0, total - debit]
    """
    new_total = max(ZERO, total - debit)
    if total <= ZERO or debit <= ZERO:
        return max(ZERO, min(real, new_total))
    real_deducted = debit * (real / total)
    new_real = round_money(real - real_deducted)
    return max(ZERO, min(new_real, new_total))


def _real_or_total(balance: WalletBalance) -> Decimal:
    # Wallets without a tracked real balance count as entirely real
    if balance.real_balance is None:
        return balance.total_balance
    return balance.real_balance


def credit(
    balance: WalletBalance,
    transaction_type: WalletTransactionType,
    amount: Decimal,
) -> WalletBalance:
    """Return the balance after crediting amount of the given type."""
    if amount <= ZERO:
        raise InvalidAmountError(amount, "Credit amount must be positive")
    new_total = balance.total_balance + amount
    new_real = _real_or_total(balance) + compute_real_balance_credit(transaction_type, amount)
    return balance.model_copy(
        update={"total_balance": new_total, "real_balance": min(new_real, new_total)}
    )


def debit(balance: WalletBalance, amount: Decimal) -> WalletBalance:
    """
    Return the balance after debiting amount.

    Raises:
        InvalidAmountError: If amount is negative
        InsufficientBalanceError: If amount exceeds the total balance
    """
    if amount < ZERO:
        raise InvalidAmountError(amount, "Debit amount must not be negative")
    if amount > balance.total_balance:
        raise InsufficientBalanceError(
            required=amount,
            available=balance.total_balance,
            user_id=balance.user_id,
        )
    real = _real_or_total(balance)
    new_real = compute_real_balance_after_debit(balance.total_balance, real, amount)
    return balance.model_copy(
        update={"total_balance": balance.total_balance - amount, "real_balance": new_real}
    )


def real_amount_consumed(before: WalletBalance, after: WalletBalance) -> Decimal:
    """Real money removed between two balances of the same wallet."""
    return _real_or_total(before) - _real_or_total(after)
