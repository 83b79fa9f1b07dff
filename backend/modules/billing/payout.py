"""
Payout split calculation.

Turns a charge into the portion that was backed by real money, the
platform's fee on it, and the expert's earnings. Money paid directly
through the payment gateway is always real; money spent from a wallet is
only as real as the wallet's real-to-total ratio.

All values are Decimal. Rounding is half-up to 2 decimal places. The fee
and the earnings are computed from the exact effective amount, which is
rounded only in the returned breakdown.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from .models import PayoutBreakdown

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
CENTS = Decimal("0.01")

Number = Union[Decimal, int, str]


def round_money(amount: Number) -> Decimal:
    """Round to 2 decimal places, half-up (3.335 -> 3.34)."""
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def extract_real_ratio(total: Optional[Number], real: Optional[Number]) -> Decimal:
    """
    Get the fraction of a wallet balance that is real money.

    Wallets written before real balances were tracked have no real
    balance; those are treated as entirely real. A real balance above the
    total can only come from corrupted data and is clamped to 1.

    Args:
        total: Total wallet balance
        real: Real (gateway-backed) portion, or None if never tracked

    Returns:
        Ratio in [0, 1]
    """
    if real is None or total is None:
        return ONE
    total = Decimal(total)
    real = Decimal(real)
    if total <= ZERO:
        return ONE
    if real <= ZERO:
        return ZERO
    if real >= total:
        return ONE
    return real / total


def calculate(
    gateway_portion: Number,
    wallet_portion: Number,
    real_ratio: Number,
    fee_percent: Number,
) -> PayoutBreakdown:
    """
    Split a charge into effective real amount, platform fee and earnings.

    real_ratio must already be clamped to [0, 1] by the wallet layer.

    Example:
        Spending 3000 from a wallet that is 7.5% real at a 10% fee gives
        an effective real amount of 225, a fee of 22.50 and earnings of
        202.50.
    """
    gateway_portion = Decimal(gateway_portion)
    wallet_portion = Decimal(wallet_portion)
    effective = gateway_portion + wallet_portion * Decimal(real_ratio)
    platform_fee = round_money(effective * Decimal(fee_percent) / HUNDRED)
    expert_earnings = round_money(effective - platform_fee)

    return PayoutBreakdown(
        effective_real_amount=round_money(effective),
        platform_fee=platform_fee,
        expert_earnings=expert_earnings,
    )


def consultation_cost(billable_seconds: int, rate_per_minute: Number) -> Decimal:
    """Cost of billable seconds at a per-minute rate, rounded to cents."""
    return round_money(Decimal(billable_seconds) / Decimal(60) * Decimal(rate_per_minute))
