"""Tests for payout split calculation."""

from decimal import Decimal

import pytest

from modules.billing.payout import (
    calculate,
    consultation_cost,
    extract_real_ratio,
    round_money,
)


class TestRoundMoney:
    def test_rounds_half_up(self):
        """Should round 3.335 up to 3.34."""
        assert round_money(Decimal("3.335")) == Decimal("3.34")

    def test_rounds_down(self):
        assert round_money(Decimal("3.334")) == Decimal("3.33")

    def test_accepts_strings(self):
        assert round_money("10") == Decimal("10.00")


class TestExtractRealRatio:
    def test_legacy_wallet_is_all_real(self):
        """A wallet with no tracked real balance should count as real."""
        assert extract_real_ratio(Decimal("500"), None) == Decimal("1")

    def test_partial_ratio(self):
        assert extract_real_ratio(Decimal("16000"), Decimal("1200")) == Decimal("0.075")

    def test_real_above_total_clamps_to_one(self):
        """Corrupted data should never produce a ratio above 1."""
        assert extract_real_ratio(Decimal("100"), Decimal("150")) == Decimal("1")

    def test_negative_real_clamps_to_zero(self):
        assert extract_real_ratio(Decimal("100"), Decimal("-5")) == Decimal("0")

    def test_empty_wallet(self):
        assert extract_real_ratio(Decimal("0"), Decimal("0")) == Decimal("1")


class TestCalculate:
    def test_half_real_wallet(self):
        """1000 from a 50% real wallet at 10% should pay the expert 450."""
        result = calculate(Decimal("0"), Decimal("1000"), Decimal("0.5"), Decimal("10"))

        assert result.effective_real_amount == Decimal("500")
        assert result.platform_fee == Decimal("50.00")
        assert result.expert_earnings == Decimal("450.00")

    def test_mostly_bonus_wallet(self):
        """3000 from a 16000/1200 wallet should split 22.50 / 202.50."""
        ratio = extract_real_ratio(Decimal("16000"), Decimal("1200"))

        result = calculate(Decimal("0"), Decimal("3000"), ratio, Decimal("10"))

        assert result.effective_real_amount == Decimal("225")
        assert result.platform_fee == Decimal("22.50")
        assert result.expert_earnings == Decimal("202.50")

    def test_gateway_payment_is_fully_real(self):
        """A direct payment of 33.33 should split 3.33 / 30.00."""
        result = calculate(Decimal("33.33"), Decimal("0"), Decimal("0"), Decimal("10"))

        assert result.effective_real_amount == Decimal("33.33")
        assert result.platform_fee == Decimal("3.33")
        assert result.expert_earnings == Decimal("30.00")

    def test_bonus_only_wallet_pays_nothing(self):
        result = calculate(Decimal("0"), Decimal("200"), Decimal("0"), Decimal("10"))

        assert result.effective_real_amount == Decimal("0")
        assert result.platform_fee == Decimal("0.00")
        assert result.expert_earnings == Decimal("0.00")

    def test_effective_amount_rounded_after_split(self):
        """A third-real wallet should store 33.33 but split the exact amount."""
        ratio = extract_real_ratio(Decimal("300"), Decimal("100"))

        result = calculate(Decimal("0"), Decimal("100"), ratio, Decimal("10"))

        assert result.effective_real_amount == Decimal("33.33")
        assert result.effective_real_amount.as_tuple().exponent == -2
        assert result.platform_fee == Decimal("3.33")
        assert result.expert_earnings == Decimal("30.00")

    def test_fee_plus_earnings_equals_effective(self):
        result = calculate(Decimal("0"), Decimal("77.77"), Decimal("1"), Decimal("12.5"))
        assert result.platform_fee + result.expert_earnings == round_money(result.effective_real_amount)


class TestConsultationCost:
    @pytest.mark.parametrize(
        "seconds,rate,expected",
        [
            (120, "10", "20.00"),
            (90, "10", "15.00"),
            (1, "10", "0.17"),
            (0, "10", "0.00"),
        ],
    )
    def test_cost(self, seconds, rate, expected):
        """Cost should be seconds / 60 * rate, rounded to cents."""
        assert consultation_cost(seconds, Decimal(rate)) == Decimal(expected)
