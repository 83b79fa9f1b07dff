"""Tests for billing models."""

from decimal import Decimal

from modules.billing.models import (
    BillingResult,
    BillingStatus,
    PlatformFeeConfig,
    DEFAULT_FEE_PERCENT,
)


class TestPlatformFeeConfig:
    def test_default(self):
        """Should fall back to the default percent."""
        config = PlatformFeeConfig()
        assert config.fee_percent("ON_DEMAND_CONSULTATION", "TAROT") == DEFAULT_FEE_PERCENT

    def test_category_beats_type(self):
        """Category-specific fee should win over the type-specific one."""
        config = PlatformFeeConfig(
            fee_by_type={"ON_DEMAND_CONSULTATION": Decimal("15")},
            fee_by_category={"TAROT": Decimal("20")},
        )
        assert config.fee_percent("ON_DEMAND_CONSULTATION", "TAROT") == Decimal("20")

    def test_type_beats_default(self):
        config = PlatformFeeConfig(fee_by_type={"ON_DEMAND_CONSULTATION": Decimal("15")})
        assert config.fee_percent("ON_DEMAND_CONSULTATION", "ASTROLOGY") == Decimal("15")
        assert config.fee_percent("ON_DEMAND_CONSULTATION", None) == Decimal("15")

    def test_from_empty_document(self):
        config = PlatformFeeConfig.from_document(None, Decimal("12"))
        assert config.default_fee_percent == Decimal("12")

    def test_from_document_keeps_stored_default(self):
        """A stored default should override the platform default."""
        config = PlatformFeeConfig.from_document(
            {"default_fee_percent": "5", "fee_by_category": {"TAROT": "8"}},
            Decimal("10"),
        )
        assert config.default_fee_percent == Decimal("5")
        assert config.fee_percent(None, "TAROT") == Decimal("8")


class TestBillingResult:
    def test_charged(self):
        assert BillingResult(status=BillingStatus.COMPLETED, order_id="o1").charged
        assert BillingResult(status=BillingStatus.ZERO_CHARGE, order_id="o1").charged
        assert not BillingResult(status=BillingStatus.ALREADY_FINALIZED, order_id="o1").charged

    def test_not_found(self):
        result = BillingResult.not_found("o1")
        assert result.status == BillingStatus.NOT_FOUND
        assert result.cost == Decimal("0")
