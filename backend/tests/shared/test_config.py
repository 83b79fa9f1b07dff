"""Tests for shared/config.py."""

from decimal import Decimal
from unittest.mock import patch
import os

from shared.config import Settings, get_settings


class TestSettings:
    def test_default_values(self):
        """Settings should have sensible defaults."""
        settings = Settings()
        assert settings.app_name == "Consult Ledger API"
        assert settings.debug is False
        assert settings.port == 8000
        assert settings.host == "0.0.0.0"
        assert settings.app_version == "0.1.0"
        assert settings.document_store == "memory"

    def test_billing_defaults(self):
        """Billing knobs should default to the production values."""
        settings = Settings()
        assert settings.default_currency == "INR"
        assert settings.default_platform_fee_percent == Decimal("10")
        assert settings.min_consultation_minutes == 1
        assert settings.auto_terminate_grace_seconds == 60
        assert settings.initiated_order_timeout_seconds == 300
        assert settings.transaction_max_attempts == 5
        assert settings.summary_batch_size == 10

    def test_loads_from_env(self):
        """Settings should load from environment variables."""
        with patch.dict(os.environ, {"DEBUG": "true", "PORT": "9000"}):
            settings = Settings()
            assert settings.debug is True
            assert settings.port == 9000

    def test_loads_integration_keys_from_env(self):
        """Settings should load Stream and Razorpay credentials."""
        with patch.dict(os.environ, {
            "STREAM_API_KEY": "stream-key",
            "STREAM_API_SECRET": "stream-secret",
            "RAZORPAY_KEY_ID": "rzp_test_1",
            "RAZORPAY_KEY_SECRET": "rzp-secret",
            "CRON_SECRET": "cron",
        }):
            settings = Settings()
            assert settings.stream_api_key == "stream-key"
            assert settings.stream_api_secret == "stream-secret"
            assert settings.razorpay_key_id == "rzp_test_1"
            assert settings.razorpay_key_secret == "rzp-secret"
            assert settings.cron_secret == "cron"

    def test_loads_billing_knobs_from_env(self):
        with patch.dict(os.environ, {
            "DEFAULT_PLATFORM_FEE_PERCENT": "12.5",
            "AUTO_TERMINATE_GRACE_SECONDS": "30",
            "DOCUMENT_STORE": "supabase",
        }):
            settings = Settings()
            assert settings.default_platform_fee_percent == Decimal("12.5")
            assert settings.auto_terminate_grace_seconds == 30
            assert settings.document_store == "supabase"


class TestGetSettings:
    def test_get_settings_returns_settings_instance(self):
        """get_settings should return a Settings instance."""
        get_settings.cache_clear()
        assert isinstance(get_settings(), Settings)

    def test_get_settings_is_cached(self):
        """get_settings should return the same instance."""
        get_settings.cache_clear()
        assert get_settings() is get_settings()
