"""
Centralized configuration for the Consult Ledger backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings should be namespaced (e.g., STREAM_*, RAZORPAY_*).
"""

from decimal import Decimal
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Consult Ledger API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""
    supabase_db_url: str = ""  # direct Postgres URI, migrations only

    # Document store backend: "memory" or "supabase"
    document_store: str = "memory"
    transaction_max_attempts: int = 5

    # Stream video platform
    stream_api_key: str = ""
    stream_api_secret: str = ""
    stream_api_base_url: str = "https://video.stream-io-api.com/api/v2/video"
    stream_timeout_seconds: float = 15.0

    # Razorpay payment gateway
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    razorpay_api_base_url: str = "https://api.razorpay.com/v1"

    # Billing
    default_currency: str = "INR"
    default_platform_fee_percent: Decimal = Decimal("10")
    min_consultation_minutes: int = 1

    # Reaper
    auto_terminate_grace_seconds: int = 60
    initiated_order_timeout_seconds: int = 300
    summary_batch_size: int = 10
    cron_secret: str = ""


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
