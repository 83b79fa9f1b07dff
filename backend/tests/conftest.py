"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules:
JWT minting for route tests, a fresh in-memory document store, and
seeding helpers for wallets, experts and orders.
"""

import pytest
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import Optional
import jwt  # PyJWT

from api.dependencies import reset_container
from modules.consultations.models import ConsultationOrder, ConsultationStatus, ConsultationType
from shared.config import get_settings
from shared.database import reset_client_cache
from shared.models import RequestContext, Trigger
from shared.transactions import InMemoryDocumentStore


# Test JWT secret (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def create_test_token(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
    expired: bool = False,
    email_verified: bool = True,
) -> str:
    """
    Create a test JWT token for authentication.

    Args:
        user_id: User ID to include in the token
        email: Email to include in the token
        expired: If True, creates an expired token
        email_verified: Whether the email should be marked as verified

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload = {
        "sub": user_id,
        "email": email,
        "email_confirmed_at": now.isoformat() if email_verified else None,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(exp.timestamp()),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


def ctx_at(seconds: float = 0, trigger: Trigger = Trigger.API) -> RequestContext:
    """Request context whose clock is NOW + seconds."""
    return RequestContext.for_trigger(trigger, NOW + timedelta(seconds=seconds))


def seed_wallet(
    store: InMemoryDocumentStore,
    user_id: str,
    expert_id: str,
    total: str,
    real: Optional[str] = None,
    currency: str = "INR",
) -> None:
    """Seed a wallet document. real=None omits real_balances (legacy wallet)."""
    data: dict = {"user_id": user_id, "expert_id": expert_id, "balances": {currency: total}}
    if real is not None:
        data["real_balances"] = {currency: real}
    store.seed(f"users/{user_id}/expert_wallets/{expert_id}", data)


def seed_expert(
    store: InMemoryDocumentStore,
    expert_id: str,
    status: str = "FREE",
    is_online: bool = True,
    rates: Optional[dict[str, str]] = None,
    category: Optional[str] = None,
    recharge_options: Optional[list[dict]] = None,
) -> None:
    store.seed(
        f"users/{expert_id}/public/store",
        {
            "is_online": is_online,
            "consultation_status": status,
            "category": category,
            "currency": "INR",
            "on_demand_rates": rates if rates is not None else {"audio": "10", "video": "20"},
            "recharge_options": recharge_options or [],
        },
    )


def seed_order(
    store: InMemoryDocumentStore,
    order_id: str = "order-1",
    user_id: str = "user-1",
    expert_id: str = "expert-1",
    status: ConsultationStatus = ConsultationStatus.CONNECTED,
    rate: str = "10",
    max_allowed_duration: int = 600,
    fee_percent: str = "10",
    **fields,
) -> ConsultationOrder:
    """Seed an order created at NOW; CONNECTED orders also start at NOW."""
    values = {
        "order_id": order_id,
        "user_id": user_id,
        "expert_id": expert_id,
        "consultation_type": ConsultationType.AUDIO,
        "rate_per_minute": Decimal(rate),
        "currency": "INR",
        "platform_fee_percent": Decimal(fee_percent),
        "status": status,
        "max_allowed_duration": max_allowed_duration,
        "created_at": NOW,
        "stream_call_cid": f"consultation_audio:{order_id}",
    }
    if status != ConsultationStatus.INITIATED:
        values["start_time"] = NOW
    values.update(fields)
    order = ConsultationOrder(**values)
    store.seed(f"users/{user_id}/orders/{order_id}", order.model_dump(mode="json"))
    return order


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset settings, the document store and the service container around each test."""
    get_settings.cache_clear()
    reset_client_cache()
    reset_container()
    yield
    get_settings.cache_clear()
    reset_client_cache()
    reset_container()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """A fresh in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "test-user-123"


@pytest.fixture
def test_user_email() -> str:
    """Provide a consistent test user email."""
    return "test@example.com"


@pytest.fixture
def auth_token(test_user_id: str, test_user_email: str) -> str:
    """Create a valid auth token for testing."""
    return create_test_token(user_id=test_user_id, email=test_user_email)


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers with a valid token."""
    return {"Authorization": f"Bearer {auth_token}"}
