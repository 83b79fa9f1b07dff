"""
Experts module.

Handles expert presence, store documents (rates and recharge options),
platform fee configuration and earnings.

Public API:
- IExpertService: Interface for presence and earnings
- ExpertStore: The expert's public store document
- ExpertPresence: FREE / BUSY / ONLINE / OFFLINE
- ExpertEarning / EarningsSummary: Earnings records
"""

from .interfaces import IExpertService
from .models import (
    EarningType,
    EarningsSummary,
    ExpertEarning,
    ExpertPresence,
    ExpertStore,
    UpdatePresenceRequest,
)
from .exceptions import ExpertError, ExpertNotFoundError, ExpertUnavailableError

__all__ = [
    # Interface
    "IExpertService",
    # Models
    "EarningType",
    "EarningsSummary",
    "ExpertEarning",
    "ExpertPresence",
    "ExpertStore",
    "UpdatePresenceRequest",
    # Exceptions
    "ExpertError",
    "ExpertNotFoundError",
    "ExpertUnavailableError",
]
