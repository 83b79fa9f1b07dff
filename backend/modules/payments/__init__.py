"""
Payments module.

Creates gateway orders for wallet recharges and verifies checkout
signatures.

Public API:
- IPaymentGateway: Interface for gateway operations
- GatewayOrder: Gateway order handed to the client checkout
- PaymentGatewayError: Gateway failure
"""

from .interfaces import IPaymentGateway
from .models import GatewayOrder
from .exceptions import PaymentGatewayError

__all__ = [
    "IPaymentGateway",
    "GatewayOrder",
    "PaymentGatewayError",
]
