"""
Payment module data models.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class GatewayOrder(BaseModel):
    """An order created on the payment gateway for the client to pay."""

    gateway_order_id: str = Field(..., description="Gateway order ID")
    amount: Decimal = Field(..., description="Amount in major units")
    currency: str = Field(..., description="ISO currency code")
    receipt: str = Field(..., description="Our reference for the order")
    key_id: str = Field(..., description="Public key the client checkout uses")
