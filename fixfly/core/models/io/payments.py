"""
Payment I/O models shared by bookings, AMC subscriptions and wallet deposits.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class CreateOrderRequest(BaseModel):
    amount: float = Field(gt=0, description="Amount in rupees")
    receipt: str = Field(min_length=1, max_length=40)
    notes: Dict[str, str] = Field(default_factory=dict)


class RazorpayOrderRead(BaseModel):
    """Order details the client needs to open Razorpay checkout."""

    order_id: str
    amount: float = Field(description="Amount in rupees")
    amount_paise: int
    currency: str
    receipt: Optional[str] = None
    key_id: Optional[str] = Field(default=None, description="Public key id for the checkout widget")


class PaymentVerifyRequest(BaseModel):
    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)


class PaymentVerifyResponse(BaseModel):
    success: bool
    message: str
    applied_to: Optional[str] = Field(
        default=None, description="What the payment settled: booking, amc_subscription or wallet_deposit"
    )
    reference: Optional[str] = None


class PaymentDetails(BaseModel):
    payment_id: str
    order_id: Optional[str] = None
    amount: float
    currency: str
    status: str
    method: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class WebhookAck(BaseModel):
    received: bool = True
    handled: bool = False
    event: Optional[str] = None
