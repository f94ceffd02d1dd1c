"""
Booking I/O models for API requests and responses.

These models define the contract for customers creating and managing
bookings, vendors responding to and completing them, and admins assigning
and tracking them.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from fixfly.core.models.domain.enums import (
    BookingPriority,
    BookingStatus,
    PaymentMethod,
    PaymentMode,
    TimeSlot,
)

from .common import Address, EmailAddress, PhoneNumber
from .payments import RazorpayOrderRead


class ServiceLine(BaseModel):
    """One requested service and its price."""

    service_id: str = Field(min_length=1)
    service_name: str = Field(min_length=1, max_length=200)
    price: float = Field(ge=0)


class CustomerAddress(Address):
    """Service address; the PIN code is mandatory here."""

    street: str = Field(min_length=1, max_length=200)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    pincode: str = Field(pattern=r"^\d{6}$", description="6 digit PIN code")


class CustomerInfo(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailAddress
    phone: PhoneNumber
    address: CustomerAddress


class BookingCreate(BaseModel):
    """Schema for a customer creating a booking."""

    customer: CustomerInfo
    services: List[ServiceLine] = Field(min_length=1)
    preferred_date: Optional[date] = None
    preferred_time_slot: Optional[TimeSlot] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    payment_method: PaymentMethod = PaymentMethod.cash
    priority: BookingPriority = BookingPriority.medium


class BookingRead(BaseModel):
    """Schema for reading a booking."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    booking_reference: str
    user_id: Optional[int] = None
    customer: Dict[str, Any]
    services: List[Dict[str, Any]]
    subtotal: float
    service_fee: float
    total_amount: float
    status: str
    priority: str
    payment_method: str
    payment_state: str
    razorpay_order_id: Optional[str] = None
    final_payment_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    paid_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    preferred_date: Optional[date] = None
    preferred_time_slot: Optional[str] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = None
    notes: Optional[str] = None
    assignment_notes: Optional[str] = None
    vendor_id: Optional[str] = None
    assigned_at: Optional[datetime] = None
    auto_reject_at: Optional[datetime] = None
    vendor_response: Optional[str] = None
    vendor_response_note: Optional[str] = None
    vendor_responded_at: Optional[datetime] = None
    payment_mode: Optional[str] = None
    payment_status: Optional[str] = None
    completion_data: Optional[Dict[str, Any]] = None
    reschedule_data: Optional[Dict[str, Any]] = None
    cancellation_data: Optional[Dict[str, Any]] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class BookingWithOrder(BaseModel):
    """A booking together with the Razorpay order the customer must pay."""

    booking: BookingRead
    order: RazorpayOrderRead


class BookingPaymentVerify(BaseModel):
    booking_id: int
    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)


class BookingCancel(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class BookingReschedule(BaseModel):
    new_date: date
    new_time: str = Field(min_length=1, max_length=32)
    reason: Optional[str] = Field(default=None, max_length=500)


class VendorDecline(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class SparePart(BaseModel):
    """A part the vendor fitted; ``amount`` may be a display string like "₹1,200"."""

    name: str = Field(min_length=1, max_length=200)
    amount: Union[float, str]
    photo: Optional[str] = Field(default=None, description="URL returned by the image upload endpoint")
    warranty: Optional[str] = Field(default=None, max_length=100)


class CompletionRequest(BaseModel):
    """Schema for a vendor completing a booking or support ticket."""

    billing_amount: float = Field(ge=0, description="Billing amount excluding GST")
    spare_parts: List[SparePart] = Field(default_factory=list)
    travelling_amount: float = Field(default=0.0, ge=0)
    payment_method: PaymentMode
    include_gst: bool = False
    gst_amount: float = Field(default=0.0, ge=0, description="GST amount when computed by the client")
    resolution_note: Optional[str] = Field(default=None, max_length=1000)


class AssignVendorRequest(BaseModel):
    vendor_id: str = Field(pattern=r"^\d{3}$", description="Three digit vendor id")
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = Field(default=None, max_length=32)
    priority: Optional[BookingPriority] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    note: Optional[str] = Field(default=None, max_length=500)


class BookingPriorityUpdate(BaseModel):
    priority: BookingPriority


class RefundRequest(BaseModel):
    amount: Optional[float] = Field(default=None, gt=0, description="Partial refund in rupees; full when omitted")
    reason: Optional[str] = Field(default=None, max_length=500)


class BookingStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    awaiting_assignment: int
    revenue: float
