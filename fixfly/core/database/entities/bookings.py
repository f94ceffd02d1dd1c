"""
Booking entity models.

A booking is a customer's repair request. It moves through assignment to a
vendor, the vendor's response, completion and final payment collection. The
nested documents (customer details, service lines, completion and reschedule
records) are stored as JSON columns.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, Text

from ..base import Base, utc_now


class Booking(Base, table=True):
    """Entity for repair bookings.

    Two payment fields exist on purpose: ``payment_state`` tracks the gateway
    payment (pending/completed/failed/refunded) while ``payment_status`` tracks
    the collection of the final bill after the vendor completes the job
    (pending/payment_done/collected/not_collected).

    Table: bookings
    """

    __tablename__ = "bookings"

    id: Optional[int] = Field(default=None, primary_key=True)
    booking_reference: str = Field(max_length=16, unique=True, index=True)
    user_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True)

    # Customer and requested services
    customer: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    services: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # Pricing
    subtotal: float = Field(default=0.0)
    service_fee: float = Field(default=0.0)
    total_amount: float = Field(default=0.0)

    status: str = Field(default="waiting_for_engineer", max_length=32, index=True)
    priority: str = Field(default="medium", max_length=16)

    # Gateway payment
    payment_method: str = Field(default="cash", max_length=16)
    payment_state: str = Field(default="pending", max_length=16)
    razorpay_order_id: Optional[str] = Field(default=None, max_length=64, index=True)
    final_payment_order_id: Optional[str] = Field(default=None, max_length=64, index=True)
    razorpay_payment_id: Optional[str] = Field(default=None, max_length=64)
    razorpay_signature: Optional[str] = Field(default=None, max_length=128)
    paid_at: Optional[datetime] = Field(default=None)
    refund_id: Optional[str] = Field(default=None, max_length=64)
    refunded_at: Optional[datetime] = Field(default=None)

    # Scheduling
    preferred_date: Optional[date] = Field(default=None)
    preferred_time_slot: Optional[str] = Field(default=None, max_length=16)
    scheduled_date: Optional[date] = Field(default=None, index=True)
    scheduled_time: Optional[str] = Field(default=None, max_length=32)
    notes: Optional[str] = Field(default=None, sa_type=Text)
    assignment_notes: Optional[str] = Field(default=None, sa_type=Text)

    # Vendor assignment
    vendor_id: Optional[str] = Field(default=None, max_length=3, index=True)
    assigned_at: Optional[datetime] = Field(default=None)
    auto_reject_at: Optional[datetime] = Field(default=None, index=True)
    vendor_response: Optional[str] = Field(default=None, max_length=16, index=True)
    vendor_response_note: Optional[str] = Field(default=None, sa_type=Text)
    vendor_responded_at: Optional[datetime] = Field(default=None)

    # Completion and final bill
    payment_mode: Optional[str] = Field(default=None, max_length=16)
    payment_status: Optional[str] = Field(default=None, max_length=16)
    completion_data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    reschedule_data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    cancellation_data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    completed_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def clear_vendor_assignment(self) -> None:
        """Return the booking to the assignment queue."""
        self.vendor_id = None
        self.assigned_at = None
        self.auto_reject_at = None

    def __repr__(self) -> str:
        return f"Booking(ref={self.booking_reference}, status={self.status}, vendor={self.vendor_id})"
