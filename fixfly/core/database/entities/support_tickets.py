"""
Support ticket entity models.

Tickets carry a conversation thread between the customer, the support team
and, once assigned, a vendor who may visit the customer.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, Text

from ..base import Base, utc_now


class SupportTicket(Base, table=True):
    """Entity for customer support tickets.

    Table: support_tickets
    """

    __tablename__ = "support_tickets"

    id: Optional[int] = Field(default=None, primary_key=True)
    ticket_id: str = Field(max_length=16, unique=True, index=True)

    # Requester snapshot
    user_id: int = Field(foreign_key="users.id", index=True)
    user_name: str = Field(max_length=100)
    user_email: Optional[str] = Field(default=None, max_length=255)
    user_phone: str = Field(max_length=10)

    support_type: str = Field(max_length=16)
    case_id: Optional[str] = Field(default=None, max_length=32)
    subject: str = Field(max_length=200)
    description: str = Field(sa_type=Text)
    status: str = Field(default="Submitted", max_length=32, index=True)
    priority: str = Field(default="Medium", max_length=16, index=True)
    responses: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # Vendor assignment
    assigned_vendor_id: Optional[str] = Field(default=None, max_length=3, index=True)
    assigned_at: Optional[datetime] = Field(default=None)
    scheduled_date: Optional[date] = Field(default=None)
    scheduled_time: Optional[str] = Field(default=None, max_length=32)
    vendor_status: Optional[str] = Field(default=None, max_length=16)
    vendor_response_note: Optional[str] = Field(default=None, sa_type=Text)
    assignment_history: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # Completion
    completion_data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    payment_mode: Optional[str] = Field(default=None, max_length=16)
    payment_status: Optional[str] = Field(default=None, max_length=16)
    razorpay_order_id: Optional[str] = Field(default=None, max_length=64, index=True)
    razorpay_payment_id: Optional[str] = Field(default=None, max_length=64)
    resolution: Optional[str] = Field(default=None, sa_type=Text)
    resolved_at: Optional[datetime] = Field(default=None)
    escalated: bool = Field(default=False)
    escalation_reason: Optional[str] = Field(default=None, sa_type=Text)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"SupportTicket(ticket_id={self.ticket_id}, status={self.status})"
