"""
Support ticket I/O models.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from fixfly.core.models.domain.enums import SupportType, TicketPriority, TicketStatus


class TicketCreate(BaseModel):
    support_type: SupportType
    case_id: Optional[str] = Field(default=None, max_length=32, description="Related booking reference")
    subject: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=5000)
    priority: TicketPriority = TicketPriority.medium


class TicketResponseCreate(BaseModel):
    message: str = Field(min_length=1, max_length=5000)


class TicketRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticket_id: str
    user_id: int
    user_name: str
    user_email: Optional[str] = None
    user_phone: str
    support_type: str
    case_id: Optional[str] = None
    subject: str
    description: str
    status: str
    priority: str
    responses: List[Dict[str, Any]]
    assigned_vendor_id: Optional[str] = None
    assigned_at: Optional[datetime] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = None
    vendor_status: Optional[str] = None
    vendor_response_note: Optional[str] = None
    assignment_history: List[Dict[str, Any]]
    completion_data: Optional[Dict[str, Any]] = None
    payment_mode: Optional[str] = None
    payment_status: Optional[str] = None
    razorpay_order_id: Optional[str] = None
    resolution: Optional[str] = None
    resolved_at: Optional[datetime] = None
    escalated: bool
    created_at: datetime
    updated_at: datetime


class TicketUpdate(BaseModel):
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None


class TicketResolve(BaseModel):
    resolution: str = Field(min_length=1, max_length=5000)


class TicketEscalate(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class TicketAssign(BaseModel):
    vendor_id: str = Field(pattern=r"^\d{3}$")
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = Field(default=None, max_length=32)
    notes: Optional[str] = Field(default=None, max_length=1000)


class TicketVendorNote(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class TicketStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    open: int
