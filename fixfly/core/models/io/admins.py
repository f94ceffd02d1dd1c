"""
Admin I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from fixfly.core.models.domain.enums import AdminRole

from .common import EmailAddress


class AdminLogin(BaseModel):
    email: EmailAddress
    password: str = Field(min_length=1)


class AdminCreate(BaseModel):
    """Schema for a super admin creating another admin."""

    name: str = Field(min_length=1, max_length=100)
    email: EmailAddress
    phone: Optional[str] = Field(default=None, pattern=r"^\d{10}$")
    password: str = Field(min_length=8, max_length=128)
    role: AdminRole = AdminRole.admin
    permissions: Dict[str, bool] = Field(default_factory=dict, description="Permission name to granted flag")


class AdminRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    role: str
    permissions: Dict[str, bool] = Field(default_factory=dict)
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime


class AdminAuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    admin: AdminRead


class DashboardStats(BaseModel):
    """Headline numbers for the admin dashboard."""

    total_users: int
    total_vendors: int
    pending_vendor_approvals: int
    total_bookings: int
    bookings_by_status: Dict[str, int]
    revenue: float = Field(description="Sum of booking totals with a completed payment")
    open_tickets: int
    active_amc_subscriptions: int
