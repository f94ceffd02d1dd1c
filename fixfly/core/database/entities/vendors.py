"""
Vendor entity models.

Vendors are the field engineers who receive bookings and support tickets.
Besides their profile they track the deposit flags that gate whether they may
accept new work.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from ..base import Base, utc_now


class Vendor(Base, table=True):
    """Entity for registered vendors.

    ``vendor_id`` is the human-readable three digit id shown to admins and
    used as the foreign key from bookings, tickets and wallets.

    Table: vendors
    """

    __tablename__ = "vendors"

    id: Optional[int] = Field(default=None, primary_key=True)
    vendor_id: str = Field(max_length=3, unique=True, index=True)

    first_name: str = Field(max_length=50)
    last_name: str = Field(max_length=50)
    email: str = Field(max_length=255, unique=True, index=True)
    phone: str = Field(max_length=10, unique=True, index=True)
    password_hash: str = Field(max_length=255)

    service_categories: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    experience: Optional[str] = Field(default=None, max_length=50)
    address: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    # Account state
    is_approved: bool = Field(default=False, index=True)
    is_active: bool = Field(default=True)
    is_blocked: bool = Field(default=False)

    # Deposit gating
    first_task_assigned_at: Optional[datetime] = Field(default=None)
    has_mandatory_deposit: bool = Field(default=False)
    mandatory_deposit_paid_at: Optional[datetime] = Field(default=None)
    has_initial_deposit: bool = Field(default=False)
    initial_deposit_amount: float = Field(default=0.0)

    last_login_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"Vendor(vendor_id={self.vendor_id}, approved={self.is_approved})"
