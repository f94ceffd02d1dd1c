"""
Vendor I/O models for registration, login and profile management.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import Address, EmailAddress, PhoneNumber


class VendorRegister(BaseModel):
    """Schema for a vendor signing up."""

    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    email: EmailAddress
    phone: PhoneNumber
    password: str = Field(min_length=6, max_length=128, description="At least 6 characters")
    service_categories: List[str] = Field(default_factory=list, description="Kinds of repair the vendor handles")
    experience: Optional[str] = Field(default=None, max_length=50)
    address: Optional[Address] = None


class VendorLogin(BaseModel):
    email: EmailAddress
    password: str = Field(min_length=1)


class VendorRead(BaseModel):
    """Schema for reading a vendor profile."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    vendor_id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    service_categories: List[str] = Field(default_factory=list)
    experience: Optional[str] = None
    address: Dict[str, Any] = Field(default_factory=dict)
    is_approved: bool
    is_active: bool
    is_blocked: bool
    first_task_assigned_at: Optional[datetime] = None
    has_mandatory_deposit: bool
    has_initial_deposit: bool
    created_at: datetime


class VendorAuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    vendor: VendorRead


class VendorUpdate(BaseModel):
    """Fields a vendor may change on their own profile."""

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    service_categories: Optional[List[str]] = None
    experience: Optional[str] = Field(default=None, max_length=50)
    address: Optional[Address] = None


class TaskEligibility(BaseModel):
    """Whether the vendor may accept new tasks, and why not."""

    can_accept: bool
    reason: Optional[str] = None
    error_code: Optional[str] = None


class VendorStats(BaseModel):
    """Dashboard figures for the logged in vendor."""

    total_tasks: int = Field(description="Bookings and support tickets ever assigned to the vendor")
    tasks_by_status: Dict[str, int] = Field(default_factory=dict)
    tickets_by_status: Dict[str, int] = Field(default_factory=dict)
    total_tasks_completed: int
    total_customers: int = Field(description="Distinct customers served on completed bookings")
    total_earnings: float
    current_balance: float
    total_penalties: float
    average_rating: float = Field(description="Average of the vendor's approved reviews, 0 when unrated")
    total_reviews: int
