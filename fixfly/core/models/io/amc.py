"""
AMC plan and subscription I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from fixfly.core.models.domain.enums import PlanPeriod, PlanStatus

from .payments import RazorpayOrderRead


class PlanFeature(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)


class AMCPlanCreate(BaseModel):
    """Schema for an admin creating an AMC plan."""

    name: str = Field(min_length=1, max_length=100)
    price: float = Field(ge=0)
    period: PlanPeriod = PlanPeriod.yearly
    description: str = Field(default="", max_length=2000)
    features: List[PlanFeature] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)
    benefits: List[str] = Field(default_factory=list)
    status: PlanStatus = PlanStatus.active
    is_popular: bool = False
    sort_order: int = 0
    validity_period: int = Field(default=365, ge=1, description="Coverage length in days")


class AMCPlanUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    price: Optional[float] = Field(default=None, ge=0)
    period: Optional[PlanPeriod] = None
    description: Optional[str] = Field(default=None, max_length=2000)
    features: Optional[List[PlanFeature]] = None
    limitations: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    status: Optional[PlanStatus] = None
    is_popular: Optional[bool] = None
    sort_order: Optional[int] = None
    validity_period: Optional[int] = Field(default=None, ge=1)


class AMCPlanRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: float
    period: str
    description: str
    features: List[Dict[str, Any]]
    limitations: List[str]
    benefits: List[str]
    status: str
    is_popular: bool
    sort_order: int
    validity_period: int
    created_at: datetime


class DeviceInfo(BaseModel):
    """A device covered by a subscription."""

    device_type: str = Field(min_length=1, max_length=50)
    serial_number: str = Field(min_length=1, max_length=100)
    model_number: str = Field(min_length=1, max_length=100)
    brand: Optional[str] = Field(default=None, max_length=50)


class SubscriptionCreate(BaseModel):
    plan_id: int
    devices: List[DeviceInfo] = Field(min_length=1)
    payment_method: Literal["online"] = "online"


class SubscriptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    subscription_id: str
    user_id: int
    user_name: str
    plan_id: int
    plan_name: str
    plan_price: float
    validity_period: int
    devices: List[Dict[str, Any]]
    device_count: int
    amount: float
    status: str
    payment_status: str
    razorpay_order_id: Optional[str] = None
    paid_at: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    usage: Dict[str, int] = Field(default_factory=dict)
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    days_remaining: int = 0
    is_expired: bool = False
    created_at: datetime


class SubscriptionWithOrder(BaseModel):
    subscription: SubscriptionRead
    order: Optional[RazorpayOrderRead] = None


class SubscriptionVerify(BaseModel):
    subscription_id: str = Field(min_length=1)
    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)


class SubscriptionCancel(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class SubscriptionUsage(BaseModel):
    subscription_id: str
    service_requests: int
    visits: int
    device_count: int
    days_remaining: int
    is_expired: bool
