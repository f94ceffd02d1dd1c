"""
AMC (annual maintenance contract) plan and subscription entities.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, Text

from ..base import Base, utc_now


class AMCPlan(Base, table=True):
    """Entity for sellable AMC plans.

    ``validity_period`` is the coverage length in days.

    Table: amc_plans
    """

    __tablename__ = "amc_plans"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, unique=True, index=True)
    price: float = Field(ge=0)
    period: str = Field(default="yearly", max_length=16)
    description: str = Field(default="", sa_type=Text)
    features: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    limitations: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    benefits: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    status: str = Field(default="active", max_length=16, index=True)
    is_popular: bool = Field(default=False)
    sort_order: int = Field(default=0)
    validity_period: int = Field(default=365, ge=1)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"AMCPlan(name={self.name}, price={self.price}, status={self.status})"


class AMCSubscription(Base, table=True):
    """Entity for a customer's AMC subscription.

    Plan fields are snapshotted so later plan edits do not change an
    existing contract.

    Table: amc_subscriptions
    """

    __tablename__ = "amc_subscriptions"

    id: Optional[int] = Field(default=None, primary_key=True)
    subscription_id: str = Field(max_length=16, unique=True, index=True)

    user_id: int = Field(foreign_key="users.id", index=True)
    user_name: str = Field(max_length=100)
    user_email: Optional[str] = Field(default=None, max_length=255)
    user_phone: str = Field(max_length=10)

    plan_id: int = Field(foreign_key="amc_plans.id", index=True)
    plan_name: str = Field(max_length=100)
    plan_price: float = Field(default=0.0)
    validity_period: int = Field(default=365)

    devices: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    device_count: int = Field(default=1)
    amount: float = Field(default=0.0)

    status: str = Field(default="inactive", max_length=16, index=True)
    payment_status: str = Field(default="pending", max_length=16)
    payment_method: str = Field(default="online", max_length=16)
    razorpay_order_id: Optional[str] = Field(default=None, max_length=64, index=True)
    razorpay_payment_id: Optional[str] = Field(default=None, max_length=64)
    paid_at: Optional[datetime] = Field(default=None)

    start_date: Optional[datetime] = Field(default=None)
    end_date: Optional[datetime] = Field(default=None)
    usage: Dict[str, int] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    pending_renewal_order_id: Optional[str] = Field(default=None, max_length=64, index=True)

    cancelled_at: Optional[datetime] = Field(default=None)
    cancellation_reason: Optional[str] = Field(default=None, sa_type=Text)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"AMCSubscription(subscription_id={self.subscription_id}, status={self.status})"
