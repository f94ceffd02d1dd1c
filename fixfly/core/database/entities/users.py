"""
Customer entity models.

Customers sign in with their phone number and a one-time password; they
carry no password of their own.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from ..base import Base, utc_now


class User(Base, table=True):
    """Entity for registered customers.

    Table: users
    """

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255, unique=True, index=True)
    phone: str = Field(max_length=10, unique=True, index=True)
    address: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    # Account state
    is_phone_verified: bool = Field(default=False)
    is_active: bool = Field(default=True)
    is_blocked: bool = Field(default=False)

    # One-time password login
    otp_code: Optional[str] = Field(default=None, max_length=6)
    otp_expires_at: Optional[datetime] = Field(default=None)
    last_login_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"User(id={self.id}, phone={self.phone}, verified={self.is_phone_verified})"
