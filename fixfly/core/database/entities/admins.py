"""
Admin entity models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from ..base import Base, utc_now


class Admin(Base, table=True):
    """Entity for back-office administrators.

    ``permissions`` maps permission names (``bookingManagement``...) to flags.
    A ``super_admin`` ignores the map and is allowed everything.

    Table: admins
    """

    __tablename__ = "admins"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    email: str = Field(max_length=255, unique=True, index=True)
    phone: Optional[str] = Field(default=None, max_length=10)
    password_hash: str = Field(max_length=255)
    role: str = Field(default="admin", max_length=16)
    permissions: Dict[str, bool] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    is_active: bool = Field(default=True)

    last_login_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Admin(email={self.email}, role={self.role})"
