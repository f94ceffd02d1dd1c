"""
In-app notification entity models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from ..base import Base, utc_now


class Notification(Base, table=True):
    """Entity for notifications shown to customers and vendors.

    ``recipient_id`` holds the user primary key for customers and the three
    digit vendor id for vendors.

    Table: notifications
    """

    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    recipient_type: str = Field(max_length=16, index=True)
    recipient_id: str = Field(max_length=32, index=True)
    title: str = Field(max_length=100)
    message: str = Field(max_length=500)
    type: str = Field(default="system", max_length=32)
    priority: str = Field(default="medium", max_length=16)
    data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    is_read: bool = Field(default=False, index=True)
    read_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now, index=True)

    def __repr__(self) -> str:
        return f"Notification(to={self.recipient_type}:{self.recipient_id}, title={self.title!r})"
