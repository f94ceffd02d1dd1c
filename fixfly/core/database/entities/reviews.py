"""
Customer review entity models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, Text

from ..base import Base, utc_now


class Review(Base, table=True):
    """Entity for a customer's rating of a completed booking.

    One review per booking. ``vendor_id`` is copied from the booking so the
    vendor's average rating needs no join. ``admin_response`` holds the
    ``message``, ``responded_by`` and ``responded_at`` of the staff reply.

    Table: reviews
    """

    __tablename__ = "reviews"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    user_name: str = Field(default="", max_length=100)
    booking_id: int = Field(foreign_key="bookings.id", unique=True, index=True)
    vendor_id: Optional[str] = Field(default=None, max_length=3, index=True)

    category: str = Field(max_length=50, index=True)
    rating: int = Field(ge=1, le=5, index=True)
    comment: str = Field(sa_type=Text)

    status: str = Field(default="approved", max_length=16, index=True)
    likes: int = Field(default=0)
    liked_by: List[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    admin_response: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))

    is_verified: bool = Field(default=False)
    is_featured: bool = Field(default=False, index=True)
    is_anonymous: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Review(booking_id={self.booking_id}, rating={self.rating}, status={self.status})"
