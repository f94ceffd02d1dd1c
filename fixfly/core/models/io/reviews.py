"""
Review I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from fixfly.core.models.domain.enums import ReviewStatus


class ReviewCreate(BaseModel):
    """Schema for a customer reviewing one of their completed bookings."""

    booking_reference: str = Field(min_length=1, max_length=32)
    category: str = Field(min_length=1, max_length=50, description="Service category being reviewed")
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=10, max_length=500)
    is_anonymous: bool = False


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = Field(default=None, min_length=10, max_length=500)
    is_anonymous: Optional[bool] = None


class AdminResponse(BaseModel):
    message: str
    responded_by: int
    responded_at: datetime


class ReviewRead(BaseModel):
    """Schema for reading a review. Anonymous reviews hide the author name."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_name: str
    booking_id: int
    vendor_id: Optional[str] = None
    category: str
    rating: int
    comment: str
    status: str
    likes: int
    admin_response: Optional[AdminResponse] = None
    is_verified: bool
    is_featured: bool
    is_anonymous: bool
    created_at: datetime
    updated_at: datetime


class ReviewStatusUpdate(BaseModel):
    status: ReviewStatus


class ReviewReply(BaseModel):
    message: str = Field(min_length=1, max_length=500)


class LikeResult(BaseModel):
    likes: int
    liked: bool = Field(description="Whether the caller now likes the review")


class CategoryStats(BaseModel):
    category: str
    count: int
    average_rating: float


class ReviewStats(BaseModel):
    """Aggregates over approved reviews."""

    total_reviews: int
    average_rating: float
    rating_distribution: Dict[int, int] = Field(description="Number of reviews per star rating, 1 to 5")
    categories: List[CategoryStats] = Field(default_factory=list)
