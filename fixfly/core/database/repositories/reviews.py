"""
Review repository.

Listing supports the public sort orders; the aggregate queries back the
review statistics and the vendor rating.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from ..entities.reviews import Review
from .base import AsyncBaseRepository

_SORT_ORDERS = {
    "newest": (col(Review.created_at).desc(),),
    "oldest": (col(Review.created_at).asc(),),
    "highest_rating": (col(Review.rating).desc(), col(Review.created_at).desc()),
    "lowest_rating": (col(Review.rating).asc(), col(Review.created_at).desc()),
    "most_liked": (col(Review.likes).desc(), col(Review.created_at).desc()),
}


class ReviewRepository(AsyncBaseRepository[Review]):
    """Repository for customer reviews."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Review)

    async def get_by_booking_id(self, booking_id: int) -> Optional[Review]:
        result = await self.session.execute(select(Review).where(Review.booking_id == booking_id))
        return result.scalars().first()

    async def search(
        self,
        status: Optional[str] = None,
        category: Optional[str] = None,
        rating: Optional[int] = None,
        featured: Optional[bool] = None,
        user_id: Optional[int] = None,
        vendor_id: Optional[str] = None,
        sort: str = "newest",
        featured_first: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Tuple[List[Review], int]:
        """Filtered page of reviews.

        Args:
            status: Moderation status filter
            category: Service category filter
            rating: Exact star rating filter
            featured: Only featured (``True``) or only regular (``False``) reviews
            user_id: Author filter
            vendor_id: Reviewed vendor filter
            sort: One of newest, oldest, highest_rating, lowest_rating, most_liked
            featured_first: Put featured reviews ahead of the sort order
            limit: Page size
            offset: Rows to skip

        Returns:
            The page of reviews and the total number of matches
        """
        stmt = select(Review)
        if status:
            stmt = stmt.where(Review.status == status)
        if category:
            stmt = stmt.where(Review.category == category)
        if rating is not None:
            stmt = stmt.where(Review.rating == rating)
        if featured is not None:
            stmt = stmt.where(Review.is_featured == featured)
        if user_id is not None:
            stmt = stmt.where(Review.user_id == user_id)
        if vendor_id:
            stmt = stmt.where(Review.vendor_id == vendor_id)
        if featured_first:
            stmt = stmt.order_by(col(Review.is_featured).desc())
        stmt = stmt.order_by(*_SORT_ORDERS.get(sort, _SORT_ORDERS["newest"]), col(Review.id).desc())
        return await self._page(stmt, limit, offset)

    async def rating_summary(self, status: str, vendor_id: Optional[str] = None) -> Tuple[int, float]:
        """Number of reviews in ``status`` and their average rating (0.0 when none)."""
        stmt = select(func.count(), func.coalesce(func.avg(Review.rating), 0.0)).where(Review.status == status)
        if vendor_id:
            stmt = stmt.where(Review.vendor_id == vendor_id)
        count, average = (await self.session.execute(stmt)).one()
        return int(count), float(average)

    async def count_by_rating(self, status: str) -> Dict[int, int]:
        result = await self.session.execute(
            select(Review.rating, func.count()).where(Review.status == status).group_by(Review.rating)
        )
        return {int(rating): int(count) for rating, count in result.all()}

    async def category_summary(self, status: str) -> List[Tuple[str, int, float]]:
        """``(category, count, average rating)`` per category, most reviewed first."""
        result = await self.session.execute(
            select(Review.category, func.count(), func.avg(Review.rating))
            .where(Review.status == status)
            .group_by(Review.category)
            .order_by(func.count().desc(), Review.category)
        )
        return [(category, int(count), float(average)) for category, count, average in result.all()]

    async def count_by_status(self) -> Dict[str, int]:
        result = await self.session.execute(select(Review.status, func.count()).group_by(Review.status))
        return {status: int(count) for status, count in result.all()}
