"""
Booking repository.

Besides the CRUD operations it provides the queries behind the admin
dashboard, the vendor task list, the scheduling conflict check and the
auto-reject sweep.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, or_, select

from ..entities.bookings import Booking
from .base import AsyncBaseRepository

_CLOSED_STATUSES = ("cancelled", "completed")


class BookingRepository(AsyncBaseRepository[Booking]):
    """Repository for booking data access operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Booking)

    async def get_by_reference(self, reference: str) -> Optional[Booking]:
        result = await self.session.execute(select(Booking).where(Booking.booking_reference == reference.upper()))
        return result.scalars().first()

    async def get_by_order_id(self, order_id: str) -> Optional[Booking]:
        """Get the booking an up-front or final bill order was created for."""
        result = await self.session.execute(
            select(Booking).where(or_(Booking.razorpay_order_id == order_id, Booking.final_payment_order_id == order_id))
        )
        return result.scalars().first()

    async def list_for_user(
        self, user_id: int, status: Optional[str] = None, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> Tuple[List[Booking], int]:
        stmt = select(Booking).where(Booking.user_id == user_id).order_by(col(Booking.created_at).desc())
        if status:
            stmt = stmt.where(Booking.status == status)
        return await self._page(stmt, limit, offset)

    async def list_for_vendor(
        self, vendor_id: str, status: Optional[str] = None, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> Tuple[List[Booking], int]:
        stmt = select(Booking).where(Booking.vendor_id == vendor_id).order_by(col(Booking.created_at).desc())
        if status:
            stmt = stmt.where(Booking.status == status)
        return await self._page(stmt, limit, offset)

    async def search(
        self,
        status: Optional[str] = None,
        vendor_id: Optional[str] = None,
        priority: Optional[str] = None,
        term: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Tuple[List[Booking], int]:
        """Admin booking search.

        Args:
            status: Booking status filter
            vendor_id: Assigned vendor filter
            priority: Priority filter
            term: Substring of the booking reference
            limit: Page size
            offset: Rows to skip

        Returns:
            The page of bookings and the total number of matches
        """
        stmt = select(Booking).order_by(col(Booking.created_at).desc())
        if status:
            stmt = stmt.where(Booking.status == status)
        if vendor_id:
            stmt = stmt.where(Booking.vendor_id == vendor_id)
        if priority:
            stmt = stmt.where(Booking.priority == priority)
        if term:
            stmt = stmt.where(col(Booking.booking_reference).ilike(f"%{term}%"))
        return await self._page(stmt, limit, offset)

    async def find_due_for_auto_reject(self, now: datetime) -> List[Booking]:
        """Bookings whose assigned vendor has not responded before the deadline."""
        stmt = (
            select(Booking)
            .where(Booking.vendor_response == "pending")
            .where(col(Booking.vendor_id).is_not(None))
            .where(col(Booking.auto_reject_at).is_not(None))
            .where(col(Booking.auto_reject_at) <= now)
            .order_by(col(Booking.auto_reject_at).asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_vendor_conflict(
        self, vendor_id: str, scheduled_date: date, scheduled_time: str, exclude_id: Optional[int] = None
    ) -> Optional[Booking]:
        """Find another open booking of the vendor in the same date and time slot.

        Bookings the vendor declined, and closed bookings, do not conflict.
        """
        stmt = (
            select(Booking)
            .where(Booking.vendor_id == vendor_id)
            .where(Booking.scheduled_date == scheduled_date)
            .where(Booking.scheduled_time == scheduled_time)
            .where(col(Booking.status).not_in(_CLOSED_STATUSES))
            .where(or_(col(Booking.vendor_response).is_(None), col(Booking.vendor_response).in_(("pending", "accepted"))))
        )
        if exclude_id is not None:
            stmt = stmt.where(Booking.id != exclude_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def count_by_status(self, vendor_id: Optional[str] = None) -> Dict[str, int]:
        stmt = select(Booking.status, func.count()).group_by(Booking.status)
        if vendor_id:
            stmt = stmt.where(Booking.vendor_id == vendor_id)
        result = await self.session.execute(stmt)
        return {status: int(count) for status, count in result.all()}

    async def count_customers_served(self, vendor_id: str) -> int:
        """Distinct customer phone numbers on the vendor's completed bookings."""
        phone = col(Booking.customer)["phone"].as_string()
        result = await self.session.execute(
            select(func.count(func.distinct(phone)))
            .where(Booking.vendor_id == vendor_id)
            .where(Booking.status == "completed")
        )
        return int(result.scalar_one())

    async def completed_revenue(self) -> float:
        """Sum of booking totals whose gateway or cash payment completed."""
        result = await self.session.execute(
            select(func.coalesce(func.sum(Booking.total_amount), 0.0)).where(Booking.payment_state == "completed")
        )
        return float(result.scalar_one())
