"""
Support ticket repository.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, or_, select

from ..entities.support_tickets import SupportTicket
from .base import AsyncBaseRepository

_CLOSED_STATUSES = ("Resolved", "Closed", "Cancelled")


class SupportTicketRepository(AsyncBaseRepository[SupportTicket]):
    """Repository for support ticket data access operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SupportTicket)

    async def get_by_ticket_id(self, ticket_id: str) -> Optional[SupportTicket]:
        result = await self.session.execute(select(SupportTicket).where(SupportTicket.ticket_id == ticket_id.upper()))
        return result.scalars().first()

    async def get_by_order_id(self, order_id: str) -> Optional[SupportTicket]:
        """Find the ticket whose final bill was opened as gateway order ``order_id``."""
        result = await self.session.execute(select(SupportTicket).where(SupportTicket.razorpay_order_id == order_id))
        return result.scalars().first()

    async def list_for_user(
        self, user_id: int, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> Tuple[List[SupportTicket], int]:
        stmt = (
            select(SupportTicket)
            .where(SupportTicket.user_id == user_id)
            .order_by(col(SupportTicket.created_at).desc())
        )
        return await self._page(stmt, limit, offset)

    async def list_for_vendor(
        self, vendor_id: str, vendor_status: Optional[str] = None, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> Tuple[List[SupportTicket], int]:
        stmt = (
            select(SupportTicket)
            .where(SupportTicket.assigned_vendor_id == vendor_id)
            .order_by(col(SupportTicket.created_at).desc())
        )
        if vendor_status:
            stmt = stmt.where(SupportTicket.vendor_status == vendor_status)
        return await self._page(stmt, limit, offset)

    async def search(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        support_type: Optional[str] = None,
        term: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Tuple[List[SupportTicket], int]:
        stmt = select(SupportTicket).order_by(col(SupportTicket.created_at).desc())
        if status:
            stmt = stmt.where(SupportTicket.status == status)
        if priority:
            stmt = stmt.where(SupportTicket.priority == priority)
        if support_type:
            stmt = stmt.where(SupportTicket.support_type == support_type)
        if term:
            pattern = f"%{term}%"
            stmt = stmt.where(
                or_(
                    col(SupportTicket.ticket_id).ilike(pattern),
                    col(SupportTicket.subject).ilike(pattern),
                    col(SupportTicket.user_name).ilike(pattern),
                )
            )
        return await self._page(stmt, limit, offset)

    async def find_vendor_conflict(
        self, vendor_id: str, scheduled_date: date, scheduled_time: str, exclude_id: Optional[int] = None
    ) -> Optional[SupportTicket]:
        """Find another open ticket of the vendor in the same date and time slot."""
        stmt = (
            select(SupportTicket)
            .where(SupportTicket.assigned_vendor_id == vendor_id)
            .where(SupportTicket.scheduled_date == scheduled_date)
            .where(SupportTicket.scheduled_time == scheduled_time)
            .where(col(SupportTicket.status).not_in(_CLOSED_STATUSES))
            .where(
                or_(
                    col(SupportTicket.vendor_status).is_(None),
                    col(SupportTicket.vendor_status).not_in(("Declined", "Cancelled")),
                )
            )
        )
        if exclude_id is not None:
            stmt = stmt.where(SupportTicket.id != exclude_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def count_by_status(self, vendor_id: Optional[str] = None) -> Dict[str, int]:
        stmt = select(SupportTicket.status, func.count()).group_by(SupportTicket.status)
        if vendor_id:
            stmt = stmt.where(SupportTicket.assigned_vendor_id == vendor_id)
        result = await self.session.execute(stmt)
        return {status: int(count) for status, count in result.all()}

    async def count_by_priority(self) -> Dict[str, int]:
        result = await self.session.execute(
            select(SupportTicket.priority, func.count()).group_by(SupportTicket.priority)
        )
        return {priority: int(count) for priority, count in result.all()}
