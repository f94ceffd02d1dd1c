"""
Notification repository.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from ..entities.notifications import Notification
from .base import AsyncBaseRepository


class NotificationRepository(AsyncBaseRepository[Notification]):
    """Repository for in-app notifications."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Notification)

    async def list_for_recipient(
        self,
        recipient_type: str,
        recipient_id: str,
        unread_only: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Tuple[List[Notification], int]:
        stmt = (
            select(Notification)
            .where(Notification.recipient_type == recipient_type)
            .where(Notification.recipient_id == recipient_id)
            .order_by(col(Notification.created_at).desc(), col(Notification.id).desc())
        )
        if unread_only:
            stmt = stmt.where(Notification.is_read == False)  # noqa: E712
        return await self._page(stmt, limit, offset)

    async def mark_all_read(self, recipient_type: str, recipient_id: str, now: datetime) -> int:
        """Mark every unread notification of the recipient as read.

        Returns:
            Number of notifications updated
        """
        result = await self.session.execute(
            update(Notification)
            .where(col(Notification.recipient_type) == recipient_type)
            .where(col(Notification.recipient_id) == recipient_id)
            .where(col(Notification.is_read) == False)  # noqa: E712
            .values(is_read=True, read_at=now)
        )
        return int(result.rowcount or 0)
