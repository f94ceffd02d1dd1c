"""
Admin repository.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.admins import Admin
from .base import AsyncBaseRepository


class AdminRepository(AsyncBaseRepository[Admin]):
    """Repository for admin accounts."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Admin)

    async def get_by_email(self, email: str) -> Optional[Admin]:
        result = await self.session.execute(select(Admin).where(Admin.email == email.lower()))
        return result.scalars().first()
