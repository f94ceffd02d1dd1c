"""
Customer repository.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, or_, select

from ..entities.users import User
from .base import AsyncBaseRepository


class UserRepository(AsyncBaseRepository[User]):
    """Repository for customer data access operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_phone(self, phone: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.phone == phone))
        return result.scalars().first()

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email.lower()))
        return result.scalars().first()

    async def search(
        self,
        term: Optional[str] = None,
        is_blocked: Optional[bool] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Tuple[List[User], int]:
        """Search customers by name, email or phone.

        Args:
            term: Case-insensitive substring matched against name, email and phone
            is_blocked: Restrict to blocked or unblocked accounts
            limit: Page size
            offset: Rows to skip

        Returns:
            The page of users and the total number of matches
        """
        stmt = select(User).order_by(col(User.created_at).desc())
        if term:
            pattern = f"%{term}%"
            stmt = stmt.where(
                or_(col(User.name).ilike(pattern), col(User.email).ilike(pattern), col(User.phone).like(pattern))
            )
        if is_blocked is not None:
            stmt = stmt.where(User.is_blocked == is_blocked)
        return await self._page(stmt, limit, offset)
