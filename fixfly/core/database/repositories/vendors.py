"""
Vendor repository.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, or_, select

from ..entities.vendors import Vendor
from .base import AsyncBaseRepository


class VendorRepository(AsyncBaseRepository[Vendor]):
    """Repository for vendor data access operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Vendor)

    async def get_by_vendor_id(self, vendor_id: str) -> Optional[Vendor]:
        """Get a vendor by the three digit public id."""
        result = await self.session.execute(select(Vendor).where(Vendor.vendor_id == vendor_id))
        return result.scalars().first()

    async def get_by_email(self, email: str) -> Optional[Vendor]:
        result = await self.session.execute(select(Vendor).where(Vendor.email == email.lower()))
        return result.scalars().first()

    async def get_by_phone(self, phone: str) -> Optional[Vendor]:
        result = await self.session.execute(select(Vendor).where(Vendor.phone == phone))
        return result.scalars().first()

    async def search(
        self,
        term: Optional[str] = None,
        is_approved: Optional[bool] = None,
        is_blocked: Optional[bool] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Tuple[List[Vendor], int]:
        """Search vendors by name, email, phone or vendor id.

        Returns:
            The page of vendors and the total number of matches
        """
        stmt = select(Vendor).order_by(col(Vendor.created_at).desc())
        if term:
            pattern = f"%{term}%"
            stmt = stmt.where(
                or_(
                    col(Vendor.first_name).ilike(pattern),
                    col(Vendor.last_name).ilike(pattern),
                    col(Vendor.email).ilike(pattern),
                    col(Vendor.phone).like(pattern),
                    col(Vendor.vendor_id).like(pattern),
                )
            )
        if is_approved is not None:
            stmt = stmt.where(Vendor.is_approved == is_approved)
        if is_blocked is not None:
            stmt = stmt.where(Vendor.is_blocked == is_blocked)
        return await self._page(stmt, limit, offset)
