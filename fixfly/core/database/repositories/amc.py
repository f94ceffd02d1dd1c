"""
AMC plan and subscription repositories.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, or_, select

from ..entities.amc import AMCPlan, AMCSubscription
from .base import AsyncBaseRepository


class AMCPlanRepository(AsyncBaseRepository[AMCPlan]):
    """Repository for AMC plans."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AMCPlan)

    async def get_by_name(self, name: str) -> Optional[AMCPlan]:
        result = await self.session.execute(select(AMCPlan).where(AMCPlan.name == name))
        return result.scalars().first()

    async def list_ordered(self, status: Optional[str] = None) -> List[AMCPlan]:
        """Plans in display order, optionally restricted to one status."""
        stmt = select(AMCPlan).order_by(col(AMCPlan.sort_order).asc(), col(AMCPlan.created_at).desc())
        if status:
            stmt = stmt.where(AMCPlan.status == status)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class AMCSubscriptionRepository(AsyncBaseRepository[AMCSubscription]):
    """Repository for customer AMC subscriptions."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AMCSubscription)

    async def get_by_subscription_id(self, subscription_id: str) -> Optional[AMCSubscription]:
        result = await self.session.execute(
            select(AMCSubscription).where(AMCSubscription.subscription_id == subscription_id)
        )
        return result.scalars().first()

    async def get_by_order_id(self, order_id: str) -> Optional[AMCSubscription]:
        """Get the subscription an initial or renewal order was created for."""
        result = await self.session.execute(
            select(AMCSubscription).where(
                or_(
                    AMCSubscription.razorpay_order_id == order_id,
                    AMCSubscription.pending_renewal_order_id == order_id,
                )
            )
        )
        return result.scalars().first()

    async def find_unpaid(self, user_id: int, plan_id: int) -> List[AMCSubscription]:
        """Inactive subscriptions of the user for the plan still waiting for payment."""
        result = await self.session.execute(
            select(AMCSubscription)
            .where(AMCSubscription.user_id == user_id)
            .where(AMCSubscription.plan_id == plan_id)
            .where(AMCSubscription.status == "inactive")
            .where(AMCSubscription.payment_status == "pending")
        )
        return list(result.scalars().all())

    async def list_for_user(
        self, user_id: int, status: Optional[str] = None, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> Tuple[List[AMCSubscription], int]:
        stmt = (
            select(AMCSubscription)
            .where(AMCSubscription.user_id == user_id)
            .order_by(col(AMCSubscription.created_at).desc())
        )
        if status:
            stmt = stmt.where(AMCSubscription.status == status)
        return await self._page(stmt, limit, offset)
