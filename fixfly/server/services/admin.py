"""
Admin accounts, permission checks, customer moderation and dashboard stats.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from fixfly.core.database import utc_now
from fixfly.core.database.entities.admins import Admin
from fixfly.core.database.entities.users import User
from fixfly.core.database.repositories import SqlRepoBundle
from fixfly.core.logging_config import get_logger
from fixfly.core.models.domain.enums import (
    AdminPermission,
    AdminRole,
    Role,
    SubscriptionStatus,
    TicketStatus,
)
from fixfly.core.models.io.admins import AdminAuthResponse, AdminCreate, AdminLogin, AdminRead, DashboardStats
from fixfly.server.core.config import DefaultAdminConfig, settings
from fixfly.server.core.security import create_access_token, hash_password, verify_password
from fixfly.server.errors import AuthenticationError, ConflictError, NotFoundError

logger = get_logger(__name__)

CLOSED_TICKET_STATUSES = {TicketStatus.resolved.value, TicketStatus.closed.value, TicketStatus.cancelled.value}


def has_permission(admin: Admin, permission: AdminPermission) -> bool:
    """Super admins hold every permission; other admins need the flag set."""
    if admin.role == AdminRole.super_admin.value:
        return True
    return bool((admin.permissions or {}).get(permission.value, False))


def all_permissions() -> dict[str, bool]:
    return {permission.value: True for permission in AdminPermission}


class AdminService:
    def __init__(self, repos: SqlRepoBundle):
        self.repos = repos

    async def login(self, data: AdminLogin) -> AdminAuthResponse:
        admin = await self.repos.admins.get_by_email(data.email)
        if admin is None or not verify_password(data.password, admin.password_hash):
            raise AuthenticationError("Invalid email or password", error_code="INVALID_CREDENTIALS")
        if not admin.is_active:
            raise AuthenticationError("Admin account is deactivated")
        admin.last_login_at = utc_now()
        admin = await self.repos.admins.update(admin)
        await self.repos.commit()
        logger.info(f"Admin {admin.id} logged in")
        return AdminAuthResponse(token=create_access_token(admin.id, Role.admin), admin=AdminRead.model_validate(admin))

    async def create_admin(self, data: AdminCreate) -> Admin:
        if await self.repos.admins.get_by_email(data.email):
            raise ConflictError("email", "Admin with this email already exists")
        permissions = all_permissions() if data.role == AdminRole.super_admin else {
            permission.value: bool(data.permissions.get(permission.value, False)) for permission in AdminPermission
        }
        admin = await self.repos.admins.create(
            Admin(
                name=data.name,
                email=data.email,
                phone=data.phone,
                password_hash=hash_password(data.password),
                role=data.role.value,
                permissions=permissions,
            )
        )
        await self.repos.commit()
        logger.info(f"Created {admin.role} {admin.email}")
        return admin

    async def ensure_default_admin(self, config: Optional[DefaultAdminConfig] = None) -> Optional[Admin]:
        """
        Create the configured super admin when no admin exists yet.

        Returns:
            The created admin, or ``None`` when nothing was done
        """
        config = config or settings.default_admin
        if not config.email or not config.password:
            logger.info("No default admin credentials configured, skipping bootstrap")
            return None
        if await self.repos.admins.count() > 0:
            return None
        admin = await self.repos.admins.create(
            Admin(
                name=config.name,
                email=config.email.strip().lower(),
                phone=config.phone,
                password_hash=hash_password(config.password),
                role=AdminRole.super_admin.value,
                permissions=all_permissions(),
            )
        )
        await self.repos.commit()
        logger.info(f"Bootstrapped default super admin {admin.email}")
        return admin

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    async def search_users(
        self, term: Optional[str] = None, is_blocked: Optional[bool] = None, limit: int = 20, offset: int = 0
    ) -> Tuple[List[User], int]:
        return await self.repos.users.search(term=term, is_blocked=is_blocked, limit=limit, offset=offset)

    async def set_user_blocked(self, user_id: int, blocked: bool) -> User:
        user = await self.repos.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        user.is_blocked = blocked
        user = await self.repos.users.update(user)
        await self.repos.commit()
        logger.info(f"Customer {user_id} blocked set to {blocked}")
        return user

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def dashboard_stats(self) -> DashboardStats:
        bookings_by_status = await self.repos.bookings.count_by_status()
        tickets_by_status = await self.repos.support_tickets.count_by_status()
        return DashboardStats(
            total_users=await self.repos.users.count(),
            total_vendors=await self.repos.vendors.count(),
            pending_vendor_approvals=await self.repos.vendors.count({"is_approved": False}),
            total_bookings=sum(bookings_by_status.values()),
            bookings_by_status=bookings_by_status,
            revenue=round(await self.repos.bookings.completed_revenue(), 2),
            open_tickets=sum(
                count for status, count in tickets_by_status.items() if status not in CLOSED_TICKET_STATUSES
            ),
            active_amc_subscriptions=await self.repos.amc_subscriptions.count(
                {"status": SubscriptionStatus.active.value}
            ),
        )
