"""
Vendor accounts: registration, login, profile and admin moderation.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from fixfly.core.database import utc_now
from fixfly.core.database.entities.vendors import Vendor
from fixfly.core.database.entities.wallets import VendorWallet
from fixfly.core.database.repositories import SqlRepoBundle
from fixfly.core.logging_config import get_logger
from fixfly.core.models.domain.enums import BookingStatus, ReviewStatus, Role
from fixfly.core.models.io.vendors import (
    VendorAuthResponse,
    VendorLogin,
    VendorRead,
    VendorRegister,
    VendorStats,
    VendorUpdate,
)
from fixfly.server.core.security import create_access_token, hash_password, verify_password
from fixfly.server.errors import AuthenticationError, ConflictError, NotFoundError, ValidationFailedError

logger = get_logger(__name__)

VENDOR_ID_COUNTER = "vendor_id"
FIRST_VENDOR_ID = 100
LAST_VENDOR_ID = 999


class VendorService:
    def __init__(self, repos: SqlRepoBundle):
        self.repos = repos

    async def _allocate_vendor_id(self) -> str:
        seq = await self.repos.counters.next_value(VENDOR_ID_COUNTER)
        vendor_id = FIRST_VENDOR_ID + seq - 1
        if vendor_id > LAST_VENDOR_ID:
            raise ValidationFailedError("No vendor ids left to allocate", error_code="VENDOR_ID_EXHAUSTED")
        return str(vendor_id)

    async def register(self, data: VendorRegister) -> Vendor:
        """
        Create a vendor account awaiting admin approval, with an empty wallet.

        Raises:
            ConflictError: Email or phone already registered
        """
        if await self.repos.vendors.get_by_email(data.email):
            raise ConflictError("email", "Vendor with this email already exists")
        if await self.repos.vendors.get_by_phone(data.phone):
            raise ConflictError("phone", "Vendor with this phone number already exists")

        vendor = Vendor(
            vendor_id=await self._allocate_vendor_id(),
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            email=data.email,
            phone=data.phone,
            password_hash=hash_password(data.password),
            service_categories=list(data.service_categories),
            experience=data.experience,
            address=data.address.model_dump(exclude_none=True) if data.address else {},
        )
        vendor = await self.repos.vendors.create(vendor)
        await self.repos.wallets.create(VendorWallet(vendor_id=vendor.vendor_id))
        await self.repos.commit()
        logger.info(f"Registered vendor {vendor.vendor_id} ({vendor.email})")
        return vendor

    async def login(self, data: VendorLogin) -> VendorAuthResponse:
        vendor = await self.repos.vendors.get_by_email(data.email)
        if vendor is None or not verify_password(data.password, vendor.password_hash):
            raise AuthenticationError("Invalid email or password", error_code="INVALID_CREDENTIALS")
        if vendor.is_blocked or not vendor.is_active:
            raise AuthenticationError("Your account has been deactivated, please contact support")
        vendor.last_login_at = utc_now()
        vendor = await self.repos.vendors.update(vendor)
        await self.repos.commit()
        return VendorAuthResponse(
            token=create_access_token(vendor.id, Role.vendor), vendor=VendorRead.model_validate(vendor)
        )

    async def update_profile(self, vendor: Vendor, data: VendorUpdate) -> Vendor:
        changes = data.model_dump(exclude_unset=True, exclude={"address"})
        for key, value in changes.items():
            if value is not None:
                setattr(vendor, key, value)
        if data.address is not None:
            vendor.address = data.address.model_dump(exclude_none=True)
        vendor = await self.repos.vendors.update(vendor)
        await self.repos.commit()
        return vendor

    async def get(self, vendor_id: str) -> Vendor:
        vendor = await self.repos.vendors.get_by_vendor_id(vendor_id)
        if vendor is None:
            raise NotFoundError(f"Vendor {vendor_id} not found")
        return vendor

    async def search(
        self,
        term: Optional[str] = None,
        is_approved: Optional[bool] = None,
        is_blocked: Optional[bool] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Vendor], int]:
        return await self.repos.vendors.search(
            term=term, is_approved=is_approved, is_blocked=is_blocked, limit=limit, offset=offset
        )

    async def set_approved(self, vendor_id: str, approved: bool) -> Vendor:
        vendor = await self.get(vendor_id)
        vendor.is_approved = approved
        vendor = await self.repos.vendors.update(vendor)
        await self.repos.commit()
        logger.info(f"Vendor {vendor_id} approval set to {approved}")
        return vendor

    async def set_blocked(self, vendor_id: str, blocked: bool) -> Vendor:
        vendor = await self.get(vendor_id)
        vendor.is_blocked = blocked
        vendor = await self.repos.vendors.update(vendor)
        await self.repos.commit()
        logger.info(f"Vendor {vendor_id} blocked set to {blocked}")
        return vendor

    async def stats(self, vendor: Vendor) -> VendorStats:
        """
        Dashboard figures for ``vendor``.

        Task counts come from the bookings and support tickets assigned to the
        vendor. Money figures come from the wallet.
        """
        bookings = await self.repos.bookings.count_by_status(vendor_id=vendor.vendor_id)
        tickets = await self.repos.support_tickets.count_by_status(vendor_id=vendor.vendor_id)
        wallet = await self.repos.wallets.get_by_vendor_id(vendor.vendor_id)
        completed = wallet.total_tasks_completed if wallet else bookings.get(BookingStatus.completed.value, 0)
        review_count, average = await self.repos.reviews.rating_summary(
            ReviewStatus.approved.value, vendor_id=vendor.vendor_id
        )
        return VendorStats(
            total_tasks=sum(bookings.values()) + sum(tickets.values()),
            tasks_by_status=bookings,
            tickets_by_status=tickets,
            total_tasks_completed=completed,
            total_customers=await self.repos.bookings.count_customers_served(vendor.vendor_id),
            total_earnings=wallet.total_earnings if wallet else 0.0,
            current_balance=wallet.current_balance if wallet else 0.0,
            total_penalties=wallet.total_penalties if wallet else 0.0,
            average_rating=round(average, 1),
            total_reviews=review_count,
        )
