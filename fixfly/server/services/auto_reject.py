"""
Auto-reject service.

Vendors must answer an assignment within the configured window. A periodic
asyncio task returns unanswered bookings to the assignment queue and charges
the vendor the auto-rejection penalty.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fixfly.core.database import async_session_maker, utc_now
from fixfly.core.database.entities.bookings import Booking
from fixfly.core.database.repositories import SqlRepoBundle, build_sql_repos_from_session
from fixfly.core.logging_config import get_logger
from fixfly.core.models.domain.enums import BookingStatus, PenaltyType, VendorResponse
from fixfly.server.core.config import BookingConfig, settings

from .wallet import WalletService

logger = get_logger(__name__)


class AutoRejectService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = async_session_maker,
        config: Optional[BookingConfig] = None,
    ):
        self.session_factory = session_factory
        self.config = config or settings.booking
        self.interval_seconds = self.config.auto_reject_interval_seconds
        self.last_run_at: Optional[datetime] = None
        self.total_processed = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def note(self) -> str:
        return f"Auto-rejected: No response within {self.config.auto_reject_minutes} minutes"

    def start(self) -> None:
        if self.is_running:
            logger.info("Auto-reject service is already running")
            return
        self._task = asyncio.create_task(self._run(), name="fixfly-auto-reject")
        logger.info(f"Auto-reject service started, checking every {self.interval_seconds}s")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Auto-reject service stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self.trigger()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Auto-reject sweep failed: {e}", exc_info=True)
            await asyncio.sleep(self.interval_seconds)

    async def trigger(self) -> int:
        """Run one sweep now. Returns the number of bookings auto-rejected."""
        self.last_run_at = utc_now()
        async with self.session_factory() as session:
            due = await build_sql_repos_from_session(session=session).bookings.find_due_for_auto_reject(
                self.last_run_at
            )
            booking_ids = [booking.id for booking in due]
        if booking_ids:
            logger.info(f"Found {len(booking_ids)} assignments past their response deadline")

        processed = 0
        for booking_id in booking_ids:
            async with self.session_factory() as session:
                repos = build_sql_repos_from_session(session=session)
                try:
                    if await self._reject(repos, booking_id):
                        await repos.commit()
                        processed += 1
                except Exception as e:
                    await repos.rollback()
                    logger.error(f"Failed to auto-reject booking {booking_id}: {e}", exc_info=True)
        self.total_processed += processed
        return processed

    async def _reject(self, repos: SqlRepoBundle, booking_id: int) -> bool:
        booking: Optional[Booking] = await repos.bookings.get_by_id(booking_id)
        if (
            booking is None
            or booking.vendor_response != VendorResponse.pending.value
            or booking.vendor_id is None
            or booking.auto_reject_at is None
            or booking.auto_reject_at > utc_now()
        ):
            return False

        vendor_id = booking.vendor_id
        if await repos.wallets.get_by_vendor_id(vendor_id) is not None:
            await WalletService(repos).add_penalty(
                vendor_id,
                amount=settings.wallet.rejection_penalty,
                penalty_type=PenaltyType.auto_rejection,
                case_id=booking.booking_reference,
                description=f"Auto-rejection penalty for {booking.booking_reference}",
            )
        booking.vendor_response = VendorResponse.declined.value
        booking.vendor_response_note = self.note
        booking.vendor_responded_at = utc_now()
        booking.status = BookingStatus.waiting_for_engineer.value
        booking.clear_vendor_assignment()
        await repos.bookings.update(booking)
        logger.info(f"Auto-rejected booking {booking.booking_reference} for vendor {vendor_id}")
        return True

    def get_status(self) -> Dict[str, Any]:
        return {
            "is_running": self.is_running,
            "interval_seconds": self.interval_seconds,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "total_processed": self.total_processed,
        }


_auto_reject_service: Optional[AutoRejectService] = None


def get_auto_reject_service() -> AutoRejectService:
    global _auto_reject_service
    if _auto_reject_service is None:
        _auto_reject_service = AutoRejectService()
    return _auto_reject_service
