from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from fixfly.core.database import utc_now
from fixfly.core.database.repositories import build_sql_repos_from_session
from fixfly.server.core.config import BookingConfig
from fixfly.server.services.auto_reject import AutoRejectService, get_auto_reject_service

pytestmark = pytest.mark.asyncio


@pytest.fixture
def service(session_maker) -> AutoRejectService:
    return AutoRejectService(session_maker, BookingConfig(auto_reject_minutes=25, auto_reject_interval_seconds=3600))


@pytest.fixture
def overdue_booking(make_user, make_vendor, make_booking):
    async def _make(balance: float = 500.0, minutes_overdue: int = 5, **fields):
        vendor = await make_vendor(balance=balance)
        booking = await make_booking(
            await make_user(),
            vendor_id=vendor.vendor_id,
            status="confirmed",
            vendor_response=fields.pop("vendor_response", "pending"),
            assigned_at=utc_now() - timedelta(minutes=30),
            auto_reject_at=utc_now() - timedelta(minutes=minutes_overdue),
            **fields,
        )
        return vendor, booking

    return _make


async def reload(session_maker, booking_id: int, vendor_id: str):
    async with session_maker() as session:
        repos = build_sql_repos_from_session(session=session)
        return await repos.bookings.get_by_id(booking_id), await repos.wallets.get_by_vendor_id(vendor_id)


class TestTrigger:
    async def test_overdue_assignment_is_requeued_with_penalty(self, service, session_maker, overdue_booking):
        vendor, booking = await overdue_booking()

        processed = await service.trigger()

        assert processed == 1
        refreshed, wallet = await reload(session_maker, booking.id, vendor.vendor_id)
        assert refreshed.status == "waiting_for_engineer"
        assert refreshed.vendor_response == "declined"
        assert refreshed.vendor_response_note == "Auto-rejected: No response within 25 minutes"
        assert refreshed.vendor_id is None
        assert refreshed.auto_reject_at is None
        assert wallet.current_balance == 400.0
        assert wallet.total_tasks_rejected == 1

    async def test_penalty_never_overdraws(self, service, session_maker, overdue_booking):
        vendor, booking = await overdue_booking(balance=30.0)

        await service.trigger()

        _, wallet = await reload(session_maker, booking.id, vendor.vendor_id)
        assert wallet.current_balance == 0.0

    async def test_future_deadline_untouched(self, service, session_maker, overdue_booking):
        vendor, booking = await overdue_booking(minutes_overdue=-10)

        assert await service.trigger() == 0

        refreshed, _ = await reload(session_maker, booking.id, vendor.vendor_id)
        assert refreshed.vendor_id == vendor.vendor_id

    async def test_answered_assignment_untouched(self, service, overdue_booking):
        await overdue_booking(vendor_response="accepted")

        assert await service.trigger() == 0

    async def test_counts_accumulate(self, service, overdue_booking):
        await overdue_booking()
        await overdue_booking()

        assert await service.trigger() == 2
        assert await service.trigger() == 0
        status = service.get_status()
        assert status["total_processed"] == 2
        assert status["last_run_at"] is not None
        assert status["interval_seconds"] == 3600


class TestLifecycle:
    async def test_start_and_stop(self, service):
        assert service.is_running is False

        service.start()
        await asyncio.sleep(0)
        assert service.is_running is True
        assert service.get_status()["is_running"] is True

        service.start()  # second start is a no-op
        await service.stop()
        assert service.is_running is False

    async def test_stop_without_start(self, service):
        await service.stop()
        assert service.is_running is False

    async def test_sweep_errors_do_not_kill_the_loop(self, service, monkeypatch):
        calls = []

        async def broken_trigger():
            calls.append(1)
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(service, "trigger", broken_trigger)
        service.start()
        await asyncio.sleep(0.01)

        assert calls
        assert service.is_running is True
        await service.stop()


async def test_global_service_is_shared():
    assert get_auto_reject_service() is get_auto_reject_service()
