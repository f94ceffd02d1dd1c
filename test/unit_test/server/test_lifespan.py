"""
Unit tests for FastAPI application lifespan management.

Tests verify that startup creates the schema, bootstraps the default admin
and starts the auto-reject service, and that shutdown stops the service and
closes the outbound clients.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI

from fixfly.core.database.repositories import build_sql_repos_from_session
from fixfly.server.core.config import settings

pytestmark = pytest.mark.asyncio


@pytest.fixture
def collaborators():
    """Patch every external collaborator the lifespan touches."""
    auto_reject = MagicMock()
    auto_reject.stop = AsyncMock()
    razorpay = MagicMock()
    razorpay.aclose = AsyncMock()
    sms = MagicMock()
    sms.aclose = AsyncMock()
    with (
        patch("fixfly.server.main.init_db", new_callable=AsyncMock) as init_db,
        patch("fixfly.server.main.bootstrap_default_admin", new_callable=AsyncMock) as bootstrap,
        patch("fixfly.server.main.get_auto_reject_service", return_value=auto_reject),
        patch("fixfly.server.main.get_razorpay_client", return_value=razorpay),
        patch("fixfly.server.main.get_sms_service", return_value=sms),
    ):
        yield {
            "init_db": init_db,
            "bootstrap": bootstrap,
            "auto_reject": auto_reject,
            "razorpay": razorpay,
            "sms": sms,
        }


class TestLifespanStartup:
    """Test application startup lifespan events."""

    async def test_startup_initializes_database_and_admin(self, collaborators, monkeypatch):
        from fixfly.server.main import lifespan

        monkeypatch.setattr(settings, "auto_reject_enabled", True)

        async with lifespan(FastAPI()):
            collaborators["init_db"].assert_awaited_once()
            collaborators["bootstrap"].assert_awaited_once()
            collaborators["auto_reject"].start.assert_called_once()

    async def test_auto_reject_can_be_disabled(self, collaborators, monkeypatch):
        from fixfly.server.main import lifespan

        monkeypatch.setattr(settings, "auto_reject_enabled", False)

        async with lifespan(FastAPI()):
            collaborators["auto_reject"].start.assert_not_called()

    async def test_database_failure_does_not_block_startup(self, collaborators):
        from fixfly.server.main import lifespan

        collaborators["init_db"].side_effect = RuntimeError("database unreachable")

        async with lifespan(FastAPI()):
            collaborators["bootstrap"].assert_not_awaited()


class TestLifespanShutdown:
    """Test application shutdown lifespan events."""

    async def test_shutdown_stops_service_and_closes_clients(self, collaborators):
        from fixfly.server.main import lifespan

        async with lifespan(FastAPI()):
            collaborators["auto_reject"].stop.assert_not_awaited()

        collaborators["auto_reject"].stop.assert_awaited_once()
        collaborators["razorpay"].aclose.assert_awaited_once()
        collaborators["sms"].aclose.assert_awaited_once()


class TestBootstrapDefaultAdmin:
    """Test creating the configured super admin on first start."""

    async def test_creates_admin_once(self, session_maker, monkeypatch):
        from fixfly.server.main import bootstrap_default_admin

        monkeypatch.setattr(settings, "default_admin_email", "Root@Fixfly.in")
        monkeypatch.setattr(settings, "default_admin_password", "change-me-now")

        with patch("fixfly.server.main.async_session_maker", session_maker):
            await bootstrap_default_admin()
            await bootstrap_default_admin()

        async with session_maker() as session:
            repos = build_sql_repos_from_session(session=session)
            assert await repos.admins.count() == 1
            admin = await repos.admins.get_by_email("root@fixfly.in")
            assert admin.role == "super_admin"

    async def test_skipped_without_credentials(self, session_maker, monkeypatch):
        from fixfly.server.main import bootstrap_default_admin

        monkeypatch.setattr(settings, "default_admin_email", None)
        monkeypatch.setattr(settings, "default_admin_password", None)

        with patch("fixfly.server.main.async_session_maker", session_maker):
            await bootstrap_default_admin()

        async with session_maker() as session:
            assert await build_sql_repos_from_session(session=session).admins.count() == 0
