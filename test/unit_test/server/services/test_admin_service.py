"""Unit tests for admin accounts, permissions and the dashboard."""

import pytest

from fixfly.core.database.entities.admins import Admin
from fixfly.core.models.domain.enums import AdminPermission, AdminRole
from fixfly.core.models.io.admins import AdminCreate, AdminLogin
from fixfly.server.core.config import DefaultAdminConfig
from fixfly.server.errors import AuthenticationError, ConflictError, NotFoundError
from fixfly.server.services.admin import AdminService, all_permissions, has_permission



@pytest.fixture
def admin_service(repos) -> AdminService:
    return AdminService(repos)


def admin(role: AdminRole, permissions=None) -> Admin:
    return Admin(name="A", email="a@fixfly.in", password_hash="x", role=role.value, permissions=permissions or {})


class TestHasPermission:
    def test_super_admin_holds_everything(self):
        assert all(has_permission(admin(AdminRole.super_admin), p) for p in AdminPermission)

    def test_admin_needs_flag(self):
        limited = admin(AdminRole.admin, {"bookingManagement": True, "vendorManagement": False})

        assert has_permission(limited, AdminPermission.booking_management) is True
        assert has_permission(limited, AdminPermission.vendor_management) is False
        assert has_permission(limited, AdminPermission.analytics) is False

    def test_all_permissions_keys(self):
        assert set(all_permissions()) == {p.value for p in AdminPermission}
        assert all(all_permissions().values())


@pytest.mark.asyncio
class TestAdminAccounts:
    async def test_login(self, admin_service, make_admin, admin_password):
        existing = await make_admin()

        response = await admin_service.login(AdminLogin(email=existing.email, password=admin_password))

        assert response.admin.id == existing.id
        assert response.admin.role == "super_admin"
        assert existing.last_login_at is not None

    async def test_login_wrong_password(self, admin_service, make_admin):
        existing = await make_admin()

        with pytest.raises(AuthenticationError):
            await admin_service.login(AdminLogin(email=existing.email, password="wrong"))

    async def test_login_inactive(self, admin_service, make_admin, admin_password):
        existing = await make_admin(is_active=False)

        with pytest.raises(AuthenticationError, match="deactivated"):
            await admin_service.login(AdminLogin(email=existing.email, password=admin_password))

    async def test_create_admin_normalises_permissions(self, admin_service):
        created = await admin_service.create_admin(
            AdminCreate(
                name="Ops",
                email="ops@fixfly.in",
                password="ops-pass-123",
                permissions={"bookingManagement": True, "notAPermission": True},
            )
        )

        assert created.role == "admin"
        assert created.permissions["bookingManagement"] is True
        assert created.permissions["analytics"] is False
        assert "notAPermission" not in created.permissions

    async def test_create_super_admin_gets_all(self, admin_service):
        created = await admin_service.create_admin(
            AdminCreate(name="Root", email="root@fixfly.in", password="root-pass-123", role=AdminRole.super_admin)
        )

        assert created.permissions == all_permissions()

    async def test_create_duplicate(self, admin_service, make_admin):
        existing = await make_admin()

        with pytest.raises(ConflictError):
            await admin_service.create_admin(AdminCreate(name="X", email=existing.email, password="another-pass"))


@pytest.mark.asyncio
class TestDefaultAdmin:
    async def test_creates_super_admin(self, admin_service, repos):
        created = await admin_service.ensure_default_admin(
            DefaultAdminConfig(email=" Admin@Fixfly.in ", password="bootstrap-pass")
        )

        assert created is not None
        assert created.email == "admin@fixfly.in"
        assert created.role == "super_admin"
        assert await repos.admins.count() == 1

    async def test_skips_without_credentials(self, admin_service):
        assert await admin_service.ensure_default_admin(DefaultAdminConfig()) is None

    async def test_skips_when_an_admin_exists(self, admin_service, make_admin, repos):
        await make_admin(role=AdminRole.admin, permissions=[])

        result = await admin_service.ensure_default_admin(DefaultAdminConfig(email="x@fixfly.in", password="pw"))

        assert result is None
        assert await repos.admins.count() == 1


@pytest.mark.asyncio
class TestCustomersAndDashboard:
    async def test_block_user(self, admin_service, make_user):
        user = await make_user()

        assert (await admin_service.set_user_blocked(user.id, True)).is_blocked is True

    async def test_block_unknown_user(self, admin_service):
        with pytest.raises(NotFoundError):
            await admin_service.set_user_blocked(404, True)

    async def test_search_users(self, admin_service, make_user):
        await make_user(name="Priya")
        await make_user(name="Kiran")

        items, total = await admin_service.search_users(term="priy")

        assert total == 1 and items[0].name == "Priya"

    async def test_dashboard_stats(self, admin_service, make_user, make_vendor, make_booking):
        user = await make_user()
        await make_vendor()
        await make_vendor(is_approved=False)
        await make_booking(user, status="completed", payment_state="completed", total_amount=600.0)
        await make_booking(user)

        stats = await admin_service.dashboard_stats()

        assert stats.total_users == 1
        assert stats.total_vendors == 2
        assert stats.pending_vendor_approvals == 1
        assert stats.total_bookings == 2
        assert stats.bookings_by_status == {"completed": 1, "waiting_for_engineer": 1}
        assert stats.revenue == 600.0
        assert stats.open_tickets == 0
        assert stats.active_amc_subscriptions == 0
