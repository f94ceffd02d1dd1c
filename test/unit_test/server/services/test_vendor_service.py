"""Unit tests for vendor registration, login, moderation and dashboard stats."""

import pytest

from fixfly.core.database.entities.reviews import Review
from fixfly.core.database.entities.support_tickets import SupportTicket
from fixfly.core.models.io.vendors import VendorLogin, VendorRegister, VendorUpdate
from fixfly.server.core.security import decode_access_token
from fixfly.server.errors import AuthenticationError, ConflictError, NotFoundError, ValidationFailedError
from fixfly.server.services import vendors as vendors_module
from fixfly.server.services.vendors import VendorService


pytestmark = pytest.mark.asyncio


@pytest.fixture
def vendor_service(repos) -> VendorService:
    return VendorService(repos)


def signup(**overrides) -> VendorRegister:
    data = {
        "first_name": " Ravi ",
        "last_name": "Kumar",
        "email": "Ravi@Example.com",
        "phone": "+91 98111 22233",
        "password": "secret-pass",
        "service_categories": ["laptop", "printer"],
        "address": {"city": "Chennai"},
    }
    data.update(overrides)
    return VendorRegister(**data)


class TestRegister:
    async def test_allocates_ids_and_creates_wallet(self, vendor_service, repos):
        first = await vendor_service.register(signup())
        second = await vendor_service.register(signup(email="b@example.com", phone="9811122244"))

        assert (first.vendor_id, second.vendor_id) == ("100", "101")
        assert first.first_name == "Ravi"
        assert first.email == "ravi@example.com"
        assert first.phone == "9811122233"
        assert first.is_approved is False
        assert first.password_hash != "secret-pass"
        wallet = await repos.wallets.get_by_vendor_id("100")
        assert wallet is not None and wallet.current_balance == 0.0

    async def test_duplicate_email(self, vendor_service):
        await vendor_service.register(signup())

        with pytest.raises(ConflictError) as exc_info:
            await vendor_service.register(signup(phone="9811100000"))

        assert exc_info.value.field == "email"

    async def test_duplicate_phone(self, vendor_service):
        await vendor_service.register(signup())

        with pytest.raises(ConflictError) as exc_info:
            await vendor_service.register(signup(email="other@example.com"))

        assert exc_info.value.field == "phone"

    async def test_ids_are_three_digits(self, vendor_service, monkeypatch):
        monkeypatch.setattr(vendors_module, "FIRST_VENDOR_ID", 999)
        await vendor_service.register(signup())

        with pytest.raises(ValidationFailedError) as exc_info:
            await vendor_service.register(signup(email="b@example.com", phone="9811122244"))

        assert exc_info.value.error_code == "VENDOR_ID_EXHAUSTED"


class TestLogin:
    async def test_success(self, vendor_service, make_vendor, vendor_password):
        vendor = await make_vendor()

        response = await vendor_service.login(VendorLogin(email=vendor.email, password=vendor_password))

        assert response.vendor.vendor_id == vendor.vendor_id
        assert decode_access_token(response.token)["role"] == "vendor"
        assert vendor.last_login_at is not None

    async def test_wrong_password(self, vendor_service, make_vendor):
        vendor = await make_vendor()

        with pytest.raises(AuthenticationError) as exc_info:
            await vendor_service.login(VendorLogin(email=vendor.email, password="nope"))

        assert exc_info.value.error_code == "INVALID_CREDENTIALS"

    async def test_unknown_email(self, vendor_service):
        with pytest.raises(AuthenticationError):
            await vendor_service.login(VendorLogin(email="ghost@example.com", password="x"))

    async def test_blocked_vendor(self, vendor_service, make_vendor, vendor_password):
        vendor = await make_vendor(is_blocked=True)

        with pytest.raises(AuthenticationError, match="deactivated"):
            await vendor_service.login(VendorLogin(email=vendor.email, password=vendor_password))


class TestProfileAndModeration:
    async def test_update_profile(self, vendor_service, make_vendor):
        vendor = await make_vendor()

        updated = await vendor_service.update_profile(
            vendor, VendorUpdate(experience="5 years", service_categories=["mobile"], address={"city": "Goa"})
        )

        assert updated.experience == "5 years"
        assert updated.service_categories == ["mobile"]
        assert updated.address["city"] == "Goa"
        assert updated.first_name == "Ravi"

    async def test_approve_and_block(self, vendor_service, make_vendor):
        vendor = await make_vendor(is_approved=False)

        assert (await vendor_service.set_approved(vendor.vendor_id, True)).is_approved is True
        assert (await vendor_service.set_blocked(vendor.vendor_id, True)).is_blocked is True

    async def test_unknown_vendor(self, vendor_service):
        with pytest.raises(NotFoundError):
            await vendor_service.get("999")

    async def test_search(self, vendor_service, make_vendor):
        await make_vendor(first_name="Suresh")
        await make_vendor(first_name="Mahesh", is_approved=False)

        items, total = await vendor_service.search(term="sures")
        assert total == 1 and items[0].first_name == "Suresh"

        _, pending = await vendor_service.search(is_approved=False)
        assert pending == 1


class TestStats:
    async def test_dashboard_figures(self, vendor_service, repos, make_vendor, make_user, make_booking):
        vendor = await make_vendor(balance=1500.0)
        other = await make_vendor()
        user = await make_user()

        def customer(phone):
            return {"name": "Asha Rao", "phone": phone, "address": {"city": "Bengaluru"}}

        done = {"status": "completed", "vendor_id": vendor.vendor_id}
        first = await make_booking(user, customer=customer("9876543210"), **done)
        await make_booking(user, customer=customer("9876543210"), **done)
        await make_booking(customer=customer("9123456780"), **done)
        await make_booking(user, status="confirmed", vendor_id=vendor.vendor_id)
        await make_booking(user, status="completed", vendor_id=other.vendor_id)
        await repos.support_tickets.create(
            SupportTicket(
                ticket_id="TK000001",
                user_id=user.id,
                user_name="Asha Rao",
                user_phone=user.phone,
                support_type="service",
                subject="Printer jam",
                description="Paper stuck in the tray",
                status="In Progress",
                assigned_vendor_id=vendor.vendor_id,
            )
        )
        await repos.reviews.create(
            Review(
                user_id=user.id,
                booking_id=first.id,
                vendor_id=vendor.vendor_id,
                category="AC Repair",
                rating=4,
                comment="Quick and tidy work",
            )
        )
        wallet = await repos.wallets.get_by_vendor_id(vendor.vendor_id)
        wallet.total_earnings = 2400.0
        wallet.total_penalties = 100.0
        wallet.total_tasks_completed = 3
        await repos.wallets.update(wallet)
        await repos.commit()

        stats = await vendor_service.stats(vendor)

        assert stats.total_tasks == 5
        assert stats.tasks_by_status == {"completed": 3, "confirmed": 1}
        assert stats.tickets_by_status == {"In Progress": 1}
        assert stats.total_tasks_completed == 3
        assert stats.total_customers == 2
        assert stats.total_earnings == 2400.0
        assert stats.current_balance == 1500.0
        assert stats.total_penalties == 100.0
        assert stats.average_rating == 4.0
        assert stats.total_reviews == 1

    async def test_new_vendor_has_zero_figures(self, vendor_service, make_vendor):
        stats = await vendor_service.stats(await make_vendor())

        assert stats.total_tasks == 0
        assert stats.total_customers == 0
        assert stats.average_rating == 0.0
        assert stats.total_reviews == 0
