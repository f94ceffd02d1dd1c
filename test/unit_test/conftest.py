"""
Shared fixtures for unit tests: an in-memory SQLite database, the repository
bundle bound to it, entity factories, a Razorpay client backed by
``httpx.MockTransport`` and bearer token helpers.
"""

from __future__ import annotations

import hashlib
import hmac
import itertools
import json
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel.pool import StaticPool

from fixfly.core.database import create_all, create_sessionmaker
from fixfly.core.database.entities.admins import Admin
from fixfly.core.database.entities.bookings import Booking
from fixfly.core.database.entities.users import User
from fixfly.core.database.entities.vendors import Vendor
from fixfly.core.database.entities.wallets import VendorWallet
from fixfly.core.database.repositories import SqlRepoBundle, build_sql_repos_from_session
from fixfly.core.models.domain.enums import AdminRole, Role
from fixfly.server.core.config import RazorpayConfig
from fixfly.server.core.security import create_access_token, hash_password
from fixfly.server.services.admin import all_permissions
from fixfly.server.services.razorpay import RazorpayClient

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
VENDOR_PASSWORD = "vendor-pass-123"
ADMIN_PASSWORD = "admin-pass-123"

RAZORPAY_CONFIG = RazorpayConfig(
    key_id="rzp_test_key",
    key_secret="rzp_test_secret",
    webhook_secret="rzp_webhook_secret",
    base_url="http://mock.razorpay/v1",
)


@pytest.fixture(scope="session")
def vendor_password() -> str:
    return VENDOR_PASSWORD


@pytest.fixture(scope="session")
def admin_password() -> str:
    return ADMIN_PASSWORD


@pytest.fixture(scope="session")
def vendor_password_hash() -> str:
    return hash_password(VENDOR_PASSWORD)


@pytest.fixture(scope="session")
def admin_password_hash() -> str:
    return hash_password(ADMIN_PASSWORD)


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh in-memory database with every table."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return create_sessionmaker(test_engine)


@pytest_asyncio.fixture(name="session")
async def session_fixture(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a new session for each test."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def repos(session: AsyncSession) -> SqlRepoBundle:
    return build_sql_repos_from_session(session=session)


# ---------------------------------------------------------------------------
# Entity factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user(repos: SqlRepoBundle) -> Callable[..., Any]:
    phones = itertools.count(9876500001)

    async def _make(**fields: Any) -> User:
        phone = fields.pop("phone", None) or str(next(phones))
        user = User(
            name=fields.pop("name", "Asha Rao"),
            email=fields.pop("email", f"customer{phone}@example.com"),
            phone=phone,
            is_phone_verified=fields.pop("is_phone_verified", True),
            **fields,
        )
        user = await repos.users.create(user)
        await repos.commit()
        return user

    return _make


@pytest.fixture
def make_vendor(repos: SqlRepoBundle, vendor_password_hash: str) -> Callable[..., Any]:
    """Create an approved vendor with a wallet holding ``balance``."""
    ids = itertools.count(100)

    async def _make(balance: float = 0.0, **fields: Any) -> Vendor:
        vendor_id = fields.pop("vendor_id", None) or str(next(ids))
        vendor = Vendor(
            vendor_id=vendor_id,
            first_name=fields.pop("first_name", "Ravi"),
            last_name=fields.pop("last_name", "Kumar"),
            email=fields.pop("email", f"vendor{vendor_id}@example.com"),
            phone=fields.pop("phone", f"98{vendor_id}00000"[:10]),
            password_hash=vendor_password_hash,
            is_approved=fields.pop("is_approved", True),
            **fields,
        )
        vendor = await repos.vendors.create(vendor)
        await repos.wallets.create(
            VendorWallet(vendor_id=vendor.vendor_id, current_balance=balance, total_deposits=balance)
        )
        await repos.commit()
        return vendor

    return _make


@pytest.fixture
def make_admin(repos: SqlRepoBundle, admin_password_hash: str) -> Callable[..., Any]:
    """Create an admin. ``permissions`` lists the granted permission names."""
    counter = itertools.count(1)

    async def _make(
        role: AdminRole = AdminRole.super_admin, permissions: Optional[List[str]] = None, **fields: Any
    ) -> Admin:
        n = next(counter)
        granted = all_permissions() if role == AdminRole.super_admin else {p: True for p in permissions or []}
        admin = Admin(
            name=fields.pop("name", f"Admin {n}"),
            email=fields.pop("email", f"admin{n}@fixfly.in"),
            password_hash=admin_password_hash,
            role=role.value,
            permissions=granted,
            **fields,
        )
        admin = await repos.admins.create(admin)
        await repos.commit()
        return admin

    return _make


@pytest.fixture
def make_booking(repos: SqlRepoBundle) -> Callable[..., Any]:
    references = itertools.count(1)

    async def _make(user: Optional[User] = None, **fields: Any) -> Booking:
        booking = Booking(
            booking_reference=fields.pop("booking_reference", f"FIX{next(references):08X}"),
            user_id=user.id if user else None,
            customer=fields.pop(
                "customer",
                {
                    "name": "Asha Rao",
                    "email": "asha@example.com",
                    "phone": "9876543210",
                    "address": {"street": "12 MG Road", "city": "Bengaluru", "state": "KA", "pincode": "560001"},
                },
            ),
            services=fields.pop(
                "services", [{"service_id": "svc-laptop", "service_name": "Laptop repair", "price": 500.0}]
            ),
            subtotal=fields.pop("subtotal", 500.0),
            service_fee=fields.pop("service_fee", 100.0),
            total_amount=fields.pop("total_amount", 600.0),
            **fields,
        )
        booking = await repos.bookings.create(booking)
        await repos.commit()
        return booking

    return _make


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


@pytest.fixture
def auth_headers() -> Callable[[Any], Dict[str, str]]:
    """Bearer header for a user, vendor or admin entity."""

    def _headers(principal: Any) -> Dict[str, str]:
        if isinstance(principal, Vendor):
            role = Role.vendor
        elif isinstance(principal, Admin):
            role = Role.admin
        else:
            role = Role.user
        return {"Authorization": f"Bearer {create_access_token(principal.id, role)}"}

    return _headers


# ---------------------------------------------------------------------------
# Razorpay
# ---------------------------------------------------------------------------


class FakeRazorpayAPI:
    """Answers the Razorpay endpoints the client uses and records every request."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._orders = itertools.count(1)
        self.fail_with: Optional[int] = None
        self.payments: Dict[str, Dict[str, Any]] = {}
        self.orders: Dict[str, Dict[str, Any]] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"error": {"description": "gateway error"}})
        path = request.url.path
        body = json.loads(request.content or b"{}")
        if request.method == "POST" and path.endswith("/orders"):
            order = {
                "id": f"order_test{next(self._orders)}",
                "amount": body["amount"],
                "currency": body["currency"],
                "receipt": body["receipt"],
                "status": "created",
            }
            self.orders[order["id"]] = order
            return httpx.Response(200, json=order)
        if request.method == "GET" and "/orders/" in path:
            order = self.orders.get(path.rsplit("/", 1)[-1])
            if order is None:
                return httpx.Response(404, json={"error": {"description": "not found"}})
            return httpx.Response(200, json=order)
        if request.method == "POST" and path.endswith("/refund"):
            payment_id = path.split("/")[-2]
            return httpx.Response(200, json={"id": "rfnd_test1", "payment_id": payment_id, **body})
        if request.method == "GET" and "/payments/" in path:
            payment_id = path.rsplit("/", 1)[-1]
            payment = self.payments.get(payment_id)
            if payment is None:
                return httpx.Response(404, json={"error": {"description": "not found"}})
            return httpx.Response(200, json=payment)
        return httpx.Response(404, json={"error": {"description": "unknown endpoint"}})


@pytest.fixture
def razorpay_api() -> FakeRazorpayAPI:
    return FakeRazorpayAPI()


@pytest_asyncio.fixture
async def razorpay_client(razorpay_api: FakeRazorpayAPI) -> AsyncGenerator[RazorpayClient, None]:
    client = RazorpayClient(RAZORPAY_CONFIG, client=httpx.AsyncClient(transport=httpx.MockTransport(razorpay_api)))
    yield client
    await client.aclose()


@pytest.fixture
def sign_payment() -> Callable[[str, str], str]:
    """Checkout signature the gateway would send for an order and payment."""

    def _sign(order_id: str, payment_id: str) -> str:
        return hmac.new(
            RAZORPAY_CONFIG.key_secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256
        ).hexdigest()

    return _sign


@pytest.fixture
def sign_webhook() -> Callable[[bytes], str]:
    def _sign(body: bytes) -> str:
        return hmac.new(RAZORPAY_CONFIG.webhook_secret.encode(), body, hashlib.sha256).hexdigest()

    return _sign
