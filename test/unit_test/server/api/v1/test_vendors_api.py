import pytest
from httpx import AsyncClient

from fixfly.core.database import utc_now

pytestmark = pytest.mark.asyncio

SIGNUP = {
    "first_name": "Ravi",
    "last_name": "Kumar",
    "email": "Ravi.Kumar@Example.com",
    "phone": "9812345678",
    "password": "secret-123",
    "service_categories": ["laptop", "printer"],
}


async def test_register_and_login(client: AsyncClient):
    response = await client.post("/api/v1/vendors/register", json=SIGNUP)

    assert response.status_code == 201
    vendor = response.json()
    assert vendor["vendor_id"] == "100"
    assert vendor["email"] == "ravi.kumar@example.com"

    login = await client.post("/api/v1/vendors/login", json={"email": "ravi.kumar@example.com", "password": "secret-123"})
    assert login.status_code == 200
    token = login.json()["token"]

    me = await client.get("/api/v1/vendors/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["service_categories"] == ["laptop", "printer"]


async def test_register_duplicate_email(client: AsyncClient):
    await client.post("/api/v1/vendors/register", json=SIGNUP)

    response = await client.post("/api/v1/vendors/register", json={**SIGNUP, "phone": "9812345679"})

    assert response.status_code == 400
    assert response.json()["error_code"] == "DUPLICATE"


async def test_register_short_password(client: AsyncClient):
    response = await client.post("/api/v1/vendors/register", json={**SIGNUP, "password": "abc"})
    assert response.status_code == 422


async def test_login_wrong_password(client: AsyncClient, make_vendor):
    vendor = await make_vendor()

    response = await client.post("/api/v1/vendors/login", json={"email": vendor.email, "password": "nope"})

    assert response.status_code == 401
    assert response.json()["error_code"] == "INVALID_CREDENTIALS"


async def test_login_blocked(client: AsyncClient, make_vendor, vendor_password):
    vendor = await make_vendor(is_blocked=True)

    response = await client.post("/api/v1/vendors/login", json={"email": vendor.email, "password": vendor_password})

    assert response.status_code == 401


async def test_update_me(client: AsyncClient, make_vendor, auth_headers):
    vendor = await make_vendor()

    response = await client.put(
        "/api/v1/vendors/me", json={"experience": "5 years", "service_categories": ["mobile"]}, headers=auth_headers(vendor)
    )

    assert response.status_code == 200
    assert response.json()["experience"] == "5 years"
    assert response.json()["service_categories"] == ["mobile"]


async def test_customer_token_rejected(client: AsyncClient, make_user, auth_headers):
    user = await make_user()
    response = await client.get("/api/v1/vendors/me", headers=auth_headers(user))
    assert response.status_code == 401


async def test_eligibility_first_task(client: AsyncClient, make_vendor, auth_headers):
    vendor = await make_vendor()

    response = await client.get("/api/v1/vendors/me/eligibility", headers=auth_headers(vendor))

    assert response.status_code == 200
    assert response.json()["can_accept"] is True


async def test_eligibility_deposit_required(client: AsyncClient, make_vendor, auth_headers):
    vendor = await make_vendor(balance=100.0, first_task_assigned_at=utc_now())

    response = await client.get("/api/v1/vendors/me/eligibility", headers=auth_headers(vendor))

    body = response.json()
    assert body["can_accept"] is False
    assert body["error_code"] == "MANDATORY_DEPOSIT_REQUIRED"


async def test_dashboard_stats(client: AsyncClient, make_vendor, make_user, make_booking, auth_headers):
    vendor = await make_vendor(balance=800.0)
    await make_booking(await make_user(), status="completed", vendor_id=vendor.vendor_id)
    await make_booking(await make_user(), status="in_progress", vendor_id=vendor.vendor_id)

    response = await client.get("/api/v1/vendors/me/stats", headers=auth_headers(vendor))

    assert response.status_code == 200
    body = response.json()
    assert body["total_tasks"] == 2
    assert body["tasks_by_status"] == {"completed": 1, "in_progress": 1}
    assert body["current_balance"] == 800.0
    assert body["total_customers"] == 1
    assert body["average_rating"] == 0.0


async def test_dashboard_stats_needs_vendor_token(client: AsyncClient, make_user, auth_headers):
    response = await client.get("/api/v1/vendors/me/stats", headers=auth_headers(await make_user()))
    assert response.status_code == 401
