from datetime import date, timedelta

import pytest
import pytest_asyncio
from httpx import AsyncClient

from fixfly.core.database import utc_now

pytestmark = pytest.mark.asyncio

BOOKING = {
    "customer": {
        "name": "Asha Rao",
        "email": "asha@example.com",
        "phone": "9876543210",
        "address": {"street": "12 MG Road", "city": "Bengaluru", "state": "KA", "pincode": "560001"},
    },
    "services": [{"service_id": "svc-laptop", "service_name": "Laptop repair", "price": 500}],
    "preferred_time_slot": "afternoon",
}


@pytest_asyncio.fixture
async def assigned(make_user, make_vendor, make_booking):
    user = await make_user()
    vendor = await make_vendor(balance=1000.0)
    booking = await make_booking(user, vendor_id=vendor.vendor_id, status="confirmed", vendor_response="pending")
    return user, vendor, booking


class TestCustomer:
    async def test_create_booking_as_guest(self, client: AsyncClient):
        response = await client.post("/api/v1/bookings", json=BOOKING)

        assert response.status_code == 201
        body = response.json()
        assert body["booking_reference"].startswith("FIX")
        assert body["user_id"] is None
        assert body["total_amount"] == 600.0
        assert body["status"] == "waiting_for_engineer"

    async def test_create_booking_as_customer(self, client: AsyncClient, make_user, auth_headers):
        user = await make_user()

        response = await client.post("/api/v1/bookings", json=BOOKING, headers=auth_headers(user))

        assert response.json()["user_id"] == user.id

    async def test_create_booking_requires_services(self, client: AsyncClient):
        response = await client.post("/api/v1/bookings", json={**BOOKING, "services": []})
        assert response.status_code == 422

    async def test_create_with_payment(self, client: AsyncClient):
        response = await client.post("/api/v1/bookings/with-payment", json={**BOOKING, "payment_method": "upi"})

        assert response.status_code == 201
        body = response.json()
        assert body["order"]["amount"] == 600.0
        assert body["order"]["amount_paise"] == 60000
        assert body["order"]["key_id"] == "rzp_test_key"
        assert body["booking"]["razorpay_order_id"] == body["order"]["order_id"]

    async def test_create_with_payment_gateway_down(self, client: AsyncClient, razorpay_api):
        razorpay_api.fail_with = 500

        response = await client.post("/api/v1/bookings/with-payment", json=BOOKING)

        assert response.status_code == 502
        assert response.json()["error_code"] == "EXTERNAL_SERVICE_ERROR"

    async def test_verify_payment(self, client: AsyncClient, sign_payment):
        created = (await client.post("/api/v1/bookings/with-payment", json=BOOKING)).json()
        order_id = created["order"]["order_id"]
        payload = {
            "booking_id": created["booking"]["id"],
            "razorpay_order_id": order_id,
            "razorpay_payment_id": "pay_api1",
            "razorpay_signature": sign_payment(order_id, "pay_api1"),
        }

        first = await client.post("/api/v1/bookings/verify-payment", json=payload)
        second = await client.post("/api/v1/bookings/verify-payment", json=payload)

        assert first.status_code == 200
        assert first.json()["payment_state"] == "completed"
        assert second.status_code == 200

    async def test_verify_payment_bad_signature(self, client: AsyncClient):
        created = (await client.post("/api/v1/bookings/with-payment", json=BOOKING)).json()

        response = await client.post(
            "/api/v1/bookings/verify-payment",
            json={
                "booking_id": created["booking"]["id"],
                "razorpay_order_id": created["order"]["order_id"],
                "razorpay_payment_id": "pay_x",
                "razorpay_signature": "forged",
            },
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "PAYMENT_VERIFICATION_FAILED"

    async def test_list_and_get_my_bookings(self, client: AsyncClient, make_user, make_booking, auth_headers):
        user = await make_user()
        mine = await make_booking(user)
        await make_booking(user, status="completed")
        await make_booking(await make_user())

        listing = await client.get("/api/v1/bookings", headers=auth_headers(user))
        filtered = await client.get("/api/v1/bookings?status=completed", headers=auth_headers(user))
        single = await client.get(f"/api/v1/bookings/{mine.id}", headers=auth_headers(user))

        assert listing.json()["total"] == 2
        assert filtered.json()["total"] == 1
        assert single.json()["booking_reference"] == mine.booking_reference

    async def test_get_someone_elses_booking(self, client: AsyncClient, make_user, make_booking, auth_headers):
        booking = await make_booking(await make_user())
        stranger = await make_user()

        response = await client.get(f"/api/v1/bookings/{booking.id}", headers=auth_headers(stranger))

        assert response.status_code == 403
        assert response.json()["error_code"] == "FORBIDDEN"

    async def test_get_missing_booking(self, client: AsyncClient, make_user, auth_headers):
        response = await client.get("/api/v1/bookings/999", headers=auth_headers(await make_user()))
        assert response.status_code == 404

    async def test_cancel(self, client: AsyncClient, make_user, make_booking, auth_headers):
        user = await make_user()
        booking = await make_booking(user)

        response = await client.patch(
            f"/api/v1/bookings/{booking.id}/cancel", json={"reason": "Changed plans"}, headers=auth_headers(user)
        )

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    async def test_reschedule(self, client: AsyncClient, make_user, make_booking, auth_headers):
        user = await make_user()
        booking = await make_booking(user)
        new_date = (date.today() + timedelta(days=3)).isoformat()

        response = await client.patch(
            f"/api/v1/bookings/{booking.id}/reschedule",
            json={"new_date": new_date, "new_time": "evening"},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        assert response.json()["scheduled_date"] == new_date


class TestVendor:
    async def test_vendor_listing(self, client: AsyncClient, assigned, auth_headers):
        _, vendor, booking = assigned

        response = await client.get("/api/v1/bookings/vendor/me", headers=auth_headers(vendor))

        assert response.status_code == 200
        assert [item["id"] for item in response.json()["items"]] == [booking.id]

    async def test_accept_and_complete_cash(self, client: AsyncClient, assigned, auth_headers):
        _, vendor, booking = assigned

        accepted = await client.patch(f"/api/v1/bookings/{booking.id}/accept", headers=auth_headers(vendor))
        completed = await client.patch(
            f"/api/v1/bookings/{booking.id}/complete",
            json={"billing_amount": 800, "payment_method": "cash"},
            headers=auth_headers(vendor),
        )

        assert accepted.json()["status"] == "in_progress"
        assert completed.status_code == 200
        assert completed.json()["status"] == "completed"
        assert completed.json()["payment_status"] == "collected"

    async def test_decline_without_body(self, client: AsyncClient, assigned, auth_headers):
        _, vendor, booking = assigned

        response = await client.patch(f"/api/v1/bookings/{booking.id}/decline", headers=auth_headers(vendor))

        assert response.status_code == 200
        assert response.json()["status"] == "waiting_for_engineer"
        assert response.json()["vendor_id"] is None

    async def test_decline_insufficient_balance(self, client: AsyncClient, make_user, make_vendor, make_booking, auth_headers):
        vendor = await make_vendor(balance=10.0)
        booking = await make_booking(await make_user(), vendor_id=vendor.vendor_id, vendor_response="pending")

        response = await client.patch(
            f"/api/v1/bookings/{booking.id}/decline", json={"reason": "Busy"}, headers=auth_headers(vendor)
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "INSUFFICIENT_WALLET_BALANCE"
        assert body["details"] == {"required": 100.0, "available": 10.0}

    async def test_accept_without_deposit(self, client: AsyncClient, make_user, make_vendor, make_booking, auth_headers):
        vendor = await make_vendor(balance=0.0, first_task_assigned_at=utc_now())
        booking = await make_booking(await make_user(), vendor_id=vendor.vendor_id, vendor_response="pending")

        response = await client.patch(f"/api/v1/bookings/{booking.id}/accept", headers=auth_headers(vendor))

        assert response.status_code == 403
        assert response.json()["error_code"] == "MANDATORY_DEPOSIT_REQUIRED"

    async def test_online_completion_then_customer_pays(
        self, client: AsyncClient, assigned, auth_headers, sign_payment, repos
    ):
        user, vendor, booking = assigned
        await client.patch(f"/api/v1/bookings/{booking.id}/accept", headers=auth_headers(vendor))
        await client.patch(
            f"/api/v1/bookings/{booking.id}/complete",
            json={"billing_amount": 1200, "payment_method": "online", "include_gst": True},
            headers=auth_headers(vendor),
        )

        order = await client.post(
            f"/api/v1/bookings/{booking.id}/completion-payment/create-order", headers=auth_headers(user)
        )
        assert order.status_code == 200
        order_id = order.json()["order_id"]
        assert order.json()["amount"] == 1416.0

        paid = await client.post(
            "/api/v1/bookings/verify-payment",
            json={
                "booking_id": booking.id,
                "razorpay_order_id": order_id,
                "razorpay_payment_id": "pay_final",
                "razorpay_signature": sign_payment(order_id, "pay_final"),
            },
            headers=auth_headers(user),
        )

        assert paid.json()["status"] == "completed"
        assert paid.json()["payment_status"] == "payment_done"
