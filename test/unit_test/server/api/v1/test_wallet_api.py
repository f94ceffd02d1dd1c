import pytest
from httpx import AsyncClient

from fixfly.core.database import utc_now
from fixfly.server.services.wallet import WalletService

pytestmark = pytest.mark.asyncio

BANK = {
    "account_number": "123456789012",
    "ifsc_code": "hdfc0001234",
    "bank_name": "HDFC",
    "account_holder_name": "Ravi Kumar",
}


class TestOverview:
    async def test_new_vendor_can_take_first_task(self, client: AsyncClient, make_vendor, auth_headers):
        vendor = await make_vendor(balance=250.0)

        body = (await client.get("/api/v1/vendor/wallet", headers=auth_headers(vendor))).json()

        assert body["wallet"]["current_balance"] == 250.0
        assert body["can_accept_tasks"] is True
        assert body["eligibility_reason"] == "First task"

    async def test_deposit_needed_after_first_task(self, client: AsyncClient, make_vendor, auth_headers):
        vendor = await make_vendor(balance=250.0, first_task_assigned_at=utc_now())

        body = (await client.get("/api/v1/vendor/wallet", headers=auth_headers(vendor))).json()

        assert body["can_accept_tasks"] is False
        assert "2000" in body["eligibility_reason"]

    async def test_customer_token_refused(self, client: AsyncClient, make_user, auth_headers):
        response = await client.get("/api/v1/vendor/wallet", headers=auth_headers(await make_user()))
        assert response.status_code == 401


class TestDeposit:
    async def test_deposit_round_trip(self, client: AsyncClient, make_vendor, auth_headers, sign_payment):
        vendor = await make_vendor(first_task_assigned_at=utc_now())
        headers = auth_headers(vendor)

        order = await client.post("/api/v1/vendor/wallet/deposit/create-order", json={"amount": 2000}, headers=headers)
        order_id = order.json()["order_id"]
        verified = await client.post(
            "/api/v1/vendor/wallet/deposit/verify",
            json={
                "razorpay_order_id": order_id,
                "razorpay_payment_id": "pay_dep",
                "razorpay_signature": sign_payment(order_id, "pay_dep"),
            },
            headers=headers,
        )
        overview = (await client.get("/api/v1/vendor/wallet", headers=headers)).json()
        ledger = (await client.get("/api/v1/vendor/wallet/transactions?type=deposit", headers=headers)).json()

        assert order.json()["amount_paise"] == 200000
        assert verified.status_code == 200
        assert verified.json()["status"] == "completed"
        assert overview["wallet"]["current_balance"] == 2000.0
        assert overview["can_accept_tasks"] is True
        assert ledger["total"] == 1

    async def test_non_positive_amount(self, client: AsyncClient, make_vendor, auth_headers):
        response = await client.post(
            "/api/v1/vendor/wallet/deposit/create-order", json={"amount": 0}, headers=auth_headers(await make_vendor())
        )
        assert response.status_code == 422

    async def test_forged_signature(self, client: AsyncClient, make_vendor, auth_headers):
        vendor = await make_vendor()
        headers = auth_headers(vendor)
        order_id = (
            await client.post("/api/v1/vendor/wallet/deposit/create-order", json={"amount": 500}, headers=headers)
        ).json()["order_id"]

        response = await client.post(
            "/api/v1/vendor/wallet/deposit/verify",
            json={"razorpay_order_id": order_id, "razorpay_payment_id": "pay_x", "razorpay_signature": "forged"},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "PAYMENT_VERIFICATION_FAILED"


class TestWithdrawals:
    async def test_request_and_list(self, client: AsyncClient, make_vendor, auth_headers):
        vendor = await make_vendor(balance=800.0)
        headers = auth_headers(vendor)

        created = await client.post(
            "/api/v1/vendor/wallet/withdrawals", json={"amount": 500, "bank_details": BANK}, headers=headers
        )
        pending = await client.get("/api/v1/vendor/wallet/withdrawals?status=pending", headers=headers)

        assert created.status_code == 201
        assert created.json()["status"] == "pending"
        assert created.json()["bank_details"]["ifsc_code"] == "HDFC0001234"
        assert pending.json()["total"] == 1

    async def test_more_than_balance(self, client: AsyncClient, make_vendor, auth_headers):
        vendor = await make_vendor(balance=100.0)

        response = await client.post(
            "/api/v1/vendor/wallet/withdrawals", json={"amount": 500, "bank_details": BANK}, headers=auth_headers(vendor)
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INSUFFICIENT_WALLET_BALANCE"

    async def test_bad_ifsc(self, client: AsyncClient, make_vendor, auth_headers):
        vendor = await make_vendor(balance=1000.0)

        response = await client.post(
            "/api/v1/vendor/wallet/withdrawals",
            json={"amount": 100, "bank_details": {**BANK, "ifsc_code": "HDFC1234"}},
            headers=auth_headers(vendor),
        )

        assert response.status_code == 422


async def test_monthly_earnings(client: AsyncClient, repos, make_vendor, auth_headers):
    vendor = await make_vendor()
    await WalletService(repos).add_earning(vendor.vendor_id, case_id="FIX00000001", billing_amount=250.0)
    await repos.commit()

    response = await client.get("/api/v1/vendor/wallet/earnings/monthly", headers=auth_headers(vendor))

    now = utc_now()
    assert response.json() == [{"year": now.year, "month": now.month, "amount": 250.0}]
