"""
Vendor Wallet Endpoints.

Balances, ledger history, deposits through Razorpay and withdrawal requests
for the authenticated vendor.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, status

from fixfly.core.models.domain.enums import WalletTransactionType, WithdrawalStatus
from fixfly.core.models.io.common import Page
from fixfly.core.models.io.payments import RazorpayOrderRead
from fixfly.core.models.io.wallets import (
    DepositOrderRequest,
    DepositVerifyRequest,
    MonthlyEarning,
    WalletOverview,
    WalletTransactionRead,
    WithdrawalCreate,
    WithdrawalRead,
)
from fixfly.server.services.deps import CurrentVendorDep, PaymentServiceDep, WalletServiceDep

router = APIRouter()


@router.get(
    "",
    response_model=WalletOverview,
    summary="Wallet Overview",
    description="Balances and totals of the vendor's wallet and whether new tasks can be accepted.",
)
async def get_wallet(vendor: CurrentVendorDep, wallet: WalletServiceDep) -> WalletOverview:
    return await wallet.overview(vendor)


@router.get("/transactions", response_model=Page[WalletTransactionRead], summary="Wallet Transactions")
async def list_transactions(
    vendor: CurrentVendorDep,
    wallet: WalletServiceDep,
    type: Optional[WalletTransactionType] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[WalletTransactionRead]:
    items, total = await wallet.list_transactions(vendor.vendor_id, type.value if type else None, limit, offset)
    return Page[WalletTransactionRead](
        items=[WalletTransactionRead.model_validate(t) for t in items], total=total, limit=limit, offset=offset
    )


@router.get("/earnings/monthly", response_model=List[MonthlyEarning], summary="Monthly Earnings")
async def monthly_earnings(
    vendor: CurrentVendorDep, wallet: WalletServiceDep, months: int = Query(12, ge=1, le=36)
) -> List[MonthlyEarning]:
    return await wallet.monthly_summary(vendor.vendor_id, months)


@router.post(
    "/deposit/create-order",
    response_model=RazorpayOrderRead,
    summary="Create Deposit Order",
    description="Open a Razorpay order to top up the wallet.",
    responses={502: {"description": "Payment gateway unavailable"}},
)
async def create_deposit_order(
    data: DepositOrderRequest, vendor: CurrentVendorDep, payments: PaymentServiceDep
) -> RazorpayOrderRead:
    return await payments.create_deposit_order(vendor, data.amount)


@router.post(
    "/deposit/verify",
    response_model=WalletTransactionRead,
    summary="Verify Deposit",
    description="Verify the deposit payment and credit the wallet. A deposit of ₹2000 or more unlocks task acceptance.",
    responses={400: {"description": "Invalid signature"}, 404: {"description": "Deposit order not found"}},
)
async def verify_deposit(
    data: DepositVerifyRequest, vendor: CurrentVendorDep, payments: PaymentServiceDep
) -> WalletTransactionRead:
    return WalletTransactionRead.model_validate(await payments.verify_deposit(vendor, data))


@router.post(
    "/withdrawals",
    response_model=WithdrawalRead,
    status_code=status.HTTP_201_CREATED,
    summary="Request Withdrawal",
    description="Ask for a payout. The amount must not exceed the balance above the security deposit.",
    responses={400: {"description": "Insufficient balance"}},
)
async def request_withdrawal(data: WithdrawalCreate, vendor: CurrentVendorDep, wallet: WalletServiceDep) -> WithdrawalRead:
    return WithdrawalRead.model_validate(await wallet.request_withdrawal(vendor.vendor_id, data))


@router.get("/withdrawals", response_model=Page[WithdrawalRead], summary="My Withdrawals")
async def list_withdrawals(
    vendor: CurrentVendorDep,
    wallet: WalletServiceDep,
    status: Optional[WithdrawalStatus] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[WithdrawalRead]:
    items, total = await wallet.list_withdrawals(vendor.vendor_id, status.value if status else None, limit, offset)
    return Page[WithdrawalRead](
        items=[WithdrawalRead.model_validate(w) for w in items], total=total, limit=limit, offset=offset
    )
