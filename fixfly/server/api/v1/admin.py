"""
Admin Endpoints.

Back-office operations: admin accounts, customer and vendor moderation,
booking dispatch, support tickets, review moderation, AMC plans, vendor wallets
and withdrawals, and the auto-reject service. Every route except login is
guarded by an admin permission; super admins hold all of them.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query, status

from fixfly.core.models.domain.enums import (
    BookingPriority,
    BookingStatus,
    ReviewStatus,
    SupportType,
    TicketPriority,
    TicketStatus,
    WalletTransactionType,
    WithdrawalStatus,
)
from fixfly.core.models.io.admins import AdminAuthResponse, AdminCreate, AdminLogin, AdminRead, DashboardStats
from fixfly.core.models.io.amc import AMCPlanCreate, AMCPlanRead, AMCPlanUpdate
from fixfly.core.models.io.auth import UserRead
from fixfly.core.models.io.bookings import (
    AssignVendorRequest,
    BookingPriorityUpdate,
    BookingRead,
    BookingStats,
    BookingStatusUpdate,
    RefundRequest,
)
from fixfly.core.models.io.common import MessageResponse, Page
from fixfly.core.models.io.reviews import ReviewRead, ReviewReply, ReviewStatusUpdate
from fixfly.core.models.io.support_tickets import (
    TicketAssign,
    TicketEscalate,
    TicketRead,
    TicketResolve,
    TicketResponseCreate,
    TicketStats,
    TicketUpdate,
)
from fixfly.core.models.io.vendors import VendorRead
from fixfly.core.models.io.wallets import (
    ManualAdjustment,
    WalletRead,
    WalletTransactionRead,
    WithdrawalDecision,
    WithdrawalRead,
)
from fixfly.server.services.deps import (
    AdminServiceDep,
    AMCManagerDep,
    AMCServiceDep,
    AnalyticsDep,
    AutoRejectDep,
    BookingManagerDep,
    BookingServiceDep,
    CurrentAdminDep,
    PaymentManagerDep,
    ReviewServiceDep,
    ServiceManagerDep,
    SuperAdminDep,
    SupportManagerDep,
    SystemSettingsDep,
    TicketServiceDep,
    UserManagerDep,
    VendorManagerDep,
    VendorServiceDep,
    WalletServiceDep,
)
from fixfly.server.services.reviews import to_read as review_read

router = APIRouter()


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@router.post(
    "/login",
    response_model=AdminAuthResponse,
    summary="Admin Login",
    description="Log in with email and password.",
    responses={401: {"description": "Invalid credentials or account deactivated"}},
)
async def login(data: AdminLogin, admins: AdminServiceDep) -> AdminAuthResponse:
    return await admins.login(data)


@router.get("/me", response_model=AdminRead, summary="Current Admin")
async def me(admin: CurrentAdminDep) -> AdminRead:
    return AdminRead.model_validate(admin)


@router.post(
    "/admins",
    response_model=AdminRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Admin",
    description="Create another admin account. Super admins only.",
    responses={403: {"description": "Not a super admin"}},
)
async def create_admin(data: AdminCreate, _: SuperAdminDep, admins: AdminServiceDep) -> AdminRead:
    return AdminRead.model_validate(await admins.create_admin(data))


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Dashboard Stats",
    description="Headline counts for users, vendors, bookings, tickets and AMC, plus collected revenue.",
)
async def dashboard_stats(_: AnalyticsDep, admins: AdminServiceDep) -> DashboardStats:
    return await admins.dashboard_stats()


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------


@router.get("/users", response_model=Page[UserRead], summary="List Customers")
async def list_users(
    _: UserManagerDep,
    admins: AdminServiceDep,
    search: Optional[str] = None,
    is_blocked: Optional[bool] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[UserRead]:
    items, total = await admins.search_users(search, is_blocked, limit, offset)
    return Page[UserRead](items=[UserRead.model_validate(u) for u in items], total=total, limit=limit, offset=offset)


@router.patch("/users/{user_id}/block", response_model=UserRead, summary="Block Customer")
async def block_user(user_id: int, _: UserManagerDep, admins: AdminServiceDep) -> UserRead:
    return UserRead.model_validate(await admins.set_user_blocked(user_id, True))


@router.patch("/users/{user_id}/unblock", response_model=UserRead, summary="Unblock Customer")
async def unblock_user(user_id: int, _: UserManagerDep, admins: AdminServiceDep) -> UserRead:
    return UserRead.model_validate(await admins.set_user_blocked(user_id, False))


# ---------------------------------------------------------------------------
# Vendors
# ---------------------------------------------------------------------------


@router.get("/vendors", response_model=Page[VendorRead], summary="List Vendors")
async def list_vendors(
    _: VendorManagerDep,
    vendors: VendorServiceDep,
    search: Optional[str] = None,
    is_approved: Optional[bool] = None,
    is_blocked: Optional[bool] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[VendorRead]:
    items, total = await vendors.search(search, is_approved, is_blocked, limit, offset)
    return Page[VendorRead](
        items=[VendorRead.model_validate(v) for v in items], total=total, limit=limit, offset=offset
    )


@router.get("/vendors/{vendor_id}", response_model=VendorRead, summary="Get Vendor")
async def get_vendor(vendor_id: str, _: VendorManagerDep, vendors: VendorServiceDep) -> VendorRead:
    return VendorRead.model_validate(await vendors.get(vendor_id))


@router.patch("/vendors/{vendor_id}/approve", response_model=VendorRead, summary="Approve Vendor")
async def approve_vendor(vendor_id: str, _: VendorManagerDep, vendors: VendorServiceDep) -> VendorRead:
    return VendorRead.model_validate(await vendors.set_approved(vendor_id, True))


@router.patch("/vendors/{vendor_id}/revoke-approval", response_model=VendorRead, summary="Revoke Vendor Approval")
async def revoke_vendor(vendor_id: str, _: VendorManagerDep, vendors: VendorServiceDep) -> VendorRead:
    return VendorRead.model_validate(await vendors.set_approved(vendor_id, False))


@router.patch("/vendors/{vendor_id}/block", response_model=VendorRead, summary="Block Vendor")
async def block_vendor(vendor_id: str, _: VendorManagerDep, vendors: VendorServiceDep) -> VendorRead:
    return VendorRead.model_validate(await vendors.set_blocked(vendor_id, True))


@router.patch("/vendors/{vendor_id}/unblock", response_model=VendorRead, summary="Unblock Vendor")
async def unblock_vendor(vendor_id: str, _: VendorManagerDep, vendors: VendorServiceDep) -> VendorRead:
    return VendorRead.model_validate(await vendors.set_blocked(vendor_id, False))


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


@router.get("/bookings", response_model=Page[BookingRead], summary="List Bookings")
async def list_bookings(
    _: BookingManagerDep,
    bookings: BookingServiceDep,
    status: Optional[BookingStatus] = None,
    vendor_id: Optional[str] = None,
    priority: Optional[BookingPriority] = None,
    search: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[BookingRead]:
    """
    Search bookings.

    - **status**: Booking status filter
    - **vendor_id**: Three digit vendor id
    - **search**: Substring of the booking reference
    """
    items, total = await bookings.search(
        status.value if status else None,
        vendor_id,
        priority.value if priority else None,
        search,
        limit,
        offset,
    )
    return Page[BookingRead](
        items=[BookingRead.model_validate(b) for b in items], total=total, limit=limit, offset=offset
    )


@router.get("/bookings/stats", response_model=BookingStats, summary="Booking Stats")
async def booking_stats(_: BookingManagerDep, bookings: BookingServiceDep) -> BookingStats:
    return await bookings.stats()


@router.get("/bookings/{booking_id}", response_model=BookingRead, summary="Get Booking")
async def get_booking(booking_id: int, _: BookingManagerDep, bookings: BookingServiceDep) -> BookingRead:
    return BookingRead.model_validate(await bookings.get(booking_id))


@router.patch(
    "/bookings/{booking_id}/assign",
    response_model=BookingRead,
    summary="Assign Vendor",
    description="Assign an approved vendor. The vendor has a limited time to respond before the assignment is auto-rejected.",
    responses={400: {"description": "Vendor not available or busy in the requested slot"}},
)
async def assign_vendor(
    booking_id: int, data: AssignVendorRequest, _: BookingManagerDep, bookings: BookingServiceDep
) -> BookingRead:
    return BookingRead.model_validate(await bookings.assign_vendor(booking_id, data))


@router.patch("/bookings/{booking_id}/status", response_model=BookingRead, summary="Set Booking Status")
async def set_booking_status(
    booking_id: int, data: BookingStatusUpdate, _: BookingManagerDep, bookings: BookingServiceDep
) -> BookingRead:
    return BookingRead.model_validate(await bookings.set_status(booking_id, data))


@router.patch("/bookings/{booking_id}/priority", response_model=BookingRead, summary="Set Booking Priority")
async def set_booking_priority(
    booking_id: int, data: BookingPriorityUpdate, _: BookingManagerDep, bookings: BookingServiceDep
) -> BookingRead:
    return BookingRead.model_validate(await bookings.set_priority(booking_id, data.priority.value))


@router.delete("/bookings/{booking_id}", response_model=MessageResponse, summary="Delete Booking")
async def delete_booking(booking_id: int, _: BookingManagerDep, bookings: BookingServiceDep) -> MessageResponse:
    await bookings.delete(booking_id)
    return MessageResponse(message="Booking deleted successfully")


@router.post(
    "/bookings/{booking_id}/refund",
    response_model=BookingRead,
    summary="Refund Booking",
    description="Refund the captured online payment of a booking, fully or partially.",
    responses={400: {"description": "No captured payment"}, 502: {"description": "Gateway refund failed"}},
)
async def refund_booking(
    booking_id: int, data: RefundRequest, _: PaymentManagerDep, bookings: BookingServiceDep
) -> BookingRead:
    return BookingRead.model_validate(await bookings.refund(booking_id, data))


# ---------------------------------------------------------------------------
# Auto-reject service
# ---------------------------------------------------------------------------


@router.get("/auto-reject/status", summary="Auto-reject Status")
async def auto_reject_status(_: BookingManagerDep, service: AutoRejectDep) -> Dict[str, Any]:
    return service.get_status()


@router.post(
    "/auto-reject/trigger",
    summary="Run Auto-reject Now",
    description="Run one auto-reject sweep immediately and report how many assignments were rejected.",
)
async def auto_reject_trigger(_: SystemSettingsDep, service: AutoRejectDep) -> Dict[str, Any]:
    processed = await service.trigger()
    return {"success": True, "processed": processed, "status": service.get_status()}


# ---------------------------------------------------------------------------
# Support tickets
# ---------------------------------------------------------------------------


def _ticket_page(items, total: int, limit: int, offset: int) -> Page[TicketRead]:
    return Page[TicketRead](items=[TicketRead.model_validate(t) for t in items], total=total, limit=limit, offset=offset)


@router.get("/support-tickets", response_model=Page[TicketRead], summary="List Tickets")
async def list_tickets(
    _: SupportManagerDep,
    tickets: TicketServiceDep,
    status: Optional[TicketStatus] = None,
    priority: Optional[TicketPriority] = None,
    support_type: Optional[SupportType] = None,
    search: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[TicketRead]:
    items, total = await tickets.search(
        status.value if status else None,
        priority.value if priority else None,
        support_type.value if support_type else None,
        search,
        limit,
        offset,
    )
    return _ticket_page(items, total, limit, offset)


@router.get("/support-tickets/stats", response_model=TicketStats, summary="Ticket Stats")
async def ticket_stats(_: SupportManagerDep, tickets: TicketServiceDep) -> TicketStats:
    return await tickets.stats()


@router.get("/support-tickets/{ticket_id}", response_model=TicketRead, summary="Get Ticket")
async def get_ticket(ticket_id: str, _: SupportManagerDep, tickets: TicketServiceDep) -> TicketRead:
    return TicketRead.model_validate(await tickets.get(ticket_id))


@router.post("/support-tickets/{ticket_id}/responses", response_model=TicketRead, summary="Reply To Ticket")
async def respond_to_ticket(
    ticket_id: str, data: TicketResponseCreate, admin: SupportManagerDep, tickets: TicketServiceDep
) -> TicketRead:
    return TicketRead.model_validate(await tickets.add_admin_response(admin.name, ticket_id, data.message))


@router.patch("/support-tickets/{ticket_id}", response_model=TicketRead, summary="Update Ticket")
async def update_ticket(
    ticket_id: str, data: TicketUpdate, _: SupportManagerDep, tickets: TicketServiceDep
) -> TicketRead:
    return TicketRead.model_validate(await tickets.update(ticket_id, data))


@router.patch("/support-tickets/{ticket_id}/resolve", response_model=TicketRead, summary="Resolve Ticket")
async def resolve_ticket(
    ticket_id: str, data: TicketResolve, _: SupportManagerDep, tickets: TicketServiceDep
) -> TicketRead:
    return TicketRead.model_validate(await tickets.resolve(ticket_id, data.resolution))


@router.patch("/support-tickets/{ticket_id}/escalate", response_model=TicketRead, summary="Escalate Ticket")
async def escalate_ticket(
    ticket_id: str, _: SupportManagerDep, tickets: TicketServiceDep, data: Optional[TicketEscalate] = None
) -> TicketRead:
    return TicketRead.model_validate(await tickets.escalate(ticket_id, data.reason if data else None))


@router.patch(
    "/support-tickets/{ticket_id}/assign",
    response_model=TicketRead,
    summary="Assign Ticket Vendor",
    responses={400: {"description": "Vendor not available or busy in the requested slot"}},
)
async def assign_ticket(
    ticket_id: str, data: TicketAssign, _: SupportManagerDep, tickets: TicketServiceDep
) -> TicketRead:
    return TicketRead.model_validate(await tickets.assign_vendor(ticket_id, data))


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


@router.get("/reviews", response_model=Page[ReviewRead], summary="List All Reviews")
async def list_reviews(
    _: ServiceManagerDep,
    reviews: ReviewServiceDep,
    status: Optional[ReviewStatus] = None,
    category: Optional[str] = None,
    rating: Optional[int] = Query(None, ge=1, le=5),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[ReviewRead]:
    items, total = await reviews.search(status, category, rating, limit, offset)
    return Page[ReviewRead](items=[review_read(r) for r in items], total=total, limit=limit, offset=offset)


@router.patch("/reviews/{review_id}/status", response_model=ReviewRead, summary="Moderate Review")
async def set_review_status(
    review_id: int, data: ReviewStatusUpdate, _: ServiceManagerDep, reviews: ReviewServiceDep
) -> ReviewRead:
    return review_read(await reviews.set_status(review_id, data.status))


@router.post("/reviews/{review_id}/response", response_model=ReviewRead, summary="Reply To Review")
async def respond_to_review(
    review_id: int, data: ReviewReply, admin: ServiceManagerDep, reviews: ReviewServiceDep
) -> ReviewRead:
    return review_read(await reviews.respond(review_id, admin, data.message))


@router.patch(
    "/reviews/{review_id}/featured",
    response_model=ReviewRead,
    summary="Toggle Featured Review",
    responses={400: {"description": "Only approved reviews can be featured"}},
)
async def toggle_featured_review(review_id: int, _: ServiceManagerDep, reviews: ReviewServiceDep) -> ReviewRead:
    return review_read(await reviews.toggle_featured(review_id))


# ---------------------------------------------------------------------------
# AMC plans
# ---------------------------------------------------------------------------


@router.get("/amc/plans", response_model=List[AMCPlanRead], summary="List All AMC Plans")
async def list_plans(_: AMCManagerDep, amc: AMCServiceDep) -> List[AMCPlanRead]:
    return [AMCPlanRead.model_validate(plan) for plan in await amc.list_all_plans()]


@router.post(
    "/amc/plans",
    response_model=AMCPlanRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create AMC Plan",
    responses={400: {"description": "A plan with this name exists"}},
)
async def create_plan(data: AMCPlanCreate, _: AMCManagerDep, amc: AMCServiceDep) -> AMCPlanRead:
    return AMCPlanRead.model_validate(await amc.create_plan(data))


@router.put("/amc/plans/{plan_id}", response_model=AMCPlanRead, summary="Update AMC Plan")
async def update_plan(plan_id: int, data: AMCPlanUpdate, _: AMCManagerDep, amc: AMCServiceDep) -> AMCPlanRead:
    return AMCPlanRead.model_validate(await amc.update_plan(plan_id, data))


@router.delete("/amc/plans/{plan_id}", response_model=MessageResponse, summary="Delete AMC Plan")
async def delete_plan(plan_id: int, _: AMCManagerDep, amc: AMCServiceDep) -> MessageResponse:
    await amc.delete_plan(plan_id)
    return MessageResponse(message="AMC plan deleted successfully")


# ---------------------------------------------------------------------------
# Wallets and withdrawals
# ---------------------------------------------------------------------------


@router.get("/wallets/{vendor_id}", response_model=WalletRead, summary="Get Vendor Wallet")
async def get_wallet(vendor_id: str, _: PaymentManagerDep, wallet: WalletServiceDep) -> WalletRead:
    return WalletRead.model_validate(await wallet.get_wallet(vendor_id))


@router.get(
    "/wallets/{vendor_id}/transactions", response_model=Page[WalletTransactionRead], summary="Vendor Wallet Ledger"
)
async def wallet_transactions(
    vendor_id: str,
    _: PaymentManagerDep,
    wallet: WalletServiceDep,
    type: Optional[WalletTransactionType] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[WalletTransactionRead]:
    items, total = await wallet.list_transactions(vendor_id, type.value if type else None, limit, offset)
    return Page[WalletTransactionRead](
        items=[WalletTransactionRead.model_validate(t) for t in items], total=total, limit=limit, offset=offset
    )


@router.post(
    "/wallets/{vendor_id}/adjust",
    response_model=WalletTransactionRead,
    summary="Adjust Vendor Wallet",
    description="Credit (positive amount) or debit (negative amount) a vendor wallet. Debits cannot overdraw it.",
    responses={400: {"description": "Adjustment would make the balance negative"}},
)
async def adjust_wallet(
    vendor_id: str, data: ManualAdjustment, admin: PaymentManagerDep, wallet: WalletServiceDep
) -> WalletTransactionRead:
    return WalletTransactionRead.model_validate(await wallet.adjust(vendor_id, data, admin_id=admin.id))


@router.get("/withdrawals", response_model=Page[WithdrawalRead], summary="List Withdrawal Requests")
async def list_withdrawals(
    _: PaymentManagerDep,
    wallet: WalletServiceDep,
    vendor_id: Optional[str] = None,
    status: Optional[WithdrawalStatus] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[WithdrawalRead]:
    items, total = await wallet.list_withdrawals(vendor_id, status.value if status else None, limit, offset)
    return Page[WithdrawalRead](
        items=[WithdrawalRead.model_validate(w) for w in items], total=total, limit=limit, offset=offset
    )


@router.patch(
    "/withdrawals/{withdrawal_id}/approve",
    response_model=WithdrawalRead,
    summary="Approve Withdrawal",
    description="Approve a pending request and debit the vendor wallet.",
)
async def approve_withdrawal(
    withdrawal_id: int, admin: PaymentManagerDep, wallet: WalletServiceDep, data: Optional[WithdrawalDecision] = None
) -> WithdrawalRead:
    request = await wallet.approve_withdrawal(
        withdrawal_id, admin_id=admin.id, admin_notes=data.admin_notes if data else ""
    )
    return WithdrawalRead.model_validate(request)


@router.patch("/withdrawals/{withdrawal_id}/decline", response_model=WithdrawalRead, summary="Decline Withdrawal")
async def decline_withdrawal(
    withdrawal_id: int, admin: PaymentManagerDep, wallet: WalletServiceDep, data: Optional[WithdrawalDecision] = None
) -> WithdrawalRead:
    request = await wallet.decline_withdrawal(
        withdrawal_id, admin_id=admin.id, admin_notes=data.admin_notes if data else ""
    )
    return WithdrawalRead.model_validate(request)
