"""
Support Ticket Endpoints.

Customers raise and follow up tickets; vendors assigned to a ticket accept,
decline, cancel and complete the visit. Admin ticket management lives in the
admin router.
"""

from typing import Optional

from fastapi import APIRouter, Query, status

from fixfly.core.models.domain.enums import TicketVendorStatus
from fixfly.core.models.io.bookings import CompletionRequest
from fixfly.core.models.io.common import Page
from fixfly.core.models.io.payments import RazorpayOrderRead
from fixfly.core.models.io.support_tickets import TicketCreate, TicketRead, TicketResponseCreate, TicketVendorNote
from fixfly.server.services.deps import CurrentUserDep, CurrentVendorDep, TicketServiceDep

router = APIRouter()


def _page(items, total: int, limit: int, offset: int) -> Page[TicketRead]:
    return Page[TicketRead](items=[TicketRead.model_validate(t) for t in items], total=total, limit=limit, offset=offset)


@router.post(
    "",
    response_model=TicketRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Ticket",
    description="Raise a support ticket. Ticket ids are sequential (TK000001, TK000002, ...).",
)
async def create_ticket(data: TicketCreate, user: CurrentUserDep, tickets: TicketServiceDep) -> TicketRead:
    """
    Create a support ticket.

    - **support_type**: service, product, amc or others
    - **case_id**: Optional booking reference the ticket is about
    - **subject**, **description**: What went wrong
    """
    return TicketRead.model_validate(await tickets.create(user, data))


@router.get("", response_model=Page[TicketRead], summary="My Tickets")
async def list_my_tickets(
    user: CurrentUserDep,
    tickets: TicketServiceDep,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[TicketRead]:
    items, total = await tickets.list_for_user(user, limit, offset)
    return _page(items, total, limit, offset)


@router.get("/vendor/me", response_model=Page[TicketRead], summary="Tickets Assigned To Me")
async def list_vendor_tickets(
    vendor: CurrentVendorDep,
    tickets: TicketServiceDep,
    vendor_status: Optional[TicketVendorStatus] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[TicketRead]:
    items, total = await tickets.list_for_vendor(
        vendor, vendor_status.value if vendor_status else None, limit, offset
    )
    return _page(items, total, limit, offset)


@router.get(
    "/{ticket_id}",
    response_model=TicketRead,
    summary="Get Ticket",
    responses={403: {"description": "Not the ticket owner"}, 404: {"description": "Ticket not found"}},
)
async def get_ticket(ticket_id: str, user: CurrentUserDep, tickets: TicketServiceDep) -> TicketRead:
    return TicketRead.model_validate(await tickets.get_for_user(user, ticket_id))


@router.post("/{ticket_id}/responses", response_model=TicketRead, summary="Reply To Ticket")
async def add_response(
    ticket_id: str, data: TicketResponseCreate, user: CurrentUserDep, tickets: TicketServiceDep
) -> TicketRead:
    return TicketRead.model_validate(await tickets.add_user_response(user, ticket_id, data.message))


@router.post(
    "/{ticket_id}/completion-payment/create-order",
    response_model=RazorpayOrderRead,
    summary="Pay Ticket Bill",
    description="Open a Razorpay order for the final bill of a ticket visit completed with online payment.",
)
async def create_completion_order(ticket_id: str, user: CurrentUserDep, tickets: TicketServiceDep) -> RazorpayOrderRead:
    _, order = await tickets.create_completion_order(user, ticket_id)
    return order


@router.patch("/{ticket_id}/vendor/accept", response_model=TicketRead, summary="Accept Ticket")
async def accept_ticket(ticket_id: str, vendor: CurrentVendorDep, tickets: TicketServiceDep) -> TicketRead:
    return TicketRead.model_validate(await tickets.accept(vendor, ticket_id))


@router.patch(
    "/{ticket_id}/vendor/decline",
    response_model=TicketRead,
    summary="Decline Ticket",
    description="Decline the assignment. A rejection penalty is charged when the wallet can cover it.",
)
async def decline_ticket(
    ticket_id: str, vendor: CurrentVendorDep, tickets: TicketServiceDep, data: Optional[TicketVendorNote] = None
) -> TicketRead:
    return TicketRead.model_validate(await tickets.decline(vendor, ticket_id, data.reason if data else None))


@router.patch("/{ticket_id}/vendor/cancel", response_model=TicketRead, summary="Cancel Ticket Visit")
async def cancel_ticket(
    ticket_id: str, vendor: CurrentVendorDep, tickets: TicketServiceDep, data: Optional[TicketVendorNote] = None
) -> TicketRead:
    return TicketRead.model_validate(await tickets.cancel(vendor, ticket_id, data.reason if data else None))


@router.patch(
    "/{ticket_id}/vendor/complete",
    response_model=TicketRead,
    summary="Complete Ticket",
    description="Submit the final bill. Cash visits resolve the ticket; online visits wait for payment.",
)
async def complete_ticket(
    ticket_id: str, data: CompletionRequest, vendor: CurrentVendorDep, tickets: TicketServiceDep
) -> TicketRead:
    return TicketRead.model_validate(await tickets.complete(vendor, ticket_id, data))
