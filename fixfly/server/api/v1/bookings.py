"""
Booking Endpoints.

Customers create, pay, cancel and reschedule service bookings; assigned
vendors accept, decline and complete them. Admin operations live in the
admin router.
"""

from typing import Optional

from fastapi import APIRouter, Query, status

from fixfly.core.models.domain.enums import BookingStatus
from fixfly.core.models.io.bookings import (
    BookingCancel,
    BookingCreate,
    BookingPaymentVerify,
    BookingRead,
    BookingReschedule,
    BookingWithOrder,
    CompletionRequest,
    VendorDecline,
)
from fixfly.core.models.io.common import Page
from fixfly.core.models.io.payments import RazorpayOrderRead
from fixfly.server.services.deps import (
    BookingServiceDep,
    CurrentUserDep,
    CurrentVendorDep,
    OptionalUserDep,
    PaymentServiceDep,
)

router = APIRouter()


@router.post(
    "",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Booking",
    description="Create a booking paid later (cash or post-service payment). Total is subtotal plus the service fee.",
    response_description="The new booking.",
)
async def create_booking(data: BookingCreate, user: OptionalUserDep, bookings: BookingServiceDep) -> BookingRead:
    """
    Create a booking.

    - **customer**: Contact details and service address
    - **services**: Service lines with their prices
    - **preferred_date**, **preferred_time_slot**: When the customer wants the visit
    """
    booking = await bookings.create(user, data)
    return BookingRead.model_validate(booking)


@router.post(
    "/with-payment",
    response_model=BookingWithOrder,
    status_code=status.HTTP_201_CREATED,
    summary="Create Booking With Payment",
    description="Create a booking and a Razorpay order for its total.",
    response_description="The booking and the order to open checkout with.",
    responses={502: {"description": "Payment gateway unavailable"}},
)
async def create_booking_with_payment(
    data: BookingCreate, user: OptionalUserDep, bookings: BookingServiceDep
) -> BookingWithOrder:
    booking, order = await bookings.create_with_payment(user, data)
    return BookingWithOrder(booking=BookingRead.model_validate(booking), order=order)


@router.post(
    "/verify-payment",
    response_model=BookingRead,
    summary="Verify Booking Payment",
    description="Verify the Razorpay checkout signature and mark the booking paid. Safe to repeat.",
    responses={400: {"description": "Order mismatch or invalid signature"}},
)
async def verify_booking_payment(
    data: BookingPaymentVerify, user: OptionalUserDep, payments: PaymentServiceDep
) -> BookingRead:
    booking = await payments.verify_booking_payment(data, user)
    return BookingRead.model_validate(booking)


@router.get("", response_model=Page[BookingRead], summary="My Bookings")
async def list_my_bookings(
    user: CurrentUserDep,
    bookings: BookingServiceDep,
    status: Optional[BookingStatus] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[BookingRead]:
    items, total = await bookings.list_for_user(user, status.value if status else None, limit, offset)
    return Page[BookingRead](
        items=[BookingRead.model_validate(b) for b in items], total=total, limit=limit, offset=offset
    )


@router.get("/vendor/me", response_model=Page[BookingRead], summary="Bookings Assigned To Me")
async def list_vendor_bookings(
    vendor: CurrentVendorDep,
    bookings: BookingServiceDep,
    status: Optional[BookingStatus] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[BookingRead]:
    items, total = await bookings.list_for_vendor(vendor, status.value if status else None, limit, offset)
    return Page[BookingRead](
        items=[BookingRead.model_validate(b) for b in items], total=total, limit=limit, offset=offset
    )


@router.get(
    "/{booking_id}",
    response_model=BookingRead,
    summary="Get Booking",
    responses={403: {"description": "Not the booking owner"}, 404: {"description": "Booking not found"}},
)
async def get_booking(booking_id: int, user: CurrentUserDep, bookings: BookingServiceDep) -> BookingRead:
    return BookingRead.model_validate(await bookings.get_for_user(user, booking_id))


@router.patch(
    "/{booking_id}/cancel",
    response_model=BookingRead,
    summary="Cancel Booking",
    description="Cancel a booking that is not in progress, completed or already cancelled.",
)
async def cancel_booking(
    booking_id: int, data: BookingCancel, user: CurrentUserDep, bookings: BookingServiceDep
) -> BookingRead:
    return BookingRead.model_validate(await bookings.cancel(user, booking_id, data))


@router.patch("/{booking_id}/reschedule", response_model=BookingRead, summary="Reschedule Booking")
async def reschedule_booking(
    booking_id: int, data: BookingReschedule, user: CurrentUserDep, bookings: BookingServiceDep
) -> BookingRead:
    return BookingRead.model_validate(await bookings.reschedule(user, booking_id, data))


@router.post(
    "/{booking_id}/completion-payment/create-order",
    response_model=RazorpayOrderRead,
    summary="Pay Final Bill",
    description="Open a Razorpay order for the final bill of a job the vendor completed with online payment.",
    responses={400: {"description": "Booking is not awaiting an online payment"}},
)
async def create_completion_order(
    booking_id: int, user: CurrentUserDep, bookings: BookingServiceDep
) -> RazorpayOrderRead:
    _, order = await bookings.create_completion_order(user, booking_id)
    return order


@router.patch(
    "/{booking_id}/accept",
    response_model=BookingRead,
    summary="Accept Assignment",
    description="Accept an assigned booking. Requires the mandatory deposit once the first task was assigned.",
    responses={403: {"description": "Not assigned to this vendor, or deposit missing"}},
)
async def accept_booking(booking_id: int, vendor: CurrentVendorDep, bookings: BookingServiceDep) -> BookingRead:
    return BookingRead.model_validate(await bookings.accept(vendor, booking_id))


@router.patch(
    "/{booking_id}/decline",
    response_model=BookingRead,
    summary="Decline Assignment",
    description="Decline an assigned booking. A rejection penalty is charged to the wallet.",
    responses={400: {"description": "Already answered or insufficient wallet balance"}},
)
async def decline_booking(
    booking_id: int, vendor: CurrentVendorDep, bookings: BookingServiceDep, data: Optional[VendorDecline] = None
) -> BookingRead:
    return BookingRead.model_validate(await bookings.decline(vendor, booking_id, data or VendorDecline()))


@router.patch(
    "/{booking_id}/complete",
    response_model=BookingRead,
    summary="Complete Booking",
    description="Submit the final bill. Cash jobs settle immediately; online jobs wait for the customer's payment.",
    responses={400: {"description": "Booking not in progress or insufficient wallet balance"}},
)
async def complete_booking(
    booking_id: int, data: CompletionRequest, vendor: CurrentVendorDep, bookings: BookingServiceDep
) -> BookingRead:
    """
    Complete a booking.

    - **billing_amount**: Bill excluding GST
    - **spare_parts**: Parts fitted, amounts may be display strings like "₹1,200"
    - **travelling_amount**: Travel charge
    - **payment_method**: `online` or `cash`
    - **include_gst**, **gst_amount**: GST handling
    """
    return BookingRead.model_validate(await bookings.complete(vendor, booking_id, data))
