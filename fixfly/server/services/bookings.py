"""
Booking lifecycle.

Customer side: create (optionally with a gateway order), cancel, reschedule.
Vendor side: accept, decline, complete. Admin side: search, assign,
status/priority overrides, delete and refund. Gateway payment settlement
lives in ``fixfly.server.services.payments`` and calls
``BookingService.apply_gateway_payment``.
"""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from fixfly.core.database import utc_now
from fixfly.core.database.entities.bookings import Booking
from fixfly.core.database.entities.users import User
from fixfly.core.database.entities.vendors import Vendor
from fixfly.core.database.repositories import SqlRepoBundle
from fixfly.core.logging_config import get_logger
from fixfly.core.models.domain.enums import (
    BookingStatus,
    CollectionStatus,
    LedgerPaymentMethod,
    NotificationPriority,
    NotificationType,
    PaymentMode,
    PaymentState,
    PenaltyType,
    VendorResponse,
)
from fixfly.core.models.io.bookings import (
    AssignVendorRequest,
    BookingCancel,
    BookingCreate,
    BookingReschedule,
    BookingStats,
    BookingStatusUpdate,
    CompletionRequest,
    RefundRequest,
    VendorDecline,
)
from fixfly.core.models.io.payments import RazorpayOrderRead
from fixfly.server.core.config import BookingConfig, settings
from fixfly.server.errors import (
    InsufficientBalanceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)

from .notifications import NotificationService
from .razorpay import RazorpayClient
from .wallet import WalletService

logger = get_logger(__name__)

NOT_CANCELLABLE = {BookingStatus.in_progress.value, BookingStatus.completed.value, BookingStatus.cancelled.value}
CLOSED = {BookingStatus.completed.value, BookingStatus.cancelled.value}


def new_booking_reference() -> str:
    return "FIX" + uuid.uuid4().hex[-8:].upper()


async def get_assignable_vendor(repos: SqlRepoBundle, vendor_id: str) -> Vendor:
    vendor = await repos.vendors.get_by_vendor_id(vendor_id)
    if vendor is None or not vendor.is_approved or vendor.is_blocked or not vendor.is_active:
        raise ValidationFailedError("Vendor not found or not approved", error_code="VENDOR_NOT_AVAILABLE")
    return vendor


async def ensure_vendor_available(
    repos: SqlRepoBundle,
    vendor_id: str,
    scheduled_date: Optional[date],
    scheduled_time: Optional[str],
    *,
    exclude_booking_id: Optional[int] = None,
    exclude_ticket_id: Optional[int] = None,
) -> None:
    """Reject a second open booking or ticket for the vendor in the same slot."""
    if scheduled_date is None or not scheduled_time:
        return
    booking = await repos.bookings.find_vendor_conflict(
        vendor_id, scheduled_date, scheduled_time, exclude_id=exclude_booking_id
    )
    ticket = await repos.support_tickets.find_vendor_conflict(
        vendor_id, scheduled_date, scheduled_time, exclude_id=exclude_ticket_id
    )
    conflict = booking.booking_reference if booking else (ticket.ticket_id if ticket else None)
    if conflict:
        raise ValidationFailedError(
            f"Vendor already has a task ({conflict}) scheduled on {scheduled_date.isoformat()} at {scheduled_time}",
            error_code="SCHEDULE_CONFLICT",
            details={"conflicting_case": conflict},
        )


async def mark_first_task_assignment(repos: SqlRepoBundle, vendor: Vendor) -> None:
    if vendor.first_task_assigned_at is None:
        vendor.first_task_assigned_at = utc_now()
        await repos.vendors.update(vendor)


def build_completion_data(vendor_id: str, data: CompletionRequest, wallet: WalletService) -> Dict[str, Any]:
    """Snapshot of the vendor's final bill, stored on the booking or ticket."""
    calculator = wallet.calculator
    spare_amount = calculator.spare_total(data.spare_parts)
    gst_amount = calculator.gst(data.billing_amount, data.include_gst, data.gst_amount)
    return {
        "billing_amount": data.billing_amount,
        "spare_parts": [part.model_dump() for part in data.spare_parts],
        "spare_amount": spare_amount,
        "travelling_amount": data.travelling_amount,
        "include_gst": data.include_gst,
        "gst_amount": gst_amount,
        "total_amount": round(data.billing_amount + gst_amount, 2),
        "payment_method": data.payment_method.value,
        "resolution_note": data.resolution_note,
        "completed_by": vendor_id,
        "completed_at": utc_now().isoformat(),
    }


class BookingService:
    def __init__(
        self,
        repos: SqlRepoBundle,
        razorpay: Optional[RazorpayClient] = None,
        config: Optional[BookingConfig] = None,
    ):
        self.repos = repos
        self.razorpay = razorpay
        self.config = config or settings.booking
        self.wallet = WalletService(repos)
        self.notifications = NotificationService(repos)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get(self, booking_id: int) -> Booking:
        booking = await self.repos.bookings.get_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    async def get_for_user(self, user: User, booking_id: int) -> Booking:
        booking = await self.get(booking_id)
        if booking.user_id != user.id:
            raise PermissionDeniedError("Not authorized to access this booking")
        return booking

    async def get_for_vendor(self, vendor: Vendor, booking_id: int) -> Booking:
        booking = await self.get(booking_id)
        if booking.vendor_id != vendor.vendor_id:
            raise PermissionDeniedError("This booking is not assigned to you")
        return booking

    async def list_for_user(
        self, user: User, status: Optional[str] = None, limit: int = 20, offset: int = 0
    ) -> Tuple[List[Booking], int]:
        return await self.repos.bookings.list_for_user(user.id, status=status, limit=limit, offset=offset)

    async def list_for_vendor(
        self, vendor: Vendor, status: Optional[str] = None, limit: int = 20, offset: int = 0
    ) -> Tuple[List[Booking], int]:
        return await self.repos.bookings.list_for_vendor(vendor.vendor_id, status=status, limit=limit, offset=offset)

    # ------------------------------------------------------------------
    # Customer operations
    # ------------------------------------------------------------------

    async def _create(self, user: Optional[User], data: BookingCreate) -> Booking:
        subtotal = round(sum(line.price for line in data.services), 2)
        booking = Booking(
            booking_reference=new_booking_reference(),
            user_id=user.id if user else None,
            customer=data.customer.model_dump(mode="json", exclude_none=True),
            services=[line.model_dump() for line in data.services],
            subtotal=subtotal,
            service_fee=self.config.service_fee,
            total_amount=round(subtotal + self.config.service_fee, 2),
            status=BookingStatus.waiting_for_engineer.value,
            priority=data.priority.value,
            payment_method=data.payment_method.value,
            payment_state=PaymentState.pending.value,
            preferred_date=data.preferred_date,
            preferred_time_slot=data.preferred_time_slot.value if data.preferred_time_slot else None,
            notes=data.notes,
        )
        return await self.repos.bookings.create(booking)

    async def create(self, user: Optional[User], data: BookingCreate) -> Booking:
        booking = await self._create(user, data)
        await self.repos.commit()
        logger.info(f"Created booking {booking.booking_reference} for ₹{booking.total_amount:.2f}")
        return booking

    async def create_with_payment(self, user: Optional[User], data: BookingCreate) -> Tuple[Booking, RazorpayOrderRead]:
        """Create a booking and a gateway order for its total. Nothing is saved if the order fails."""
        booking = await self._create(user, data)
        order = await self._razorpay().create_order(
            booking.total_amount,
            receipt=booking.booking_reference,
            notes={"booking_id": str(booking.id), "booking_reference": booking.booking_reference},
        )
        booking.razorpay_order_id = order.order_id
        booking = await self.repos.bookings.update(booking)
        await self.repos.commit()
        logger.info(f"Created booking {booking.booking_reference} with order {order.order_id}")
        return booking, order

    async def cancel(self, user: User, booking_id: int, data: BookingCancel) -> Booking:
        booking = await self.get_for_user(user, booking_id)
        if booking.status in NOT_CANCELLABLE:
            raise ValidationFailedError(f"Booking cannot be cancelled while {booking.status}")
        booking.status = BookingStatus.cancelled.value
        booking.cancellation_data = {
            "reason": data.reason,
            "cancelled_by": "user",
            "cancelled_at": utc_now().isoformat(),
        }
        booking.auto_reject_at = None
        booking = await self.repos.bookings.update(booking)
        await self.notifications.notify_vendor(
            booking.vendor_id,
            "Booking cancelled",
            f"Booking {booking.booking_reference} was cancelled by the customer.",
            notification_type=NotificationType.booking_update,
            data={"booking_id": booking.id},
        )
        await self.repos.commit()
        logger.info(f"Booking {booking.booking_reference} cancelled by customer")
        return booking

    async def reschedule(self, user: User, booking_id: int, data: BookingReschedule) -> Booking:
        booking = await self.get_for_user(user, booking_id)
        if booking.status in CLOSED:
            raise ValidationFailedError(f"Booking cannot be rescheduled while {booking.status}")
        if data.new_date < utc_now().date():
            raise ValidationFailedError("New date cannot be in the past")
        if booking.vendor_id:
            await ensure_vendor_available(
                self.repos, booking.vendor_id, data.new_date, data.new_time, exclude_booking_id=booking.id
            )
        original_date = booking.scheduled_date or booking.preferred_date
        booking.reschedule_data = {
            "original_date": original_date.isoformat() if original_date else None,
            "original_time": booking.scheduled_time or booking.preferred_time_slot,
            "new_date": data.new_date.isoformat(),
            "new_time": data.new_time,
            "reason": data.reason,
            "rescheduled_by": "user",
            "rescheduled_at": utc_now().isoformat(),
        }
        booking.scheduled_date = data.new_date
        booking.scheduled_time = data.new_time
        booking = await self.repos.bookings.update(booking)
        await self.notifications.notify_vendor(
            booking.vendor_id,
            "Booking rescheduled",
            f"Booking {booking.booking_reference} moved to {data.new_date.isoformat()} {data.new_time}.",
            notification_type=NotificationType.booking_update,
            data={"booking_id": booking.id},
        )
        await self.repos.commit()
        return booking

    async def create_completion_order(self, user: User, booking_id: int) -> Tuple[Booking, RazorpayOrderRead]:
        """Open a gateway order for the final bill of a job completed with online payment."""
        booking = await self.get_for_user(user, booking_id)
        if not self.awaits_online_payment(booking):
            raise ValidationFailedError("Booking has no pending online payment")
        if booking.final_payment_order_id:
            return booking, await self._razorpay().fetch_order(booking.final_payment_order_id)
        amount = float(booking.completion_data.get("total_amount") or booking.completion_data["billing_amount"])
        order = await self._razorpay().create_order(
            amount,
            receipt=f"{booking.booking_reference}_FINAL",
            notes={"booking_id": str(booking.id), "purpose": "final_payment"},
        )
        booking.final_payment_order_id = order.order_id
        booking = await self.repos.bookings.update(booking)
        await self.repos.commit()
        return booking, order

    # ------------------------------------------------------------------
    # Gateway settlement
    # ------------------------------------------------------------------

    @staticmethod
    def awaits_online_payment(booking: Booking) -> bool:
        return (
            booking.status == BookingStatus.in_progress.value
            and bool(booking.completion_data)
            and booking.payment_mode == PaymentMode.online.value
            and booking.payment_status == CollectionStatus.pending.value
        )

    async def apply_gateway_payment(
        self, booking: Booking, order_id: str, payment_id: str, signature: Optional[str] = None
    ) -> bool:
        """
        Mark a booking paid for a captured gateway payment.

        The final bill of a job completed with online payment is only settled
        by the order opened for it in ``create_completion_order``; any other
        order of the booking is its up-front payment. Returns ``False`` when
        the order was already applied. The caller commits.
        """
        now = utc_now()
        if order_id == booking.final_payment_order_id:
            if not self.awaits_online_payment(booking):
                return False
            completion = booking.completion_data or {}
            booking.status = BookingStatus.completed.value
            booking.payment_status = CollectionStatus.payment_done.value
            booking.payment_state = PaymentState.completed.value
            booking.razorpay_payment_id = payment_id
            booking.razorpay_signature = signature
            booking.paid_at = now
            booking.completed_at = now
            await self.repos.bookings.update(booking)
            await self.wallet.add_earning(
                booking.vendor_id,
                case_id=booking.booking_reference,
                billing_amount=float(completion.get("billing_amount", 0.0)),
                spare_amount=float(completion.get("spare_amount", 0.0)),
                travelling_amount=float(completion.get("travelling_amount", 0.0)),
                include_gst=bool(completion.get("include_gst", False)),
                gst_amount=float(completion.get("gst_amount", 0.0)),
                payment_method=LedgerPaymentMethod.online,
            )
            await self.notifications.notify_vendor(
                booking.vendor_id,
                "Payment received",
                f"Customer paid the final bill for {booking.booking_reference}.",
                notification_type=NotificationType.payment,
                data={"booking_id": booking.id},
            )
            logger.info(f"Final payment {payment_id} settled booking {booking.booking_reference}")
            return True

        if order_id != booking.razorpay_order_id or booking.payment_state == PaymentState.completed.value:
            return False

        booking.payment_state = PaymentState.completed.value
        booking.razorpay_payment_id = payment_id
        booking.razorpay_signature = signature
        booking.paid_at = now
        await self.repos.bookings.update(booking)
        await self.notifications.notify_user(
            booking.user_id,
            "Payment successful",
            f"Payment for booking {booking.booking_reference} was received.",
            notification_type=NotificationType.payment,
            data={"booking_id": booking.id},
        )
        logger.info(f"Payment {payment_id} settled booking {booking.booking_reference}")
        return True

    # ------------------------------------------------------------------
    # Vendor operations
    # ------------------------------------------------------------------

    async def accept(self, vendor: Vendor, booking_id: int) -> Booking:
        booking = await self.get_for_vendor(vendor, booking_id)
        await self.wallet.ensure_can_accept(vendor)
        if booking.vendor_response != VendorResponse.pending.value:
            raise ValidationFailedError(f"Booking already {booking.vendor_response or 'handled'}")
        booking.vendor_response = VendorResponse.accepted.value
        booking.vendor_responded_at = utc_now()
        booking.status = BookingStatus.in_progress.value
        booking.auto_reject_at = None
        booking = await self.repos.bookings.update(booking)
        await self.notifications.notify_user(
            booking.user_id,
            "Engineer on the way",
            f"{vendor.full_name} accepted your booking {booking.booking_reference}.",
            notification_type=NotificationType.booking_update,
            data={"booking_id": booking.id, "vendor_id": vendor.vendor_id},
        )
        await self.repos.commit()
        logger.info(f"Vendor {vendor.vendor_id} accepted booking {booking.booking_reference}")
        return booking

    async def decline(self, vendor: Vendor, booking_id: int, data: VendorDecline) -> Booking:
        """Decline an assignment, paying the rejection penalty."""
        booking = await self.get_for_vendor(vendor, booking_id)
        if booking.vendor_response in (VendorResponse.accepted.value, VendorResponse.declined.value):
            raise ValidationFailedError(f"Booking already {booking.vendor_response}")

        penalty = self.wallet.config.rejection_penalty
        wallet = await self.repos.wallets.get_by_vendor_id(vendor.vendor_id)
        balance = wallet.current_balance if wallet else 0.0
        if balance < penalty:
            raise InsufficientBalanceError(
                f"Insufficient wallet balance to decline. A penalty of ₹{penalty:.0f} applies, "
                f"current balance is ₹{balance:.2f}",
                details={"required": penalty, "available": balance},
            )
        await self.wallet.add_penalty(
            vendor.vendor_id,
            amount=penalty,
            penalty_type=PenaltyType.rejection,
            case_id=booking.booking_reference,
            description=f"Rejection penalty for {booking.booking_reference}",
        )

        booking.vendor_response = VendorResponse.declined.value
        booking.vendor_response_note = data.reason
        booking.vendor_responded_at = utc_now()
        booking.status = BookingStatus.waiting_for_engineer.value
        booking.clear_vendor_assignment()
        booking = await self.repos.bookings.update(booking)
        await self.repos.commit()
        logger.info(f"Vendor {vendor.vendor_id} declined booking {booking.booking_reference}")
        return booking

    async def complete(self, vendor: Vendor, booking_id: int, data: CompletionRequest) -> Booking:
        """
        Record the vendor's final bill.

        Online payment leaves the booking in progress until the customer
        pays. Cash payment closes it immediately, deducting the company share
        from the wallet and crediting the vendor's earning.
        """
        booking = await self.get_for_vendor(vendor, booking_id)
        if booking.status != BookingStatus.in_progress.value:
            raise ValidationFailedError("Only bookings in progress can be completed")
        if booking.completion_data and booking.payment_status == CollectionStatus.pending.value:
            raise ValidationFailedError("Booking is already awaiting payment")

        completion = build_completion_data(vendor.vendor_id, data, self.wallet)
        spare_amount = completion["spare_amount"]
        booking.completion_data = completion
        booking.payment_mode = data.payment_method.value

        if data.payment_method == PaymentMode.online:
            booking.payment_status = CollectionStatus.pending.value
            booking = await self.repos.bookings.update(booking)
            await self.notifications.notify_user(
                booking.user_id,
                "Service completed",
                f"Please pay ₹{completion['total_amount']:.2f} for booking {booking.booking_reference}.",
                notification_type=NotificationType.payment,
                priority=NotificationPriority.high,
                data={"booking_id": booking.id},
            )
            await self.repos.commit()
            logger.info(f"Booking {booking.booking_reference} completed, awaiting online payment")
            return booking

        await self.wallet.ensure_cash_collection_affordable(
            vendor.vendor_id, data.billing_amount, spare_amount, data.travelling_amount
        )
        now = utc_now()
        booking.status = BookingStatus.completed.value
        booking.payment_status = CollectionStatus.collected.value
        booking.payment_state = PaymentState.completed.value
        booking.completed_at = now
        booking.paid_at = booking.paid_at or now
        booking = await self.repos.bookings.update(booking)
        await self.wallet.add_cash_collection(
            vendor.vendor_id,
            case_id=booking.booking_reference,
            billing_amount=data.billing_amount,
            spare_amount=spare_amount,
            travelling_amount=data.travelling_amount,
        )
        await self.wallet.add_earning(
            vendor.vendor_id,
            case_id=booking.booking_reference,
            billing_amount=data.billing_amount,
            spare_amount=spare_amount,
            travelling_amount=data.travelling_amount,
            include_gst=data.include_gst,
            gst_amount=data.gst_amount,
            payment_method=LedgerPaymentMethod.cash,
        )
        await self.notifications.notify_user(
            booking.user_id,
            "Service completed",
            f"Booking {booking.booking_reference} is complete. Thank you for choosing Fixfly.",
            notification_type=NotificationType.booking_update,
            data={"booking_id": booking.id},
        )
        await self.repos.commit()
        logger.info(f"Booking {booking.booking_reference} completed with cash collection")
        return booking

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    async def search(
        self,
        status: Optional[str] = None,
        vendor_id: Optional[str] = None,
        priority: Optional[str] = None,
        term: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Booking], int]:
        return await self.repos.bookings.search(
            status=status, vendor_id=vendor_id, priority=priority, term=term, limit=limit, offset=offset
        )

    async def stats(self) -> BookingStats:
        by_status = await self.repos.bookings.count_by_status()
        return BookingStats(
            total=sum(by_status.values()),
            by_status=by_status,
            awaiting_assignment=by_status.get(BookingStatus.waiting_for_engineer.value, 0),
            revenue=round(await self.repos.bookings.completed_revenue(), 2),
        )

    async def assign_vendor(self, booking_id: int, data: AssignVendorRequest) -> Booking:
        """
        Assign a vendor, starting the response deadline.

        Raises:
            ValidationFailedError: The booking is closed, the vendor is not
                approved, or the vendor is busy in the requested slot
        """
        booking = await self.get(booking_id)
        if booking.status in CLOSED:
            raise ValidationFailedError(f"Cannot assign a vendor to a {booking.status} booking")
        vendor = await get_assignable_vendor(self.repos, data.vendor_id)

        scheduled_date = data.scheduled_date or booking.scheduled_date or booking.preferred_date
        scheduled_time = data.scheduled_time or booking.scheduled_time or booking.preferred_time_slot
        await ensure_vendor_available(
            self.repos, vendor.vendor_id, scheduled_date, scheduled_time, exclude_booking_id=booking.id
        )

        now = utc_now()
        booking.vendor_id = vendor.vendor_id
        booking.assigned_at = now
        booking.auto_reject_at = now + timedelta(minutes=self.config.auto_reject_minutes)
        booking.vendor_response = VendorResponse.pending.value
        booking.vendor_response_note = None
        booking.vendor_responded_at = None
        booking.status = BookingStatus.confirmed.value
        booking.scheduled_date = scheduled_date
        booking.scheduled_time = scheduled_time
        if data.priority is not None:
            booking.priority = data.priority.value
        if data.notes is not None:
            booking.assignment_notes = data.notes
        booking = await self.repos.bookings.update(booking)
        await mark_first_task_assignment(self.repos, vendor)

        await self.notifications.notify_vendor(
            vendor.vendor_id,
            "New booking assigned",
            f"Booking {booking.booking_reference} was assigned to you. "
            f"Respond within {self.config.auto_reject_minutes} minutes.",
            notification_type=NotificationType.booking,
            priority=NotificationPriority.high,
            data={"booking_id": booking.id},
        )
        await self.notifications.notify_user(
            booking.user_id,
            "Engineer assigned",
            f"{vendor.full_name} has been assigned to booking {booking.booking_reference}.",
            notification_type=NotificationType.engineer_assigned,
            data={"booking_id": booking.id, "vendor_id": vendor.vendor_id},
        )
        await self.repos.commit()
        logger.info(f"Assigned vendor {vendor.vendor_id} to booking {booking.booking_reference}")
        return booking

    async def set_status(self, booking_id: int, data: BookingStatusUpdate) -> Booking:
        booking = await self.get(booking_id)
        booking.status = data.status.value
        if data.status == BookingStatus.completed and booking.completed_at is None:
            booking.completed_at = utc_now()
        if data.status == BookingStatus.cancelled:
            booking.auto_reject_at = None
            booking.cancellation_data = {
                "reason": data.note,
                "cancelled_by": "admin",
                "cancelled_at": utc_now().isoformat(),
            }
        booking = await self.repos.bookings.update(booking)
        await self.repos.commit()
        logger.info(f"Admin set booking {booking.booking_reference} status to {booking.status}")
        return booking

    async def set_priority(self, booking_id: int, priority: str) -> Booking:
        booking = await self.get(booking_id)
        booking.priority = priority
        booking = await self.repos.bookings.update(booking)
        await self.repos.commit()
        return booking

    async def delete(self, booking_id: int) -> None:
        """Delete a booking together with its review."""
        review = await self.repos.reviews.get_by_booking_id(booking_id)
        if review is not None:
            await self.repos.reviews.delete(review.id)
        if not await self.repos.bookings.delete(booking_id):
            raise NotFoundError("Booking not found")
        await self.repos.commit()
        logger.info(f"Deleted booking {booking_id}")

    async def refund(self, booking_id: int, data: RefundRequest) -> Booking:
        booking = await self.get(booking_id)
        if booking.payment_state != PaymentState.completed.value or not booking.razorpay_payment_id:
            raise ValidationFailedError("Booking has no captured online payment to refund")
        refund = await self._razorpay().refund(booking.razorpay_payment_id, data.amount)
        booking.payment_state = PaymentState.refunded.value
        booking.refund_id = refund.get("id")
        booking.refunded_at = utc_now()
        booking = await self.repos.bookings.update(booking)
        await self.notifications.notify_user(
            booking.user_id,
            "Refund initiated",
            f"A refund for booking {booking.booking_reference} has been initiated.",
            notification_type=NotificationType.payment,
            data={"booking_id": booking.id, "refund_id": booking.refund_id},
        )
        await self.repos.commit()
        return booking

    def _razorpay(self) -> RazorpayClient:
        if self.razorpay is None:
            raise RuntimeError("BookingService needs a RazorpayClient for gateway operations")
        return self.razorpay
