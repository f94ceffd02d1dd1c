"""
Support tickets: customer requests, admin triage and vendor field visits.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from fixfly.core.database import utc_now
from fixfly.core.database.entities.support_tickets import SupportTicket
from fixfly.core.database.entities.users import User
from fixfly.core.database.entities.vendors import Vendor
from fixfly.core.database.repositories import SqlRepoBundle
from fixfly.core.logging_config import get_logger
from fixfly.core.models.domain.enums import (
    CollectionStatus,
    LedgerPaymentMethod,
    NotificationPriority,
    NotificationType,
    PaymentMode,
    PenaltyType,
    ResponseSender,
    TicketPriority,
    TicketStatus,
    TicketVendorStatus,
)
from fixfly.core.models.io.bookings import CompletionRequest
from fixfly.core.models.io.payments import RazorpayOrderRead
from fixfly.core.models.io.support_tickets import (
    TicketAssign,
    TicketCreate,
    TicketStats,
    TicketUpdate,
)
from fixfly.server.errors import NotFoundError, PermissionDeniedError, ValidationFailedError

from .bookings import build_completion_data, ensure_vendor_available, get_assignable_vendor, mark_first_task_assignment
from .notifications import NotificationService
from .razorpay import RazorpayClient
from .wallet import WalletService

logger = get_logger(__name__)

TICKET_COUNTER = "support_ticket"
FINISHED = {TicketStatus.resolved.value, TicketStatus.closed.value}
OPEN_FOR_VENDOR = {TicketVendorStatus.pending.value, TicketVendorStatus.accepted.value}


def response_entry(sender: ResponseSender, sender_name: str, message: str) -> Dict[str, Any]:
    return {
        "sender": sender.value,
        "sender_name": sender_name,
        "message": message,
        "created_at": utc_now().isoformat(),
    }


class SupportTicketService:
    def __init__(self, repos: SqlRepoBundle, razorpay: Optional[RazorpayClient] = None):
        self.repos = repos
        self.razorpay = razorpay
        self.wallet = WalletService(repos)
        self.notifications = NotificationService(repos)

    async def get(self, ticket_id: str) -> SupportTicket:
        ticket = await self.repos.support_tickets.get_by_ticket_id(ticket_id)
        if ticket is None:
            raise NotFoundError("Support ticket not found")
        return ticket

    async def get_for_user(self, user: User, ticket_id: str) -> SupportTicket:
        ticket = await self.get(ticket_id)
        if ticket.user_id != user.id:
            raise PermissionDeniedError("Not authorized to access this ticket")
        return ticket

    async def get_for_vendor(self, vendor: Vendor, ticket_id: str) -> SupportTicket:
        ticket = await self.get(ticket_id)
        if ticket.assigned_vendor_id != vendor.vendor_id:
            raise PermissionDeniedError("This ticket is not assigned to you")
        return ticket

    # ------------------------------------------------------------------
    # Customer
    # ------------------------------------------------------------------

    async def create(self, user: User, data: TicketCreate) -> SupportTicket:
        seq = await self.repos.counters.next_value(TICKET_COUNTER)
        ticket = SupportTicket(
            ticket_id=f"TK{seq:06d}",
            user_id=user.id,
            user_name=user.name or "",
            user_email=user.email,
            user_phone=user.phone,
            support_type=data.support_type.value,
            case_id=data.case_id.upper() if data.case_id else None,
            subject=data.subject,
            description=data.description,
            priority=data.priority.value,
        )
        ticket = await self.repos.support_tickets.create(ticket)
        await self.repos.commit()
        logger.info(f"Customer {user.id} opened ticket {ticket.ticket_id}")
        return ticket

    async def list_for_user(self, user: User, limit: int = 20, offset: int = 0) -> Tuple[List[SupportTicket], int]:
        return await self.repos.support_tickets.list_for_user(user.id, limit=limit, offset=offset)

    async def add_user_response(self, user: User, ticket_id: str, message: str) -> SupportTicket:
        ticket = await self.get_for_user(user, ticket_id)
        if ticket.status in FINISHED:
            raise ValidationFailedError(f"Cannot respond to a {ticket.status.lower()} ticket")
        ticket.responses = [*ticket.responses, response_entry(ResponseSender.user, ticket.user_name, message)]
        if ticket.status == TicketStatus.in_progress.value:
            ticket.status = TicketStatus.waiting_for_response.value
        ticket = await self.repos.support_tickets.update(ticket)
        await self.repos.commit()
        return ticket

    async def create_completion_order(self, user: User, ticket_id: str) -> Tuple[SupportTicket, RazorpayOrderRead]:
        ticket = await self.get_for_user(user, ticket_id)
        if not self.awaits_online_payment(ticket):
            raise ValidationFailedError("Ticket has no pending online payment")
        if self.razorpay is None:
            raise RuntimeError("SupportTicketService needs a RazorpayClient for gateway operations")
        if ticket.razorpay_order_id:
            return ticket, await self.razorpay.fetch_order(ticket.razorpay_order_id)
        order = await self.razorpay.create_order(
            float(ticket.completion_data["total_amount"]),
            receipt=f"{ticket.ticket_id}_FINAL",
            notes={"ticket_id": ticket.ticket_id, "purpose": "final_payment"},
        )
        ticket.razorpay_order_id = order.order_id
        ticket = await self.repos.support_tickets.update(ticket)
        await self.repos.commit()
        return ticket, order

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def search(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        support_type: Optional[str] = None,
        term: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[SupportTicket], int]:
        return await self.repos.support_tickets.search(
            status=status, priority=priority, support_type=support_type, term=term, limit=limit, offset=offset
        )

    async def add_admin_response(self, admin_name: str, ticket_id: str, message: str) -> SupportTicket:
        ticket = await self.get(ticket_id)
        ticket.responses = [*ticket.responses, response_entry(ResponseSender.admin, admin_name, message)]
        if ticket.status == TicketStatus.submitted.value:
            ticket.status = TicketStatus.in_progress.value
        ticket = await self.repos.support_tickets.update(ticket)
        await self.notifications.notify_user(
            ticket.user_id,
            "Support replied",
            f"There is a new reply on ticket {ticket.ticket_id}.",
            notification_type=NotificationType.support_ticket,
            data={"ticket_id": ticket.ticket_id},
        )
        await self.repos.commit()
        return ticket

    async def update(self, ticket_id: str, data: TicketUpdate) -> SupportTicket:
        ticket = await self.get(ticket_id)
        if data.status is not None:
            ticket.status = data.status.value
            if data.status in (TicketStatus.resolved, TicketStatus.closed) and ticket.resolved_at is None:
                ticket.resolved_at = utc_now()
        if data.priority is not None:
            ticket.priority = data.priority.value
        ticket = await self.repos.support_tickets.update(ticket)
        await self.repos.commit()
        return ticket

    async def resolve(self, ticket_id: str, resolution: str) -> SupportTicket:
        ticket = await self.get(ticket_id)
        ticket.resolution = resolution
        ticket.status = TicketStatus.resolved.value
        ticket.resolved_at = utc_now()
        ticket = await self.repos.support_tickets.update(ticket)
        await self.notifications.notify_user(
            ticket.user_id,
            "Ticket resolved",
            f"Ticket {ticket.ticket_id} has been resolved.",
            notification_type=NotificationType.support_ticket,
            data={"ticket_id": ticket.ticket_id},
        )
        await self.repos.commit()
        logger.info(f"Ticket {ticket.ticket_id} resolved")
        return ticket

    async def escalate(self, ticket_id: str, reason: Optional[str]) -> SupportTicket:
        ticket = await self.get(ticket_id)
        ticket.priority = TicketPriority.high.value
        ticket.escalated = True
        ticket.escalation_reason = reason
        ticket = await self.repos.support_tickets.update(ticket)
        await self.repos.commit()
        logger.warning(f"Ticket {ticket.ticket_id} escalated: {reason}")
        return ticket

    async def assign_vendor(self, ticket_id: str, data: TicketAssign) -> SupportTicket:
        ticket = await self.get(ticket_id)
        if ticket.status in FINISHED:
            raise ValidationFailedError(f"Cannot assign a vendor to a {ticket.status.lower()} ticket")
        vendor = await get_assignable_vendor(self.repos, data.vendor_id)
        scheduled_date = data.scheduled_date or ticket.scheduled_date
        scheduled_time = data.scheduled_time or ticket.scheduled_time
        await ensure_vendor_available(
            self.repos, vendor.vendor_id, scheduled_date, scheduled_time, exclude_ticket_id=ticket.id
        )

        now = utc_now()
        ticket.assigned_vendor_id = vendor.vendor_id
        ticket.assigned_at = now
        ticket.scheduled_date = scheduled_date
        ticket.scheduled_time = scheduled_time
        ticket.vendor_status = TicketVendorStatus.pending.value
        ticket.vendor_response_note = None
        ticket.status = TicketStatus.in_progress.value
        ticket.assignment_history = [
            *ticket.assignment_history,
            {
                "vendor_id": vendor.vendor_id,
                "assigned_at": now.isoformat(),
                "scheduled_date": scheduled_date.isoformat() if scheduled_date else None,
                "scheduled_time": scheduled_time,
                "notes": data.notes,
            },
        ]
        ticket = await self.repos.support_tickets.update(ticket)
        await mark_first_task_assignment(self.repos, vendor)
        await self.notifications.notify_vendor(
            vendor.vendor_id,
            "New support ticket assigned",
            f"Ticket {ticket.ticket_id}: {ticket.subject}",
            notification_type=NotificationType.support_ticket,
            priority=NotificationPriority.high,
            data={"ticket_id": ticket.ticket_id},
        )
        await self.notifications.notify_user(
            ticket.user_id,
            "Engineer assigned",
            f"{vendor.full_name} will handle ticket {ticket.ticket_id}.",
            notification_type=NotificationType.engineer_assigned,
            data={"ticket_id": ticket.ticket_id, "vendor_id": vendor.vendor_id},
        )
        await self.repos.commit()
        logger.info(f"Assigned vendor {vendor.vendor_id} to ticket {ticket.ticket_id}")
        return ticket

    async def stats(self) -> TicketStats:
        by_status = await self.repos.support_tickets.count_by_status()
        by_priority = await self.repos.support_tickets.count_by_priority()
        closed = FINISHED | {TicketStatus.cancelled.value}
        return TicketStats(
            total=sum(by_status.values()),
            by_status=by_status,
            by_priority=by_priority,
            open=sum(count for status, count in by_status.items() if status not in closed),
        )

    # ------------------------------------------------------------------
    # Vendor
    # ------------------------------------------------------------------

    async def list_for_vendor(
        self, vendor: Vendor, vendor_status: Optional[str] = None, limit: int = 20, offset: int = 0
    ) -> Tuple[List[SupportTicket], int]:
        return await self.repos.support_tickets.list_for_vendor(
            vendor.vendor_id, vendor_status=vendor_status, limit=limit, offset=offset
        )

    async def accept(self, vendor: Vendor, ticket_id: str) -> SupportTicket:
        ticket = await self.get_for_vendor(vendor, ticket_id)
        if ticket.vendor_status != TicketVendorStatus.pending.value:
            raise ValidationFailedError(f"Ticket already {(ticket.vendor_status or 'handled').lower()}")
        ticket.vendor_status = TicketVendorStatus.accepted.value
        ticket = await self.repos.support_tickets.update(ticket)
        await self.repos.commit()
        return ticket

    async def decline(self, vendor: Vendor, ticket_id: str, reason: Optional[str]) -> SupportTicket:
        """Decline the visit. The rejection penalty is taken only when the wallet can cover it."""
        ticket = await self.get_for_vendor(vendor, ticket_id)
        if ticket.vendor_status not in OPEN_FOR_VENDOR:
            raise ValidationFailedError(f"Ticket already {(ticket.vendor_status or 'handled').lower()}")
        penalty = self.wallet.config.rejection_penalty
        wallet = await self.repos.wallets.get_by_vendor_id(vendor.vendor_id)
        if wallet is not None and wallet.current_balance >= penalty:
            await self.wallet.add_penalty(
                vendor.vendor_id,
                amount=penalty,
                penalty_type=PenaltyType.rejection,
                case_id=ticket.ticket_id,
                description=f"Rejection penalty for {ticket.ticket_id}",
            )
        ticket.vendor_status = TicketVendorStatus.declined.value
        ticket.vendor_response_note = reason
        ticket.status = TicketStatus.cancelled.value
        ticket = await self.repos.support_tickets.update(ticket)
        await self.repos.commit()
        logger.info(f"Vendor {vendor.vendor_id} declined ticket {ticket.ticket_id}")
        return ticket

    async def cancel(self, vendor: Vendor, ticket_id: str, reason: Optional[str]) -> SupportTicket:
        ticket = await self.get_for_vendor(vendor, ticket_id)
        if ticket.vendor_status not in OPEN_FOR_VENDOR:
            raise ValidationFailedError(f"Ticket already {(ticket.vendor_status or 'handled').lower()}")
        ticket.vendor_status = TicketVendorStatus.cancelled.value
        ticket.vendor_response_note = reason
        ticket.status = TicketStatus.closed.value
        ticket = await self.repos.support_tickets.update(ticket)
        await self.repos.commit()
        return ticket

    @staticmethod
    def awaits_online_payment(ticket: SupportTicket) -> bool:
        return (
            bool(ticket.completion_data)
            and ticket.payment_mode == PaymentMode.online.value
            and ticket.payment_status == CollectionStatus.pending.value
        )

    async def complete(self, vendor: Vendor, ticket_id: str, data: CompletionRequest) -> SupportTicket:
        ticket = await self.get_for_vendor(vendor, ticket_id)
        if ticket.vendor_status != TicketVendorStatus.accepted.value:
            raise ValidationFailedError("Only accepted tickets can be completed")
        if self.awaits_online_payment(ticket):
            raise ValidationFailedError("Ticket is already awaiting payment")

        completion = build_completion_data(vendor.vendor_id, data, self.wallet)
        spare_amount = completion["spare_amount"]
        ticket.completion_data = completion
        ticket.payment_mode = data.payment_method.value
        if data.resolution_note:
            ticket.resolution = data.resolution_note

        if data.payment_method == PaymentMode.online:
            ticket.payment_status = CollectionStatus.pending.value
            ticket.status = TicketStatus.in_progress.value
            ticket = await self.repos.support_tickets.update(ticket)
            await self.notifications.notify_user(
                ticket.user_id,
                "Service completed",
                f"Please pay ₹{completion['total_amount']:.2f} for ticket {ticket.ticket_id}.",
                notification_type=NotificationType.payment,
                priority=NotificationPriority.high,
                data={"ticket_id": ticket.ticket_id},
            )
            await self.repos.commit()
            return ticket

        await self.wallet.ensure_cash_collection_affordable(
            vendor.vendor_id, data.billing_amount, spare_amount, data.travelling_amount
        )
        ticket.payment_status = CollectionStatus.collected.value
        ticket.vendor_status = TicketVendorStatus.completed.value
        ticket.status = TicketStatus.resolved.value
        ticket.resolved_at = utc_now()
        ticket = await self.repos.support_tickets.update(ticket)
        await self._settle_vendor(ticket, vendor.vendor_id, LedgerPaymentMethod.cash, with_cash_collection=True)
        await self.repos.commit()
        logger.info(f"Ticket {ticket.ticket_id} completed with cash collection")
        return ticket

    async def _settle_vendor(
        self, ticket: SupportTicket, vendor_id: str, method: LedgerPaymentMethod, *, with_cash_collection: bool
    ) -> None:
        completion = ticket.completion_data or {}
        billing = float(completion.get("billing_amount", 0.0))
        spare = float(completion.get("spare_amount", 0.0))
        travel = float(completion.get("travelling_amount", 0.0))
        if with_cash_collection:
            await self.wallet.add_cash_collection(
                vendor_id, case_id=ticket.ticket_id, billing_amount=billing, spare_amount=spare, travelling_amount=travel
            )
        await self.wallet.add_earning(
            vendor_id,
            case_id=ticket.ticket_id,
            billing_amount=billing,
            spare_amount=spare,
            travelling_amount=travel,
            include_gst=bool(completion.get("include_gst", False)),
            gst_amount=float(completion.get("gst_amount", 0.0)),
            payment_method=method,
        )

    async def apply_gateway_payment(self, ticket: SupportTicket, payment_id: str) -> bool:
        """Close a ticket whose final bill was paid online. The caller commits."""
        if not self.awaits_online_payment(ticket):
            return False
        ticket.payment_status = CollectionStatus.payment_done.value
        ticket.razorpay_payment_id = payment_id
        ticket.vendor_status = TicketVendorStatus.completed.value
        ticket.status = TicketStatus.resolved.value
        ticket.resolved_at = utc_now()
        ticket = await self.repos.support_tickets.update(ticket)
        if ticket.assigned_vendor_id:
            await self._settle_vendor(
                ticket, ticket.assigned_vendor_id, LedgerPaymentMethod.online, with_cash_collection=False
            )
            await self.notifications.notify_vendor(
                ticket.assigned_vendor_id,
                "Payment received",
                f"Customer paid the final bill for {ticket.ticket_id}.",
                notification_type=NotificationType.payment,
                data={"ticket_id": ticket.ticket_id},
            )
        logger.info(f"Final payment {payment_id} settled ticket {ticket.ticket_id}")
        return True
