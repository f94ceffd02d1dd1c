"""
Payment settlement.

Every gateway payment is settled through ``PaymentService.settle``, keyed by
the Razorpay order id. The client callbacks (booking, subscription, wallet
deposit and the generic verify endpoint) check the checkout signature and the
webhook checks the webhook signature; both then call ``settle``, which finds
what the order was created for and applies it once.
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, Optional

from fixfly.core.database.entities.amc import AMCSubscription
from fixfly.core.database.entities.bookings import Booking
from fixfly.core.database.entities.users import User
from fixfly.core.database.entities.vendors import Vendor
from fixfly.core.database.entities.wallets import WalletTransaction
from fixfly.core.database.repositories import SqlRepoBundle
from fixfly.core.logging_config import get_logger
from fixfly.core.models.io.amc import SubscriptionVerify
from fixfly.core.models.io.bookings import BookingPaymentVerify
from fixfly.core.models.io.payments import (
    CreateOrderRequest,
    PaymentDetails,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
    RazorpayOrderRead,
    WebhookAck,
)
from fixfly.core.models.io.wallets import DepositVerifyRequest
from fixfly.core.monitoring import log_payment_event
from fixfly.server.errors import FixflyError, NotFoundError, PaymentVerificationError, PermissionDeniedError

from .amc import AMCService
from .bookings import BookingService
from .razorpay import RazorpayClient
from .support_tickets import SupportTicketService
from .wallet import WalletService

logger = get_logger(__name__)

CAPTURE_EVENTS = {"payment.captured", "order.paid"}


class PaymentService:
    def __init__(self, repos: SqlRepoBundle, razorpay: RazorpayClient):
        self.repos = repos
        self.razorpay = razorpay
        self.bookings = BookingService(repos, razorpay)
        self.tickets = SupportTicketService(repos, razorpay)
        self.amc = AMCService(repos, razorpay)
        self.wallet = WalletService(repos)

    async def create_order(self, data: CreateOrderRequest) -> RazorpayOrderRead:
        return await self.razorpay.create_order(data.amount, receipt=data.receipt, notes=data.notes)

    async def fetch_payment(self, payment_id: str) -> PaymentDetails:
        return await self.razorpay.fetch_payment(payment_id)

    def _check_signature(self, order_id: str, payment_id: str, signature: str) -> None:
        if not self.razorpay.verify_signature(order_id, payment_id, signature):
            log_payment_event("verification_failed", order_id, payment_id=payment_id)
            logger.warning(f"Invalid payment signature for order {order_id}, payment {payment_id}")
            raise PaymentVerificationError("Invalid payment signature")

    async def settle(
        self, order_id: str, payment_id: str, signature: Optional[str] = None, *, source: str = "client"
    ) -> PaymentVerifyResponse:
        """
        Apply a confirmed payment to whatever its order was created for.

        Safe to call repeatedly for the same order: later calls report the
        payment as already processed.

        Raises:
            NotFoundError: No booking, ticket, subscription or deposit uses the order
        """
        applied_to: str
        reference: str
        applied: bool

        booking = await self.repos.bookings.get_by_order_id(order_id)
        ticket = None if booking else await self.repos.support_tickets.get_by_order_id(order_id)
        subscription = None if booking or ticket else await self.repos.amc_subscriptions.get_by_order_id(order_id)
        if booking is not None:
            applied = await self.bookings.apply_gateway_payment(booking, order_id, payment_id, signature)
            applied_to, reference = "booking", booking.booking_reference
        elif ticket is not None:
            applied = await self.tickets.apply_gateway_payment(ticket, payment_id)
            applied_to, reference = "support_ticket", ticket.ticket_id
        elif subscription is not None:
            applied = await self.amc.apply_gateway_payment(subscription, order_id, payment_id)
            applied_to, reference = "amc_subscription", subscription.subscription_id
        else:
            transaction = await self.repos.wallet_transactions.get_by_gateway_reference(order_id)
            if transaction is None:
                raise NotFoundError(f"No payment is pending for order {order_id}")
            transaction, applied = await self.wallet.complete_pending_deposit(order_id, payment_id)
            applied_to, reference = "wallet_deposit", transaction.transaction_id

        await self.repos.commit()
        log_payment_event(
            "payment_applied" if applied else "payment_duplicate",
            order_id,
            payment_id=payment_id,
            applied_to=applied_to,
            reference=reference,
            source=source,
        )
        return PaymentVerifyResponse(
            success=True,
            message="Payment verified successfully" if applied else "Payment already processed",
            applied_to=applied_to,
            reference=reference,
        )

    async def verify(self, data: PaymentVerifyRequest) -> PaymentVerifyResponse:
        self._check_signature(data.razorpay_order_id, data.razorpay_payment_id, data.razorpay_signature)
        return await self.settle(data.razorpay_order_id, data.razorpay_payment_id, data.razorpay_signature)

    async def verify_booking_payment(self, data: BookingPaymentVerify, user: Optional[User] = None) -> Booking:
        booking = await self.bookings.get(data.booking_id)
        if user is not None and booking.user_id is not None and booking.user_id != user.id:
            raise PermissionDeniedError("Not authorized to access this booking")
        if data.razorpay_order_id not in (booking.razorpay_order_id, booking.final_payment_order_id):
            raise PaymentVerificationError("Order id does not match this booking")
        self._check_signature(data.razorpay_order_id, data.razorpay_payment_id, data.razorpay_signature)
        await self.settle(data.razorpay_order_id, data.razorpay_payment_id, data.razorpay_signature)
        return await self.bookings.get(data.booking_id)

    async def verify_subscription_payment(self, user: User, data: SubscriptionVerify) -> AMCSubscription:
        subscription = await self.amc.get_for_user(user, data.subscription_id)
        if data.razorpay_order_id not in (subscription.razorpay_order_id, subscription.pending_renewal_order_id):
            raise PaymentVerificationError("Order id does not match this subscription")
        self._check_signature(data.razorpay_order_id, data.razorpay_payment_id, data.razorpay_signature)
        await self.settle(data.razorpay_order_id, data.razorpay_payment_id, data.razorpay_signature)
        return await self.amc.get_subscription(subscription.subscription_id)

    async def create_deposit_order(self, vendor: Vendor, amount: float) -> RazorpayOrderRead:
        order = await self.razorpay.create_order(
            amount,
            receipt=f"DEP_{vendor.vendor_id}_{int(time.time() * 1000)}",
            notes={"vendor_id": vendor.vendor_id, "purpose": "wallet_deposit"},
        )
        await self.wallet.create_pending_deposit(vendor.vendor_id, amount=amount, order_id=order.order_id)
        await self.repos.commit()
        return order

    async def verify_deposit(self, vendor: Vendor, data: DepositVerifyRequest) -> WalletTransaction:
        transaction = await self.repos.wallet_transactions.get_by_gateway_reference(data.razorpay_order_id)
        if transaction is None or transaction.vendor_id != vendor.vendor_id:
            raise NotFoundError("Deposit order not found")
        self._check_signature(data.razorpay_order_id, data.razorpay_payment_id, data.razorpay_signature)
        await self.settle(data.razorpay_order_id, data.razorpay_payment_id, data.razorpay_signature)
        return await self.repos.wallet_transactions.get_by_gateway_reference(data.razorpay_order_id)

    async def handle_webhook(self, body: bytes, signature: str) -> WebhookAck:
        """Settle captured payments reported by the gateway webhook."""
        if not self.razorpay.verify_webhook_signature(body, signature):
            logger.warning("Rejected webhook with an invalid signature")
            raise PaymentVerificationError("Invalid webhook signature")
        try:
            event: Dict[str, Any] = json.loads(body)
        except ValueError as e:
            raise PaymentVerificationError("Webhook body is not valid JSON") from e

        name = event.get("event")
        if name not in CAPTURE_EVENTS:
            logger.debug(f"Ignoring webhook event {name}")
            return WebhookAck(event=name)

        payment = event.get("payload", {}).get("payment", {}).get("entity", {})
        order_id, payment_id = payment.get("order_id"), payment.get("id")
        if not order_id or not payment_id:
            logger.warning(f"Webhook {name} without order or payment id")
            return WebhookAck(event=name)
        try:
            await self.settle(order_id, payment_id, source="webhook")
        except NotFoundError:
            logger.warning(f"Webhook {name} for unknown order {order_id}")
            return WebhookAck(event=name)
        except FixflyError as e:
            await self.repos.rollback()
            logger.error(f"Webhook {name} for order {order_id} could not be applied: {e.message}")
            log_payment_event("payment_rejected", order_id, payment_id=payment_id, reason=e.error_code, source="webhook")
            return WebhookAck(event=name)
        return WebhookAck(handled=True, event=name)
