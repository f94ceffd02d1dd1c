"""Domain enums for Fixfly models."""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Identity kinds carried in access tokens."""

    user = "user"
    vendor = "vendor"
    admin = "admin"


class AdminRole(str, Enum):
    admin = "admin"
    super_admin = "super_admin"


class AdminPermission(str, Enum):
    """
    Feature areas an admin can be granted access to.

    ``super_admin`` implicitly holds every permission.
    """

    user_management = "userManagement"
    vendor_management = "vendorManagement"
    service_management = "serviceManagement"
    booking_management = "bookingManagement"
    payment_management = "paymentManagement"
    support_management = "supportManagement"
    amc_management = "amcManagement"
    analytics = "analytics"
    system_settings = "systemSettings"


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""

    pending = "pending"
    waiting_for_engineer = "waiting_for_engineer"  # Created or returned to the assignment queue.
    confirmed = "confirmed"  # Vendor assigned, awaiting their response.
    in_progress = "in_progress"  # Accepted, or completed and awaiting online payment.
    completed = "completed"
    cancelled = "cancelled"


class BookingPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class PaymentMethod(str, Enum):
    """How the customer paid for the booking up front."""

    card = "card"
    upi = "upi"
    netbanking = "netbanking"
    wallet = "wallet"
    cash = "cash"


class PaymentState(str, Enum):
    """State of the booking/subscription payment with the gateway."""

    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"


class TimeSlot(str, Enum):
    morning = "morning"
    afternoon = "afternoon"
    evening = "evening"


class VendorResponse(str, Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class PaymentMode(str, Enum):
    """How the vendor collected the final bill."""

    online = "online"
    cash = "cash"


class CollectionStatus(str, Enum):
    """Collection state of the final bill after the vendor completes a job."""

    pending = "pending"
    payment_done = "payment_done"
    collected = "collected"
    not_collected = "not_collected"


class TicketStatus(str, Enum):
    submitted = "Submitted"
    in_progress = "In Progress"
    waiting_for_response = "Waiting for Response"
    rescheduled = "Rescheduled"
    cancelled = "Cancelled"
    resolved = "Resolved"
    closed = "Closed"


class TicketPriority(str, Enum):
    high = "High"
    medium = "Medium"
    low = "Low"


class SupportType(str, Enum):
    service = "service"
    product = "product"
    amc = "amc"
    others = "others"


class TicketVendorStatus(str, Enum):
    pending = "Pending"
    accepted = "Accepted"
    completed = "Completed"
    declined = "Declined"
    cancelled = "Cancelled"


class ResponseSender(str, Enum):
    user = "user"
    admin = "admin"
    vendor = "vendor"


class PlanPeriod(str, Enum):
    monthly = "monthly"
    yearly = "yearly"


class PlanStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    draft = "draft"


class SubscriptionStatus(str, Enum):
    inactive = "inactive"  # Created, awaiting payment.
    active = "active"
    expired = "expired"
    cancelled = "cancelled"


class WalletTransactionType(str, Enum):
    """
    Types of vendor wallet ledger entries.

    Each type maps to a transaction id prefix, see ``TRANSACTION_PREFIXES``.
    """

    earning = "earning"
    penalty = "penalty"
    deposit = "deposit"
    withdrawal = "withdrawal"
    task_acceptance_fee = "task_acceptance_fee"
    cash_collection = "cash_collection"
    refund = "refund"
    manual_adjustment = "manual_adjustment"


TRANSACTION_PREFIXES: dict[WalletTransactionType, str] = {
    WalletTransactionType.earning: "EARN",
    WalletTransactionType.penalty: "PEN",
    WalletTransactionType.deposit: "DEP",
    WalletTransactionType.withdrawal: "WTH",
    WalletTransactionType.task_acceptance_fee: "FEE",
    WalletTransactionType.cash_collection: "CASH",
    WalletTransactionType.refund: "REF",
    WalletTransactionType.manual_adjustment: "ADJ",
}


class WalletTransactionStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"


class LedgerPaymentMethod(str, Enum):
    online = "online"
    cash = "cash"
    system = "system"


class PenaltyType(str, Enum):
    rejection = "rejection"
    cancellation = "cancellation"
    auto_rejection = "auto_rejection"


class WithdrawalStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    declined = "declined"
    processed = "processed"


class NotificationRecipient(str, Enum):
    user = "user"
    vendor = "vendor"


class NotificationType(str, Enum):
    booking = "booking"
    payment = "payment"
    system = "system"
    booking_update = "booking_update"
    engineer_assigned = "engineer_assigned"
    support_ticket = "support_ticket"
    wallet = "wallet"
    review = "review"


class NotificationPriority(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class ReviewStatus(str, Enum):
    """Moderation status of a review. Only approved reviews are public."""

    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    hidden = "hidden"


class ReviewSort(str, Enum):
    newest = "newest"
    oldest = "oldest"
    highest_rating = "highest_rating"
    lowest_rating = "lowest_rating"
    most_liked = "most_liked"
