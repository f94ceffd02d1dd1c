"""
Database entity models.

Importing this package registers every table on ``Base.metadata``.
"""

from .admins import Admin
from .amc import AMCPlan, AMCSubscription
from .bookings import Booking
from .counters import Counter
from .notifications import Notification
from .reviews import Review
from .support_tickets import SupportTicket
from .users import User
from .vendors import Vendor
from .wallets import VendorWallet, WalletTransaction, WithdrawalRequest

__all__ = [
    "AMCPlan",
    "AMCSubscription",
    "Admin",
    "Booking",
    "Counter",
    "Notification",
    "Review",
    "SupportTicket",
    "User",
    "Vendor",
    "VendorWallet",
    "WalletTransaction",
    "WithdrawalRequest",
]
