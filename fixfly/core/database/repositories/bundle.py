"""
Repository bundle for dependency injection.

This module provides a convenience bundle of all repository instances
bound to one session, so services share a single unit of work.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from .admins import AdminRepository
from .amc import AMCPlanRepository, AMCSubscriptionRepository
from .bookings import BookingRepository
from .counters import CounterRepository
from .notifications import NotificationRepository
from .reviews import ReviewRepository
from .support_tickets import SupportTicketRepository
from .users import UserRepository
from .vendors import VendorRepository
from .wallets import VendorWalletRepository, WalletTransactionRepository, WithdrawalRequestRepository


@dataclass(frozen=True)
class SqlRepoBundle:
    """Convenience bundle of all SQL repositories for dependency injection."""

    session: AsyncSession
    users: UserRepository
    vendors: VendorRepository
    admins: AdminRepository
    counters: CounterRepository
    bookings: BookingRepository
    support_tickets: SupportTicketRepository
    amc_plans: AMCPlanRepository
    amc_subscriptions: AMCSubscriptionRepository
    wallets: VendorWalletRepository
    wallet_transactions: WalletTransactionRepository
    withdrawals: WithdrawalRequestRepository
    notifications: NotificationRepository
    reviews: ReviewRepository

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()


def build_sql_repos_from_session(*, session: AsyncSession) -> SqlRepoBundle:
    """Build a SqlRepoBundle from an existing session.

    Args:
        session: Existing async session

    Returns:
        Bundle containing all repository instances
    """
    return SqlRepoBundle(
        session=session,
        users=UserRepository(session),
        vendors=VendorRepository(session),
        admins=AdminRepository(session),
        counters=CounterRepository(session),
        bookings=BookingRepository(session),
        support_tickets=SupportTicketRepository(session),
        amc_plans=AMCPlanRepository(session),
        amc_subscriptions=AMCSubscriptionRepository(session),
        wallets=VendorWalletRepository(session),
        wallet_transactions=WalletTransactionRepository(session),
        withdrawals=WithdrawalRequestRepository(session),
        notifications=NotificationRepository(session),
        reviews=ReviewRepository(session),
    )
