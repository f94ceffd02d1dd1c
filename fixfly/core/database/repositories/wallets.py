"""
Vendor wallet, ledger and withdrawal repositories.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from ..entities.wallets import VendorWallet, WalletTransaction, WithdrawalRequest
from .base import AsyncBaseRepository


class VendorWalletRepository(AsyncBaseRepository[VendorWallet]):
    """Repository for vendor wallets."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, VendorWallet)

    async def get_by_vendor_id(self, vendor_id: str, *, for_update: bool = False) -> Optional[VendorWallet]:
        """Get a vendor's wallet.

        Args:
            vendor_id: Three digit vendor id
            for_update: Lock the row until the surrounding transaction ends
        """
        stmt = select(VendorWallet).where(VendorWallet.vendor_id == vendor_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalars().first()


class WalletTransactionRepository(AsyncBaseRepository[WalletTransaction]):
    """Repository for wallet ledger entries."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, WalletTransaction)

    async def list_for_vendor(
        self,
        vendor_id: str,
        transaction_type: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Tuple[List[WalletTransaction], int]:
        stmt = (
            select(WalletTransaction)
            .where(WalletTransaction.vendor_id == vendor_id)
            .order_by(col(WalletTransaction.created_at).desc(), col(WalletTransaction.id).desc())
        )
        if transaction_type:
            stmt = stmt.where(WalletTransaction.type == transaction_type)
        return await self._page(stmt, limit, offset)

    async def find_for_case(
        self, vendor_id: str, case_id: str, transaction_type: str, payment_method: Optional[str] = None
    ) -> Optional[WalletTransaction]:
        """Find an existing entry of the given type for a booking or ticket."""
        stmt = (
            select(WalletTransaction)
            .where(WalletTransaction.vendor_id == vendor_id)
            .where(WalletTransaction.case_id == case_id)
            .where(WalletTransaction.type == transaction_type)
        )
        if payment_method:
            stmt = stmt.where(WalletTransaction.payment_method == payment_method)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_transaction_id(self, transaction_id: str) -> Optional[WalletTransaction]:
        result = await self.session.execute(
            select(WalletTransaction).where(WalletTransaction.transaction_id == transaction_id)
        )
        return result.scalars().first()

    async def get_by_gateway_reference(self, reference: str) -> Optional[WalletTransaction]:
        """Get the entry created for a Razorpay order (wallet deposits)."""
        result = await self.session.execute(
            select(WalletTransaction).where(WalletTransaction.gateway_reference == reference)
        )
        return result.scalars().first()

    async def list_by_type(self, vendor_id: str, transaction_type: str) -> List[WalletTransaction]:
        result = await self.session.execute(
            select(WalletTransaction)
            .where(WalletTransaction.vendor_id == vendor_id)
            .where(WalletTransaction.type == transaction_type)
            .order_by(col(WalletTransaction.created_at).asc())
        )
        return list(result.scalars().all())


class WithdrawalRequestRepository(AsyncBaseRepository[WithdrawalRequest]):
    """Repository for withdrawal requests."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, WithdrawalRequest)

    async def search(
        self,
        vendor_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Tuple[List[WithdrawalRequest], int]:
        stmt = select(WithdrawalRequest).order_by(col(WithdrawalRequest.created_at).desc())
        if vendor_id:
            stmt = stmt.where(WithdrawalRequest.vendor_id == vendor_id)
        if status:
            stmt = stmt.where(WithdrawalRequest.status == status)
        return await self._page(stmt, limit, offset)
