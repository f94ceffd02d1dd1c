"""
Vendor wallet entity models.

The wallet holds running totals; every movement is also written as a
``WalletTransaction`` row so the totals can be audited.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, Text

from ..base import Base, utc_now


class VendorWallet(Base, table=True):
    """Entity for a vendor's wallet balances and counters.

    Table: vendor_wallets
    """

    __tablename__ = "vendor_wallets"

    id: Optional[int] = Field(default=None, primary_key=True)
    vendor_id: str = Field(max_length=3, unique=True, index=True)

    current_balance: float = Field(default=0.0)
    security_deposit: float = Field(default=0.0)

    total_earnings: float = Field(default=0.0)
    total_penalties: float = Field(default=0.0)
    total_withdrawals: float = Field(default=0.0)
    total_deposits: float = Field(default=0.0)
    total_task_acceptance_fees: float = Field(default=0.0)
    total_cash_collections: float = Field(default=0.0)
    total_refunds: float = Field(default=0.0)

    total_tasks_completed: int = Field(default=0)
    total_tasks_rejected: int = Field(default=0)
    total_tasks_cancelled: int = Field(default=0)
    total_rejection_penalties: float = Field(default=0.0)
    total_cancellation_penalties: float = Field(default=0.0)

    last_transaction_at: Optional[datetime] = Field(default=None)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    @property
    def available_for_withdrawal(self) -> float:
        return max(0.0, self.current_balance - self.security_deposit)

    def __repr__(self) -> str:
        return f"VendorWallet(vendor_id={self.vendor_id}, balance={self.current_balance})"


class WalletTransaction(Base, table=True):
    """Entity for a single wallet ledger entry.

    ``amount`` is signed: credits are positive, debits negative.

    Table: wallet_transactions
    """

    __tablename__ = "wallet_transactions"

    id: Optional[int] = Field(default=None, primary_key=True)
    transaction_id: str = Field(max_length=64, index=True)
    vendor_id: str = Field(max_length=3, index=True)
    case_id: Optional[str] = Field(default=None, max_length=32, index=True)
    gateway_reference: Optional[str] = Field(default=None, max_length=64, index=True)

    type: str = Field(max_length=32, index=True)
    amount: float
    description: str = Field(sa_type=Text)
    status: str = Field(default="completed", max_length=16)
    payment_method: str = Field(default="system", max_length=16)

    billing_amount: float = Field(default=0.0)
    spare_amount: float = Field(default=0.0)
    travelling_amount: float = Field(default=0.0)
    gst_included: bool = Field(default=False)
    gst_amount: float = Field(default=0.0)
    calculated_amount: float = Field(default=0.0)

    processed_by: str = Field(default="system", max_length=16)
    details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    created_at: datetime = Field(default_factory=utc_now, index=True)

    def __repr__(self) -> str:
        return f"WalletTransaction(id={self.transaction_id}, type={self.type}, amount={self.amount})"


class WithdrawalRequest(Base, table=True):
    """Entity for a vendor's request to withdraw wallet funds.

    Table: withdrawal_requests
    """

    __tablename__ = "withdrawal_requests"

    id: Optional[int] = Field(default=None, primary_key=True)
    vendor_id: str = Field(max_length=3, index=True)
    amount: float = Field(ge=1)
    status: str = Field(default="pending", max_length=16, index=True)
    bank_details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    admin_notes: str = Field(default="", sa_type=Text)
    processed_by: Optional[int] = Field(default=None, foreign_key="admins.id")
    processed_at: Optional[datetime] = Field(default=None)
    transaction_id: Optional[str] = Field(default=None, max_length=64)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"WithdrawalRequest(vendor_id={self.vendor_id}, amount={self.amount}, status={self.status})"
