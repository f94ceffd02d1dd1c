"""
Vendor wallet I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WalletRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    vendor_id: str
    current_balance: float
    security_deposit: float
    available_for_withdrawal: float
    total_earnings: float
    total_penalties: float
    total_withdrawals: float
    total_deposits: float
    total_task_acceptance_fees: float
    total_cash_collections: float
    total_refunds: float
    total_tasks_completed: int
    total_tasks_rejected: int
    total_tasks_cancelled: int
    total_rejection_penalties: float
    total_cancellation_penalties: float
    last_transaction_at: Optional[datetime] = None
    is_active: bool


class WalletOverview(BaseModel):
    """Wallet balances plus the vendor's task eligibility."""

    wallet: WalletRead
    can_accept_tasks: bool
    eligibility_reason: Optional[str] = None


class WalletTransactionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    transaction_id: str
    vendor_id: str
    case_id: Optional[str] = None
    type: str
    amount: float
    description: str
    status: str
    payment_method: str
    billing_amount: float
    spare_amount: float
    travelling_amount: float
    gst_included: bool
    gst_amount: float
    calculated_amount: float
    processed_by: str
    created_at: datetime


class MonthlyEarning(BaseModel):
    year: int
    month: int
    amount: float


class DepositOrderRequest(BaseModel):
    amount: float = Field(gt=0, description="Deposit amount in rupees")


class DepositVerifyRequest(BaseModel):
    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)


class BankDetails(BaseModel):
    account_number: str = Field(pattern=r"^\d{9,18}$")
    ifsc_code: str = Field(pattern=r"^[A-Za-z]{4}0[A-Za-z0-9]{6}$")
    bank_name: str = Field(min_length=1, max_length=100)
    account_holder_name: str = Field(min_length=1, max_length=100)

    @field_validator("ifsc_code")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper()


class WithdrawalCreate(BaseModel):
    amount: float = Field(ge=1)
    bank_details: BankDetails


class WithdrawalRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    vendor_id: str
    amount: float
    status: str
    bank_details: Dict[str, Any]
    admin_notes: str
    processed_at: Optional[datetime] = None
    transaction_id: Optional[str] = None
    created_at: datetime


class WithdrawalDecision(BaseModel):
    admin_notes: str = Field(default="", max_length=1000)


class ManualAdjustment(BaseModel):
    amount: float = Field(description="Signed amount: positive credits, negative debits")
    description: str = Field(min_length=1, max_length=500)

    @field_validator("amount")
    @classmethod
    def _non_zero(cls, value: float) -> float:
        if value == 0:
            raise ValueError("Adjustment amount cannot be zero")
        return value
