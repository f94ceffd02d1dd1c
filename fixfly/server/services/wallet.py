"""
Vendor wallet service.

``WalletCalculator`` holds the pure billing arithmetic; ``WalletService``
applies it to the wallet totals and writes one ``WalletTransaction`` per
movement. Ledger methods never commit: callers commit through the repository
bundle so that a booking update and its wallet entries share a transaction.
The withdrawal workflow and admin adjustments are complete operations and
commit themselves.
"""

from __future__ import annotations

import re
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple

from fixfly.core.database import utc_now
from fixfly.core.database.entities.vendors import Vendor
from fixfly.core.database.entities.wallets import VendorWallet, WalletTransaction, WithdrawalRequest
from fixfly.core.database.repositories import SqlRepoBundle
from fixfly.core.logging_config import get_logger
from fixfly.core.models.domain.enums import (
    TRANSACTION_PREFIXES,
    LedgerPaymentMethod,
    PenaltyType,
    WalletTransactionStatus,
    WalletTransactionType,
    WithdrawalStatus,
)
from fixfly.core.models.io.vendors import TaskEligibility
from fixfly.core.models.io.wallets import (
    ManualAdjustment,
    MonthlyEarning,
    WalletOverview,
    WalletRead,
    WithdrawalCreate,
)
from fixfly.core.monitoring import log_wallet_transaction
from fixfly.server.core.config import WalletConfig, settings
from fixfly.server.errors import (
    DepositRequiredError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationFailedError,
)

logger = get_logger(__name__)

_AMOUNT_JUNK = re.compile(r"[^0-9.\-]")


@dataclass(frozen=True)
class EarningBreakdown:
    """Result of an earning or deduction calculation."""

    billing_amount: float
    spare_amount: float
    travelling_amount: float
    gst_included: bool
    gst_amount: float
    calculated_amount: float


@dataclass
class TransactionCheck:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class WalletCalculator:
    """Billing arithmetic for vendor payouts."""

    def __init__(self, config: Optional[WalletConfig] = None):
        self.config = config or settings.wallet

    @staticmethod
    def parse_amount(value: Any) -> float:
        """
        Parse a money amount that may be formatted for display.

        ``"₹1,200"`` becomes ``1200.0``; anything unparseable becomes ``0.0``.
        """
        if value is None or isinstance(value, bool):
            return 0.0
        if isinstance(value, (int, float)):
            return float(value)
        cleaned = _AMOUNT_JUNK.sub("", str(value))
        try:
            return float(cleaned)
        except ValueError:
            return 0.0

    def spare_total(self, spare_parts: Iterable[Any]) -> float:
        total = 0.0
        for part in spare_parts or []:
            amount = part.get("amount") if isinstance(part, dict) else getattr(part, "amount", None)
            total += self.parse_amount(amount)
        return round(total, 2)

    def gst(self, billing_amount: float, include_gst: bool, provided: float = 0.0) -> float:
        if not include_gst:
            return 0.0
        if provided and provided > 0:
            return round(provided, 2)
        return round(billing_amount * self.config.gst_rate, 2)

    def earning(
        self,
        billing_amount: float,
        spare_amount: float = 0.0,
        travelling_amount: float = 0.0,
        include_gst: bool = False,
        gst_amount: float = 0.0,
    ) -> EarningBreakdown:
        """
        Compute what the vendor earns for a completed job.

        Small jobs (billing at or below the threshold) pay the vendor the full
        billing plus GST. Larger jobs split the labour amount (billing minus
        spares and travel) by the commission rate and pass spares and travel
        through in full.
        """
        gst = self.gst(billing_amount, include_gst, gst_amount)
        if billing_amount <= self.config.small_job_threshold:
            amount = billing_amount + gst
        else:
            labour = billing_amount - spare_amount - travelling_amount
            amount = labour * self.config.commission_rate + spare_amount + travelling_amount
        return EarningBreakdown(
            billing_amount=billing_amount,
            spare_amount=spare_amount,
            travelling_amount=travelling_amount,
            gst_included=include_gst,
            gst_amount=gst,
            calculated_amount=round(amount, 2),
        )

    def cash_collection_deduction(
        self, billing_amount: float, spare_amount: float = 0.0, travelling_amount: float = 0.0
    ) -> float:
        """Company share of a cash job, taken from the vendor's wallet."""
        if billing_amount <= self.config.small_job_threshold:
            return 0.0
        labour = billing_amount - spare_amount - travelling_amount
        return round(labour * self.config.commission_rate, 2)


class WalletService:
    """Ledger operations on vendor wallets."""

    def __init__(self, repos: SqlRepoBundle, config: Optional[WalletConfig] = None):
        self.repos = repos
        self.config = config or settings.wallet
        self.calculator = WalletCalculator(self.config)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_or_create_wallet(self, vendor_id: str) -> VendorWallet:
        wallet = await self.repos.wallets.get_by_vendor_id(vendor_id, for_update=True)
        if wallet is None:
            wallet = await self.repos.wallets.create(VendorWallet(vendor_id=vendor_id))
            logger.info(f"Created wallet for vendor {vendor_id}")
        return wallet

    async def get_wallet(self, vendor_id: str) -> VendorWallet:
        wallet = await self.repos.wallets.get_by_vendor_id(vendor_id)
        if wallet is None:
            raise NotFoundError(f"Wallet for vendor {vendor_id} not found")
        return wallet

    def can_accept_new_tasks(self, vendor: Vendor, wallet: Optional[VendorWallet]) -> TaskEligibility:
        """
        Decide whether a vendor may accept another task.

        A vendor who was never assigned a task is always eligible. After that
        the mandatory deposit must have been paid, either flagged on the
        vendor or visible in the wallet totals.
        """
        if vendor.first_task_assigned_at is None:
            return TaskEligibility(can_accept=True, reason="First task")
        if vendor.has_mandatory_deposit:
            return TaskEligibility(can_accept=True, reason="Mandatory deposit paid")
        if vendor.has_initial_deposit and vendor.initial_deposit_amount == self.config.initial_deposit:
            return TaskEligibility(can_accept=True, reason="Initial deposit paid")
        if wallet is not None and (
            wallet.current_balance >= self.config.mandatory_deposit
            or wallet.total_deposits >= self.config.mandatory_deposit
        ):
            return TaskEligibility(can_accept=True, reason="Sufficient wallet balance")
        return TaskEligibility(
            can_accept=False,
            reason=f"Mandatory deposit of ₹{self.config.mandatory_deposit:.0f} required to accept tasks",
            error_code=DepositRequiredError.error_code,
        )

    async def ensure_can_accept(self, vendor: Vendor) -> None:
        wallet = await self.repos.wallets.get_by_vendor_id(vendor.vendor_id)
        eligibility = self.can_accept_new_tasks(vendor, wallet)
        if not eligibility.can_accept:
            raise DepositRequiredError(eligibility.reason)

    def validate_transaction(
        self, wallet: Optional[VendorWallet], transaction_type: WalletTransactionType, amount: float
    ) -> TransactionCheck:
        """Check a debit against the wallet without applying it."""
        check = TransactionCheck(is_valid=True)
        if wallet is None:
            check.errors.append("Wallet not found")
            check.is_valid = False
            return check
        if not wallet.is_active:
            check.errors.append("Wallet is inactive")
        if transaction_type == WalletTransactionType.withdrawal and amount > wallet.available_for_withdrawal:
            check.errors.append(
                f"Insufficient balance. Available: ₹{wallet.available_for_withdrawal:.2f}, Required: ₹{amount:.2f}"
            )
        if transaction_type in (WalletTransactionType.penalty, WalletTransactionType.task_acceptance_fee):
            if wallet.current_balance < amount:
                check.errors.append(
                    f"Insufficient balance for {transaction_type.value}. "
                    f"Current: ₹{wallet.current_balance:.2f}, Required: ₹{amount:.2f}"
                )
        if wallet.current_balance < wallet.security_deposit:
            check.warnings.append("Balance is below security deposit amount")
        check.is_valid = not check.errors
        return check

    # ------------------------------------------------------------------
    # Ledger entries
    # ------------------------------------------------------------------

    async def _record(
        self,
        wallet: VendorWallet,
        transaction_type: WalletTransactionType,
        amount: float,
        description: str,
        **fields: Any,
    ) -> WalletTransaction:
        transaction = WalletTransaction(
            transaction_id=f"{TRANSACTION_PREFIXES[transaction_type]}_{wallet.vendor_id}_{int(time.time() * 1000)}",
            vendor_id=wallet.vendor_id,
            type=transaction_type.value,
            amount=round(amount, 2),
            description=description,
            **fields,
        )
        wallet.last_transaction_at = utc_now()
        await self.repos.wallets.update(wallet)
        transaction = await self.repos.wallet_transactions.create(transaction)
        log_wallet_transaction(wallet.vendor_id, transaction_type.value, transaction.amount, wallet.current_balance)
        logger.info(
            f"Wallet {wallet.vendor_id}: {transaction_type.value} {transaction.amount:+.2f}, "
            f"balance {wallet.current_balance:.2f}"
        )
        return transaction

    async def add_earning(
        self,
        vendor_id: str,
        *,
        case_id: str,
        billing_amount: float,
        spare_amount: float = 0.0,
        travelling_amount: float = 0.0,
        include_gst: bool = False,
        gst_amount: float = 0.0,
        payment_method: LedgerPaymentMethod = LedgerPaymentMethod.online,
        description: Optional[str] = None,
    ) -> Optional[WalletTransaction]:
        """
        Credit the vendor's earning for a completed job.

        Returns ``None`` when an earning for the same case and payment method
        was already recorded.
        """
        existing = await self.repos.wallet_transactions.find_for_case(
            vendor_id, case_id, WalletTransactionType.earning.value, payment_method.value
        )
        if existing is not None:
            logger.info(f"Earning for {case_id} ({payment_method.value}) already recorded for vendor {vendor_id}")
            return None

        breakdown = self.calculator.earning(billing_amount, spare_amount, travelling_amount, include_gst, gst_amount)
        wallet = await self.get_or_create_wallet(vendor_id)
        wallet.current_balance += breakdown.calculated_amount
        wallet.total_earnings += breakdown.calculated_amount
        wallet.total_tasks_completed += 1
        return await self._record(
            wallet,
            WalletTransactionType.earning,
            breakdown.calculated_amount,
            description or f"Earning for {case_id}",
            case_id=case_id,
            payment_method=payment_method.value,
            billing_amount=breakdown.billing_amount,
            spare_amount=breakdown.spare_amount,
            travelling_amount=breakdown.travelling_amount,
            gst_included=breakdown.gst_included,
            gst_amount=breakdown.gst_amount,
            calculated_amount=breakdown.calculated_amount,
        )

    async def add_cash_collection(
        self,
        vendor_id: str,
        *,
        case_id: str,
        billing_amount: float,
        spare_amount: float = 0.0,
        travelling_amount: float = 0.0,
        description: Optional[str] = None,
    ) -> Optional[WalletTransaction]:
        """Deduct the company share of a cash job, once per case."""
        existing = await self.repos.wallet_transactions.find_for_case(
            vendor_id, case_id, WalletTransactionType.cash_collection.value
        )
        if existing is not None:
            logger.info(f"Cash collection for {case_id} already recorded for vendor {vendor_id}")
            return None

        deduction = self.calculator.cash_collection_deduction(billing_amount, spare_amount, travelling_amount)
        wallet = await self.get_or_create_wallet(vendor_id)
        wallet.current_balance = max(0.0, wallet.current_balance - deduction)
        wallet.total_cash_collections += deduction
        return await self._record(
            wallet,
            WalletTransactionType.cash_collection,
            -deduction,
            description or f"Cash collection deduction for {case_id}",
            case_id=case_id,
            payment_method=LedgerPaymentMethod.cash.value,
            billing_amount=billing_amount,
            spare_amount=spare_amount,
            travelling_amount=travelling_amount,
            calculated_amount=deduction,
        )

    async def ensure_cash_collection_affordable(
        self, vendor_id: str, billing_amount: float, spare_amount: float = 0.0, travelling_amount: float = 0.0
    ) -> float:
        """Raise unless the wallet can cover the cash collection deduction."""
        deduction = self.calculator.cash_collection_deduction(billing_amount, spare_amount, travelling_amount)
        if deduction <= 0:
            return deduction
        wallet = await self.repos.wallets.get_by_vendor_id(vendor_id)
        balance = wallet.current_balance if wallet else 0.0
        if balance < deduction:
            raise InsufficientBalanceError(
                f"Insufficient wallet balance. Required: ₹{deduction:.2f}, Available: ₹{balance:.2f}",
                details={"required": deduction, "available": balance},
            )
        return deduction

    async def add_penalty(
        self,
        vendor_id: str,
        *,
        amount: float,
        penalty_type: PenaltyType,
        case_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> WalletTransaction:
        """Debit a penalty. The balance never goes below zero."""
        wallet = await self.get_or_create_wallet(vendor_id)
        wallet.current_balance = max(0.0, wallet.current_balance - amount)
        wallet.total_penalties += amount
        if penalty_type in (PenaltyType.rejection, PenaltyType.auto_rejection):
            wallet.total_tasks_rejected += 1
            wallet.total_rejection_penalties += amount
        elif penalty_type == PenaltyType.cancellation:
            wallet.total_tasks_cancelled += 1
            wallet.total_cancellation_penalties += amount
        return await self._record(
            wallet,
            WalletTransactionType.penalty,
            -amount,
            description or f"{penalty_type.value.replace('_', ' ').capitalize()} penalty",
            case_id=case_id,
            payment_method=LedgerPaymentMethod.system.value,
            calculated_amount=amount,
            details={"penalty_type": penalty_type.value},
        )

    async def add_deposit(
        self,
        vendor_id: str,
        *,
        amount: float,
        description: str = "Wallet deposit",
        gateway_reference: Optional[str] = None,
    ) -> WalletTransaction:
        if amount <= 0:
            raise ValidationFailedError("Deposit amount must be positive")
        wallet = await self.get_or_create_wallet(vendor_id)
        wallet.current_balance += amount
        wallet.total_deposits += amount
        transaction = await self._record(
            wallet,
            WalletTransactionType.deposit,
            amount,
            description,
            gateway_reference=gateway_reference,
            payment_method=LedgerPaymentMethod.online.value,
            billing_amount=amount,
            calculated_amount=amount,
        )
        await self._mark_deposit_flags(vendor_id, amount)
        return transaction

    async def _mark_deposit_flags(self, vendor_id: str, amount: float) -> None:
        vendor = await self.repos.vendors.get_by_vendor_id(vendor_id)
        if vendor is None:
            return
        if amount >= self.config.mandatory_deposit and not vendor.has_mandatory_deposit:
            vendor.has_mandatory_deposit = True
            vendor.mandatory_deposit_paid_at = utc_now()
        if amount == self.config.initial_deposit and not vendor.has_initial_deposit:
            vendor.has_initial_deposit = True
            vendor.initial_deposit_amount = amount
        await self.repos.vendors.update(vendor)

    async def create_pending_deposit(self, vendor_id: str, *, amount: float, order_id: str) -> WalletTransaction:
        """Record a deposit awaiting gateway confirmation for ``order_id``."""
        wallet = await self.get_or_create_wallet(vendor_id)
        return await self.repos.wallet_transactions.create(
            WalletTransaction(
                transaction_id=f"{TRANSACTION_PREFIXES[WalletTransactionType.deposit]}_{vendor_id}_{int(time.time() * 1000)}",
                vendor_id=wallet.vendor_id,
                gateway_reference=order_id,
                type=WalletTransactionType.deposit.value,
                amount=round(amount, 2),
                description="Wallet deposit (awaiting payment)",
                status=WalletTransactionStatus.pending.value,
                payment_method=LedgerPaymentMethod.online.value,
                billing_amount=amount,
                calculated_amount=amount,
            )
        )

    async def complete_pending_deposit(self, order_id: str, payment_id: str) -> Tuple[WalletTransaction, bool]:
        """
        Credit a pending deposit once its payment is confirmed.

        Returns:
            The ledger entry and whether this call applied it (``False`` when
            it had already been completed).
        """
        transaction = await self.repos.wallet_transactions.get_by_gateway_reference(order_id)
        if transaction is None or transaction.type != WalletTransactionType.deposit.value:
            raise NotFoundError(f"No wallet deposit for order {order_id}")
        if transaction.status == WalletTransactionStatus.completed.value:
            return transaction, False

        wallet = await self.get_or_create_wallet(transaction.vendor_id)
        wallet.current_balance += transaction.amount
        wallet.total_deposits += transaction.amount
        wallet.last_transaction_at = utc_now()
        await self.repos.wallets.update(wallet)

        transaction.status = WalletTransactionStatus.completed.value
        transaction.description = "Wallet deposit"
        transaction.details = {**(transaction.details or {}), "razorpay_payment_id": payment_id}
        transaction = await self.repos.wallet_transactions.update(transaction)
        await self._mark_deposit_flags(transaction.vendor_id, transaction.amount)
        log_wallet_transaction(transaction.vendor_id, transaction.type, transaction.amount, wallet.current_balance)
        logger.info(f"Deposit {transaction.transaction_id} of {transaction.amount:.2f} credited to {wallet.vendor_id}")
        return transaction, True

    async def add_withdrawal(
        self, vendor_id: str, *, amount: float, description: str = "Wallet withdrawal"
    ) -> WalletTransaction:
        wallet = await self.get_or_create_wallet(vendor_id)
        if amount > wallet.available_for_withdrawal:
            raise InsufficientBalanceError(
                "Insufficient balance for withdrawal. Security deposit cannot be withdrawn.",
                details={"available": wallet.available_for_withdrawal, "requested": amount},
            )
        wallet.current_balance -= amount
        wallet.total_withdrawals += amount
        return await self._record(
            wallet,
            WalletTransactionType.withdrawal,
            -amount,
            description,
            payment_method=LedgerPaymentMethod.online.value,
            billing_amount=amount,
            calculated_amount=amount,
        )

    async def add_refund(
        self, vendor_id: str, *, amount: float, case_id: Optional[str] = None, description: str = "Penalty refund"
    ) -> WalletTransaction:
        wallet = await self.get_or_create_wallet(vendor_id)
        wallet.current_balance += amount
        wallet.total_refunds += amount
        return await self._record(
            wallet,
            WalletTransactionType.refund,
            amount,
            description,
            case_id=case_id,
            billing_amount=amount,
            calculated_amount=amount,
        )

    async def add_manual_adjustment(
        self, vendor_id: str, *, amount: float, description: str, admin_id: Optional[int] = None
    ) -> WalletTransaction:
        """Apply a signed admin correction. Debits cannot take the balance below zero."""
        wallet = await self.repos.wallets.get_by_vendor_id(vendor_id, for_update=True)
        if wallet is None:
            raise NotFoundError(f"Wallet for vendor {vendor_id} not found")
        if amount < 0 and wallet.current_balance + amount < 0:
            raise InsufficientBalanceError(
                f"Adjustment would make the balance negative. Current: ₹{wallet.current_balance:.2f}"
            )
        wallet.current_balance += amount
        return await self._record(
            wallet,
            WalletTransactionType.manual_adjustment,
            amount,
            description,
            processed_by="admin",
            calculated_amount=abs(amount),
            details={"admin_id": admin_id},
        )

    async def adjust(self, vendor_id: str, data: ManualAdjustment, *, admin_id: int) -> WalletTransaction:
        transaction = await self.add_manual_adjustment(
            vendor_id, amount=data.amount, description=data.description, admin_id=admin_id
        )
        await self.repos.commit()
        return transaction

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def overview(self, vendor: Vendor) -> WalletOverview:
        wallet = await self.repos.wallets.get_by_vendor_id(vendor.vendor_id)
        if wallet is None:
            wallet = await self.get_or_create_wallet(vendor.vendor_id)
            await self.repos.commit()
        eligibility = self.can_accept_new_tasks(vendor, wallet)
        return WalletOverview(
            wallet=WalletRead.model_validate(wallet),
            can_accept_tasks=eligibility.can_accept,
            eligibility_reason=eligibility.reason,
        )

    async def list_transactions(
        self, vendor_id: str, transaction_type: Optional[str] = None, limit: int = 20, offset: int = 0
    ) -> Tuple[List[WalletTransaction], int]:
        return await self.repos.wallet_transactions.list_for_vendor(
            vendor_id, transaction_type=transaction_type, limit=limit, offset=offset
        )

    async def monthly_summary(self, vendor_id: str, months: int = 12) -> List[MonthlyEarning]:
        """Earnings per calendar month, oldest first, for the last ``months`` months."""
        earnings = await self.repos.wallet_transactions.list_by_type(vendor_id, WalletTransactionType.earning.value)
        cutoff = _month_start(utc_now(), months - 1)
        totals: dict[tuple[int, int], float] = defaultdict(float)
        for entry in earnings:
            if entry.created_at >= cutoff:
                totals[(entry.created_at.year, entry.created_at.month)] += entry.amount
        return [
            MonthlyEarning(year=year, month=month, amount=round(amount, 2))
            for (year, month), amount in sorted(totals.items())
        ]

    # ------------------------------------------------------------------
    # Withdrawal requests
    # ------------------------------------------------------------------

    async def list_withdrawals(
        self, vendor_id: Optional[str] = None, status: Optional[str] = None, limit: int = 20, offset: int = 0
    ) -> Tuple[List[WithdrawalRequest], int]:
        return await self.repos.withdrawals.search(vendor_id=vendor_id, status=status, limit=limit, offset=offset)

    async def request_withdrawal(self, vendor_id: str, data: WithdrawalCreate) -> WithdrawalRequest:
        wallet = await self.get_wallet(vendor_id)
        check = self.validate_transaction(wallet, WalletTransactionType.withdrawal, data.amount)
        if not check.is_valid:
            raise InsufficientBalanceError("; ".join(check.errors))
        request = WithdrawalRequest(
            vendor_id=vendor_id,
            amount=data.amount,
            bank_details=data.bank_details.model_dump(),
        )
        request = await self.repos.withdrawals.create(request)
        await self.repos.commit()
        logger.info(f"Vendor {vendor_id} requested withdrawal of {data.amount:.2f}")
        return request

    async def _pending_withdrawal(self, withdrawal_id: int) -> WithdrawalRequest:
        request = await self.repos.withdrawals.get_by_id(withdrawal_id)
        if request is None:
            raise NotFoundError("Withdrawal request not found")
        if request.status != WithdrawalStatus.pending.value:
            raise ValidationFailedError(f"Withdrawal request is already {request.status}")
        return request

    async def approve_withdrawal(self, withdrawal_id: int, *, admin_id: int, admin_notes: str = "") -> WithdrawalRequest:
        """Approve a pending request and debit the wallet."""
        request = await self._pending_withdrawal(withdrawal_id)
        transaction = await self.add_withdrawal(
            request.vendor_id, amount=request.amount, description=f"Withdrawal request #{request.id}"
        )
        request.status = WithdrawalStatus.approved.value
        request.admin_notes = admin_notes
        request.processed_by = admin_id
        request.processed_at = utc_now()
        request.transaction_id = transaction.transaction_id
        request = await self.repos.withdrawals.update(request)
        await self.repos.commit()
        logger.info(f"Withdrawal #{request.id} of vendor {request.vendor_id} approved by admin {admin_id}")
        return request

    async def decline_withdrawal(self, withdrawal_id: int, *, admin_id: int, admin_notes: str = "") -> WithdrawalRequest:
        request = await self._pending_withdrawal(withdrawal_id)
        request.status = WithdrawalStatus.declined.value
        request.admin_notes = admin_notes
        request.processed_by = admin_id
        request.processed_at = utc_now()
        request = await self.repos.withdrawals.update(request)
        await self.repos.commit()
        logger.info(f"Withdrawal #{request.id} of vendor {request.vendor_id} declined by admin {admin_id}")
        return request


def _month_start(now: datetime, months_back: int) -> datetime:
    year, month = now.year, now.month - months_back
    while month <= 0:
        month += 12
        year -= 1
    return datetime(year, month, 1)
