"""
Unit tests for request and response models: phone and email normalisation,
booking payloads, wallet payloads and admin payloads.
"""

from datetime import date

import pytest
from pydantic import TypeAdapter, ValidationError

from fixfly.core.models.domain.enums import TRANSACTION_PREFIXES, PaymentMode, WalletTransactionType
from fixfly.core.models.io.admins import AdminCreate
from fixfly.core.models.io.amc import SubscriptionCreate
from fixfly.core.models.io.auth import ProfileUpdate, RegisterRequest, VerifyOtpRequest
from fixfly.core.models.io.bookings import AssignVendorRequest, BookingCreate, CompletionRequest
from fixfly.core.models.io.common import EmailAddress, Page, normalize_phone
from fixfly.core.models.io.wallets import BankDetails, ManualAdjustment, WithdrawalCreate


def booking_payload(**overrides):
    payload = {
        "customer": {
            "name": "Asha Rao",
            "email": "Asha@Example.com",
            "phone": "+91 98765 43210",
            "address": {"street": "12 MG Road", "city": "Bengaluru", "state": "KA", "pincode": "560001"},
        },
        "services": [{"service_id": "svc-1", "service_name": "Laptop repair", "price": 499}],
    }
    payload.update(overrides)
    return payload


class TestNormalizePhone:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("9876543210", "9876543210"),
            ("+91 98765 43210", "9876543210"),
            ("919876543210", "9876543210"),
            ("98765-43210", "9876543210"),
        ],
    )
    def test_valid_numbers(self, raw, expected):
        assert normalize_phone(raw) == expected

    @pytest.mark.parametrize("raw", ["", "12345", "5876543210", "98765432101", "+1 415 555 0100"])
    def test_invalid_numbers(self, raw):
        with pytest.raises(ValueError, match="10-digit"):
            normalize_phone(raw)


class TestEmailAddress:
    def test_lowercases_and_strips(self):
        assert TypeAdapter(EmailAddress).validate_python("  Asha@Example.COM ") == "asha@example.com"

    @pytest.mark.parametrize("raw", ["not-an-email", "a@b..c", '"x"@-.-', "asha@", "asha @example.com"])
    def test_rejects_malformed(self, raw):
        with pytest.raises(ValidationError):
            TypeAdapter(EmailAddress).validate_python(raw)

    def test_profile_update_rejects_malformed(self):
        with pytest.raises(ValidationError):
            ProfileUpdate(email="a@b..c")


class TestAuthModels:
    def test_register_normalises_fields(self):
        request = RegisterRequest(name="  Asha  ", email="ASHA@example.com", phone="+919876543210")

        assert request.name == "Asha"
        assert request.email == "asha@example.com"
        assert request.phone == "9876543210"

    def test_register_rejects_blank_name(self):
        with pytest.raises(ValidationError):
            RegisterRequest(name="   ", email="a@b.co", phone="9876543210")

    def test_otp_must_be_six_digits(self):
        with pytest.raises(ValidationError):
            VerifyOtpRequest(phone="9876543210", otp="12345")


class TestBookingModels:
    def test_booking_create_defaults(self):
        booking = BookingCreate.model_validate(booking_payload())

        assert booking.customer.phone == "9876543210"
        assert booking.customer.email == "asha@example.com"
        assert booking.payment_method.value == "cash"
        assert booking.priority.value == "medium"

    def test_booking_requires_a_service(self):
        with pytest.raises(ValidationError):
            BookingCreate.model_validate(booking_payload(services=[]))

    def test_booking_requires_pincode(self):
        payload = booking_payload()
        del payload["customer"]["address"]["pincode"]

        with pytest.raises(ValidationError):
            BookingCreate.model_validate(payload)

    def test_completion_accepts_display_amounts(self):
        completion = CompletionRequest(
            billing_amount=1500,
            spare_parts=[{"name": "SSD", "amount": "₹1,200"}],
            payment_method=PaymentMode.cash,
        )

        assert completion.spare_parts[0].amount == "₹1,200"

    def test_completion_rejects_negative_billing(self):
        with pytest.raises(ValidationError):
            CompletionRequest(billing_amount=-1, payment_method="cash")

    def test_assign_requires_three_digit_vendor_id(self):
        assert AssignVendorRequest(vendor_id="101", scheduled_date=date(2030, 1, 1)).vendor_id == "101"
        with pytest.raises(ValidationError):
            AssignVendorRequest(vendor_id="1010")


class TestWalletModels:
    def test_bank_details_uppercases_ifsc(self):
        details = BankDetails(
            account_number="123456789012",
            ifsc_code="hdfc0001234",
            bank_name="HDFC Bank",
            account_holder_name="Ravi Kumar",
        )

        assert details.ifsc_code == "HDFC0001234"

    @pytest.mark.parametrize("ifsc", ["HDFC1001234", "HDF0001234", "HDFC000123"])
    def test_bank_details_rejects_bad_ifsc(self, ifsc):
        with pytest.raises(ValidationError):
            BankDetails(account_number="123456789", ifsc_code=ifsc, bank_name="B", account_holder_name="R")

    def test_withdrawal_minimum_amount(self):
        bank = {"account_number": "123456789", "ifsc_code": "SBIN0000001", "bank_name": "SBI", "account_holder_name": "R"}
        with pytest.raises(ValidationError):
            WithdrawalCreate(amount=0.5, bank_details=bank)

    def test_manual_adjustment_rejects_zero(self):
        with pytest.raises(ValidationError, match="cannot be zero"):
            ManualAdjustment(amount=0, description="noop")

    def test_manual_adjustment_allows_debit(self):
        assert ManualAdjustment(amount=-50, description="correction").amount == -50

    def test_every_transaction_type_has_a_prefix(self):
        assert set(TRANSACTION_PREFIXES) == set(WalletTransactionType)


class TestMiscModels:
    def test_subscription_needs_a_device(self):
        with pytest.raises(ValidationError):
            SubscriptionCreate(plan_id=1, devices=[])

    def test_admin_password_minimum_length(self):
        with pytest.raises(ValidationError):
            AdminCreate(name="Ops", email="ops@fixfly.in", password="short")

    def test_page_is_generic(self):
        page = Page[int](items=[1, 2], total=5, limit=2, offset=0)

        assert page.model_dump() == {"items": [1, 2], "total": 5, "limit": 2, "offset": 0}
