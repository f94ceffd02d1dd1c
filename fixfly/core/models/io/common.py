"""
Shared I/O building blocks: phone/email normalisation, addresses and pages.
"""

from __future__ import annotations

import re
from typing import Annotated, Generic, List, Optional, TypeVar

from pydantic import AfterValidator, BaseModel, BeforeValidator, EmailStr, Field

PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")

T = TypeVar("T")


def normalize_phone(raw: str) -> str:
    """
    Normalise an Indian mobile number to its 10 digit form.

    Non-digits are stripped and a leading ``91`` country code is dropped.

    Raises:
        ValueError: The result is not a valid Indian mobile number
    """
    digits = re.sub(r"\D", "", raw or "")
    if len(digits) == 12 and digits.startswith("91"):
        digits = digits[2:]
    if not PHONE_PATTERN.match(digits):
        raise ValueError("Please enter a valid 10-digit Indian mobile number")
    return digits


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def normalize_email(email: str) -> str:
    """Lower-case an address ``EmailStr`` already accepted, so lookups ignore case."""
    return email.lower()


class Address(BaseModel):
    """Postal address."""

    street: str = Field(default="", max_length=200)
    city: str = Field(default="", max_length=100)
    state: str = Field(default="", max_length=100)
    pincode: Optional[str] = Field(default=None, pattern=r"^\d{6}$", description="6 digit PIN code")
    landmark: Optional[str] = Field(default=None, max_length=200)


class Page(BaseModel, Generic[T]):
    """One page of a paginated listing."""

    items: List[T]
    total: int = Field(description="Total number of matching records")
    limit: int
    offset: int


class MessageResponse(BaseModel):
    success: bool = True
    message: str


PhoneNumber = Annotated[str, AfterValidator(normalize_phone)]
EmailAddress = Annotated[EmailStr, BeforeValidator(_strip), AfterValidator(normalize_email)]
