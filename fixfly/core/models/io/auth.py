"""
Customer authentication I/O models.

Customers log in with phone number and OTP; these schemas cover
registration, OTP delivery/verification and the profile.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import Address, EmailAddress, PhoneNumber


class RegisterRequest(BaseModel):
    """Schema for registering a customer before OTP verification."""

    name: str = Field(min_length=1, max_length=100)
    email: EmailAddress = Field(description="Customer email, unique across customers")
    phone: PhoneNumber = Field(description="10 digit Indian mobile number, +91 prefix allowed")
    address: Optional[Address] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class SendOtpRequest(BaseModel):
    phone: PhoneNumber


class VerifyOtpRequest(BaseModel):
    phone: PhoneNumber
    otp: str = Field(pattern=r"^\d{6}$", description="6 digit one-time password")


class OtpSentResponse(BaseModel):
    success: bool = True
    message: str
    phone: str
    expires_in_seconds: int


class UserRead(BaseModel):
    """Schema for reading a customer."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    phone: str
    address: Dict[str, Any] = Field(default_factory=dict)
    is_phone_verified: bool
    is_active: bool
    is_blocked: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime


class UserAuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserRead


class ProfileUpdate(BaseModel):
    """Schema for a customer editing their own profile."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailAddress] = None
    address: Optional[Address] = None
