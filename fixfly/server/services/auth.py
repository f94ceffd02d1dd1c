"""
Customer authentication by phone OTP.
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import Optional

from fixfly.core.database import utc_now
from fixfly.core.database.entities.users import User
from fixfly.core.database.repositories import SqlRepoBundle
from fixfly.core.logging_config import get_logger
from fixfly.core.models.domain.enums import Role
from fixfly.core.models.io.auth import (
    OtpSentResponse,
    ProfileUpdate,
    RegisterRequest,
    UserAuthResponse,
    UserRead,
)
from fixfly.server.core.config import BookingConfig, settings
from fixfly.server.core.security import create_access_token
from fixfly.server.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)

from .sms import SmsService

logger = get_logger(__name__)


def generate_otp() -> str:
    return f"{secrets.randbelow(900000) + 100000}"


class AuthService:
    """Registration, OTP login and profile management for customers."""

    def __init__(self, repos: SqlRepoBundle, sms: SmsService, config: Optional[BookingConfig] = None):
        self.repos = repos
        self.sms = sms
        self.config = config or settings.booking

    async def _issue_otp(self, user: User) -> OtpSentResponse:
        otp = generate_otp()
        user.otp_code = otp
        user.otp_expires_at = utc_now() + timedelta(minutes=self.config.otp_expire_minutes)
        await self.repos.users.update(user)
        await self.sms.send_otp(user.phone, otp)
        await self.repos.commit()
        return OtpSentResponse(
            message="OTP sent successfully",
            phone=user.phone,
            expires_in_seconds=self.config.otp_expire_minutes * 60,
        )

    async def register(self, data: RegisterRequest) -> OtpSentResponse:
        """
        Register a customer, or refresh an unverified registration, and send an OTP.

        Raises:
            ValidationFailedError: The phone number already belongs to a verified customer
            ConflictError: The email belongs to another customer
        """
        user = await self.repos.users.get_by_phone(data.phone)
        if user is not None and user.is_phone_verified:
            raise ValidationFailedError(
                "User already registered with this phone number, please login", error_code="ALREADY_REGISTERED"
            )

        email_owner = await self.repos.users.get_by_email(data.email)
        if email_owner is not None and (user is None or email_owner.id != user.id):
            raise ConflictError("email", "Email is already registered with another account")

        address = data.address.model_dump(exclude_none=True) if data.address else {}
        if user is None:
            user = await self.repos.users.create(
                User(name=data.name, email=data.email, phone=data.phone, address=address)
            )
            logger.info(f"Registered new customer {user.id}")
        else:
            user.name = data.name
            user.email = data.email
            if address:
                user.address = address
            logger.info(f"Refreshed unverified registration for customer {user.id}")
        return await self._issue_otp(user)

    async def send_otp(self, phone: str) -> OtpSentResponse:
        user = await self.repos.users.get_by_phone(phone)
        if user is None or not user.name or not user.email:
            raise NotFoundError("User not found, please register", error_code="USER_NOT_FOUND")
        if user.is_blocked:
            raise PermissionDeniedError("Your account has been blocked, please contact support")
        return await self._issue_otp(user)

    async def verify_otp(self, phone: str, otp: str) -> UserAuthResponse:
        user = await self.repos.users.get_by_phone(phone)
        if user is None:
            raise NotFoundError("User not found, please register", error_code="USER_NOT_FOUND")
        if (
            not user.otp_code
            or user.otp_expires_at is None
            or user.otp_expires_at < utc_now()
            or not secrets.compare_digest(user.otp_code, otp)
        ):
            raise ValidationFailedError("Invalid or expired OTP", error_code="INVALID_OTP")

        user.otp_code = None
        user.otp_expires_at = None
        user.is_phone_verified = True
        user.last_login_at = utc_now()
        user = await self.repos.users.update(user)
        await self.repos.commit()
        logger.info(f"Customer {user.id} logged in")
        return UserAuthResponse(token=create_access_token(user.id, Role.user), user=UserRead.model_validate(user))

    async def update_profile(self, user: User, data: ProfileUpdate) -> User:
        if data.email is not None and data.email != user.email:
            other = await self.repos.users.get_by_email(data.email)
            if other is not None and other.id != user.id:
                raise ConflictError("email", "Email is already registered with another account")
            user.email = data.email
        if data.name is not None:
            user.name = data.name
        if data.address is not None:
            user.address = data.address.model_dump(exclude_none=True)
        user = await self.repos.users.update(user)
        await self.repos.commit()
        return user
