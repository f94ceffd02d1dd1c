"""
Customer Authentication Endpoints.

Customers register with name, email and phone and log in with a one-time
password delivered by SMS.
"""

from fastapi import APIRouter

from fixfly.core.models.io.auth import (
    OtpSentResponse,
    ProfileUpdate,
    RegisterRequest,
    SendOtpRequest,
    UserAuthResponse,
    UserRead,
    VerifyOtpRequest,
)
from fixfly.server.services.deps import AuthServiceDep, CurrentUserDep

router = APIRouter()


@router.post(
    "/register",
    response_model=OtpSentResponse,
    summary="Register Customer",
    description="Register a new customer, or complete an unverified registration, and send a login OTP.",
    response_description="Confirmation that the OTP was sent.",
    responses={400: {"description": "Phone already registered or email taken"}},
)
async def register(data: RegisterRequest, auth: AuthServiceDep) -> OtpSentResponse:
    """
    Register a customer.

    - **name**: Customer name
    - **email**: Unique email address
    - **phone**: 10 digit mobile number, a +91 prefix is accepted
    - **address**: Optional postal address
    """
    return await auth.register(data)


@router.post(
    "/send-otp",
    response_model=OtpSentResponse,
    summary="Send Login OTP",
    description="Send a 6 digit OTP to a registered customer's phone.",
    response_description="Confirmation that the OTP was sent.",
    responses={404: {"description": "User not found, please register"}},
)
async def send_otp(data: SendOtpRequest, auth: AuthServiceDep) -> OtpSentResponse:
    return await auth.send_otp(data.phone)


@router.post(
    "/verify-otp",
    response_model=UserAuthResponse,
    summary="Verify OTP",
    description="Exchange a valid OTP for an access token.",
    response_description="Access token and customer profile.",
    responses={400: {"description": "Invalid or expired OTP"}},
)
async def verify_otp(data: VerifyOtpRequest, auth: AuthServiceDep) -> UserAuthResponse:
    return await auth.verify_otp(data.phone, data.otp)


@router.get(
    "/me",
    response_model=UserRead,
    summary="Current Customer",
    description="Return the profile of the authenticated customer.",
)
async def me(user: CurrentUserDep) -> UserRead:
    return UserRead.model_validate(user)


@router.put(
    "/profile",
    response_model=UserRead,
    summary="Update Profile",
    description="Update name, email or address of the authenticated customer.",
    responses={400: {"description": "Email already in use"}},
)
async def update_profile(data: ProfileUpdate, user: CurrentUserDep, auth: AuthServiceDep) -> UserRead:
    user = await auth.update_profile(user, data)
    return UserRead.model_validate(user)
