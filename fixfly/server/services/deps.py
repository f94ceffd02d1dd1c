"""
FastAPI dependencies.

Database session and repository bundle, the authenticated principal for each
role, admin permission guards and the service instances used by the routers.
"""

from typing import Annotated, Any, Callable, Coroutine, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from fixfly.core.database import get_session
from fixfly.core.database.entities.admins import Admin
from fixfly.core.database.entities.users import User
from fixfly.core.database.entities.vendors import Vendor
from fixfly.core.database.repositories import SqlRepoBundle, build_sql_repos_from_session
from fixfly.core.models.domain.enums import AdminPermission, AdminRole, NotificationRecipient, Role
from fixfly.server.core.security import decode_access_token
from fixfly.server.errors import AuthenticationError, PermissionDeniedError

from .admin import AdminService, has_permission
from .amc import AMCService
from .auth import AuthService
from .auto_reject import AutoRejectService, get_auto_reject_service
from .bookings import BookingService
from .notifications import NotificationService
from .payments import PaymentService
from .razorpay import RazorpayClient, get_razorpay_client
from .reviews import ReviewService
from .sms import SmsService, get_sms_service
from .support_tickets import SupportTicketService
from .uploads import UploadService, get_upload_service
from .vendors import VendorService
from .wallet import WalletService

bearer_scheme = HTTPBearer(auto_error=False)

SessionDep = Annotated[AsyncSession, Depends(get_session)]
CredentialsDep = Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)]


def get_repos(session: SessionDep) -> SqlRepoBundle:
    return build_sql_repos_from_session(session=session)


ReposDep = Annotated[SqlRepoBundle, Depends(get_repos)]
RazorpayDep = Annotated[RazorpayClient, Depends(get_razorpay_client)]
SmsDep = Annotated[SmsService, Depends(get_sms_service)]
UploadServiceDep = Annotated[UploadService, Depends(get_upload_service)]
AutoRejectDep = Annotated[AutoRejectService, Depends(get_auto_reject_service)]


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


def _claims(credentials: Optional[HTTPAuthorizationCredentials], role: Role) -> dict[str, Any]:
    """Decode the bearer token and check it was issued for ``role``."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access denied. No token provided.")
    claims = decode_access_token(credentials.credentials)
    if claims.get("role") != role.value:
        raise AuthenticationError("Invalid token for this resource")
    return claims


def _subject_id(claims: dict[str, Any]) -> int:
    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError("Invalid token")


async def get_current_user(credentials: CredentialsDep, repos: ReposDep) -> User:
    claims = _claims(credentials, Role.user)
    user = await repos.users.get_by_id(_subject_id(claims))
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active or user.is_blocked:
        raise AuthenticationError("Account is inactive or blocked")
    return user


async def get_optional_user(credentials: CredentialsDep, repos: ReposDep) -> Optional[User]:
    """Same as ``get_current_user`` but anonymous or unusable tokens yield ``None``."""
    if credentials is None:
        return None
    try:
        return await get_current_user(credentials, repos)
    except (AuthenticationError, jwt.InvalidTokenError):
        return None


async def get_current_vendor(credentials: CredentialsDep, repos: ReposDep) -> Vendor:
    claims = _claims(credentials, Role.vendor)
    vendor = await repos.vendors.get_by_id(_subject_id(claims))
    if vendor is None:
        raise AuthenticationError("Vendor not found")
    if not vendor.is_active or vendor.is_blocked:
        raise AuthenticationError("Vendor account is inactive or blocked")
    return vendor


async def get_current_admin(credentials: CredentialsDep, repos: ReposDep) -> Admin:
    claims = _claims(credentials, Role.admin)
    admin = await repos.admins.get_by_id(_subject_id(claims))
    if admin is None or not admin.is_active:
        raise AuthenticationError("Admin not found or deactivated")
    return admin


async def get_any_principal(credentials: CredentialsDep, repos: ReposDep) -> User | Vendor | Admin:
    """Accept a token issued to any role."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access denied. No token provided.")
    role = decode_access_token(credentials.credentials).get("role")
    if role == Role.vendor.value:
        return await get_current_vendor(credentials, repos)
    if role == Role.admin.value:
        return await get_current_admin(credentials, repos)
    return await get_current_user(credentials, repos)


async def get_recipient(credentials: CredentialsDep, repos: ReposDep) -> tuple[NotificationRecipient, str]:
    """Resolve the token holder to a notification recipient (customer or vendor)."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access denied. No token provided.")
    if decode_access_token(credentials.credentials).get("role") == Role.vendor.value:
        vendor = await get_current_vendor(credentials, repos)
        return NotificationRecipient.vendor, vendor.vendor_id
    user = await get_current_user(credentials, repos)
    return NotificationRecipient.user, str(user.id)


CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[Optional[User], Depends(get_optional_user)]
CurrentVendorDep = Annotated[Vendor, Depends(get_current_vendor)]
CurrentAdminDep = Annotated[Admin, Depends(get_current_admin)]
AnyPrincipalDep = Annotated[User | Vendor | Admin, Depends(get_any_principal)]
RecipientDep = Annotated[tuple[NotificationRecipient, str], Depends(get_recipient)]


def require_permission(permission: AdminPermission) -> Callable[..., Coroutine[Any, Any, Admin]]:
    """Build a dependency that lets through admins holding ``permission``."""

    async def _check(admin: CurrentAdminDep) -> Admin:
        if not has_permission(admin, permission):
            raise PermissionDeniedError("You don't have permission to access this resource")
        return admin

    return _check


async def require_super_admin(admin: CurrentAdminDep) -> Admin:
    if admin.role != AdminRole.super_admin.value:
        raise PermissionDeniedError("Only super admins can perform this action")
    return admin


SuperAdminDep = Annotated[Admin, Depends(require_super_admin)]
UserManagerDep = Annotated[Admin, Depends(require_permission(AdminPermission.user_management))]
VendorManagerDep = Annotated[Admin, Depends(require_permission(AdminPermission.vendor_management))]
BookingManagerDep = Annotated[Admin, Depends(require_permission(AdminPermission.booking_management))]
PaymentManagerDep = Annotated[Admin, Depends(require_permission(AdminPermission.payment_management))]
SupportManagerDep = Annotated[Admin, Depends(require_permission(AdminPermission.support_management))]
AMCManagerDep = Annotated[Admin, Depends(require_permission(AdminPermission.amc_management))]
ServiceManagerDep = Annotated[Admin, Depends(require_permission(AdminPermission.service_management))]
AnalyticsDep = Annotated[Admin, Depends(require_permission(AdminPermission.analytics))]
SystemSettingsDep = Annotated[Admin, Depends(require_permission(AdminPermission.system_settings))]


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def get_auth_service(repos: ReposDep, sms: SmsDep) -> AuthService:
    return AuthService(repos, sms)


def get_vendor_service(repos: ReposDep) -> VendorService:
    return VendorService(repos)


def get_admin_service(repos: ReposDep) -> AdminService:
    return AdminService(repos)


def get_booking_service(repos: ReposDep, razorpay: RazorpayDep) -> BookingService:
    return BookingService(repos, razorpay)


def get_ticket_service(repos: ReposDep, razorpay: RazorpayDep) -> SupportTicketService:
    return SupportTicketService(repos, razorpay)


def get_amc_service(repos: ReposDep, razorpay: RazorpayDep) -> AMCService:
    return AMCService(repos, razorpay)


def get_payment_service(repos: ReposDep, razorpay: RazorpayDep) -> PaymentService:
    return PaymentService(repos, razorpay)


def get_wallet_service(repos: ReposDep) -> WalletService:
    return WalletService(repos)


def get_notification_service(repos: ReposDep) -> NotificationService:
    return NotificationService(repos)


def get_review_service(repos: ReposDep) -> ReviewService:
    return ReviewService(repos)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
VendorServiceDep = Annotated[VendorService, Depends(get_vendor_service)]
AdminServiceDep = Annotated[AdminService, Depends(get_admin_service)]
BookingServiceDep = Annotated[BookingService, Depends(get_booking_service)]
TicketServiceDep = Annotated[SupportTicketService, Depends(get_ticket_service)]
AMCServiceDep = Annotated[AMCService, Depends(get_amc_service)]
PaymentServiceDep = Annotated[PaymentService, Depends(get_payment_service)]
WalletServiceDep = Annotated[WalletService, Depends(get_wallet_service)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
ReviewServiceDep = Annotated[ReviewService, Depends(get_review_service)]
