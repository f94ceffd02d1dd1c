"""
Vendor Endpoints.

Field engineers register with email and password, log in and manage their
profile. Approval is done by an admin.
"""

from fastapi import APIRouter, status

from fixfly.core.models.io.vendors import (
    TaskEligibility,
    VendorAuthResponse,
    VendorLogin,
    VendorRead,
    VendorRegister,
    VendorStats,
    VendorUpdate,
)
from fixfly.server.services.deps import CurrentVendorDep, ReposDep, VendorServiceDep, WalletServiceDep

router = APIRouter()


@router.post(
    "/register",
    response_model=VendorRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register Vendor",
    description="Create a vendor account awaiting admin approval. A wallet is opened for the vendor.",
    response_description="The new vendor profile.",
    responses={400: {"description": "Email or phone already registered"}},
)
async def register(data: VendorRegister, vendors: VendorServiceDep) -> VendorRead:
    """
    Register a vendor.

    - **first_name**, **last_name**: Vendor name
    - **email**, **phone**: Must not be registered yet
    - **password**: At least 6 characters
    - **service_categories**: Kinds of repair the vendor handles
    """
    vendor = await vendors.register(data)
    return VendorRead.model_validate(vendor)


@router.post(
    "/login",
    response_model=VendorAuthResponse,
    summary="Vendor Login",
    description="Log in with email and password.",
    responses={401: {"description": "Invalid credentials or account blocked"}},
)
async def login(data: VendorLogin, vendors: VendorServiceDep) -> VendorAuthResponse:
    return await vendors.login(data)


@router.get("/me", response_model=VendorRead, summary="Current Vendor")
async def me(vendor: CurrentVendorDep) -> VendorRead:
    return VendorRead.model_validate(vendor)


@router.put("/me", response_model=VendorRead, summary="Update Vendor Profile")
async def update_me(data: VendorUpdate, vendor: CurrentVendorDep, vendors: VendorServiceDep) -> VendorRead:
    vendor = await vendors.update_profile(vendor, data)
    return VendorRead.model_validate(vendor)


@router.get(
    "/me/eligibility",
    response_model=TaskEligibility,
    summary="Task Eligibility",
    description="Whether the vendor may accept new tasks, with the reason when not.",
)
async def eligibility(vendor: CurrentVendorDep, repos: ReposDep, wallet: WalletServiceDep) -> TaskEligibility:
    return wallet.can_accept_new_tasks(vendor, await repos.wallets.get_by_vendor_id(vendor.vendor_id))


@router.get(
    "/me/stats",
    response_model=VendorStats,
    summary="Vendor Dashboard Stats",
    description="Task counts by status, wallet earnings and balance, and the vendor's average review rating.",
)
async def stats(vendor: CurrentVendorDep, vendors: VendorServiceDep) -> VendorStats:
    return await vendors.stats(vendor)
