"""
AMC (Annual Maintenance Contract) Endpoints.

Public plan catalogue and customer subscriptions. Plan management for admins
lives in the admin router.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, status

from fixfly.core.models.domain.enums import SubscriptionStatus
from fixfly.core.models.io.amc import (
    AMCPlanRead,
    SubscriptionCancel,
    SubscriptionCreate,
    SubscriptionRead,
    SubscriptionUsage,
    SubscriptionVerify,
    SubscriptionWithOrder,
)
from fixfly.core.models.io.common import Page
from fixfly.server.services.amc import to_read
from fixfly.server.services.deps import AMCServiceDep, CurrentUserDep, PaymentServiceDep

router = APIRouter()


@router.get(
    "/plans",
    response_model=List[AMCPlanRead],
    summary="List AMC Plans",
    description="Active plans ordered by their display order.",
)
async def list_plans(amc: AMCServiceDep) -> List[AMCPlanRead]:
    return [AMCPlanRead.model_validate(plan) for plan in await amc.list_active_plans()]


@router.get(
    "/plans/{plan_id}",
    response_model=AMCPlanRead,
    summary="Get AMC Plan",
    responses={404: {"description": "Plan not found or not active"}},
)
async def get_plan(plan_id: int, amc: AMCServiceDep) -> AMCPlanRead:
    return AMCPlanRead.model_validate(await amc.get_plan(plan_id, active_only=True))


@router.post(
    "/subscriptions",
    response_model=SubscriptionWithOrder,
    status_code=status.HTTP_201_CREATED,
    summary="Subscribe",
    description="Create a subscription for the listed devices and a Razorpay order for plan price x devices.",
    response_description="The pending subscription and the order to pay.",
    responses={502: {"description": "Payment gateway unavailable, nothing was saved"}},
)
async def subscribe(data: SubscriptionCreate, user: CurrentUserDep, amc: AMCServiceDep) -> SubscriptionWithOrder:
    """
    Subscribe to an AMC plan.

    - **plan_id**: An active plan
    - **devices**: At least one device with type, serial number and model number
    - **payment_method**: Only `online` is supported
    """
    subscription, order = await amc.subscribe(user, data)
    return SubscriptionWithOrder(subscription=to_read(subscription), order=order)


@router.post(
    "/subscriptions/verify-payment",
    response_model=SubscriptionRead,
    summary="Verify Subscription Payment",
    description="Verify the checkout signature and activate or renew the subscription. Safe to repeat.",
    responses={400: {"description": "Order mismatch or invalid signature"}},
)
async def verify_payment(data: SubscriptionVerify, user: CurrentUserDep, payments: PaymentServiceDep) -> SubscriptionRead:
    return to_read(await payments.verify_subscription_payment(user, data))


@router.get("/subscriptions", response_model=Page[SubscriptionRead], summary="My Subscriptions")
async def list_subscriptions(
    user: CurrentUserDep,
    amc: AMCServiceDep,
    status: Optional[SubscriptionStatus] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[SubscriptionRead]:
    items, total = await amc.list_for_user(user, status.value if status else None, limit, offset)
    return Page[SubscriptionRead](items=[to_read(s) for s in items], total=total, limit=limit, offset=offset)


@router.get("/subscriptions/{subscription_id}", response_model=SubscriptionRead, summary="Get Subscription")
async def get_subscription(subscription_id: str, user: CurrentUserDep, amc: AMCServiceDep) -> SubscriptionRead:
    return to_read(await amc.get_for_user(user, subscription_id))


@router.patch("/subscriptions/{subscription_id}/cancel", response_model=SubscriptionRead, summary="Cancel Subscription")
async def cancel_subscription(
    subscription_id: str, user: CurrentUserDep, amc: AMCServiceDep, data: Optional[SubscriptionCancel] = None
) -> SubscriptionRead:
    return to_read(await amc.cancel(user, subscription_id, data.reason if data else None))


@router.post(
    "/subscriptions/{subscription_id}/renew",
    response_model=SubscriptionWithOrder,
    summary="Renew Subscription",
    description="Open a renewal order. The end date is extended once the payment is verified.",
)
async def renew_subscription(subscription_id: str, user: CurrentUserDep, amc: AMCServiceDep) -> SubscriptionWithOrder:
    subscription, order = await amc.renew(user, subscription_id)
    return SubscriptionWithOrder(subscription=to_read(subscription), order=order)


@router.get("/subscriptions/{subscription_id}/usage", response_model=SubscriptionUsage, summary="Subscription Usage")
async def subscription_usage(subscription_id: str, user: CurrentUserDep, amc: AMCServiceDep) -> SubscriptionUsage:
    return await amc.usage(user, subscription_id)
