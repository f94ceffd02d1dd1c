"""
AMC plans and customer subscriptions.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from fixfly.core.database import utc_now
from fixfly.core.database.entities.amc import AMCPlan, AMCSubscription
from fixfly.core.database.entities.users import User
from fixfly.core.database.repositories import SqlRepoBundle
from fixfly.core.logging_config import get_logger
from fixfly.core.models.domain.enums import (
    NotificationType,
    PaymentState,
    PlanStatus,
    SubscriptionStatus,
)
from fixfly.core.models.io.amc import (
    AMCPlanCreate,
    AMCPlanUpdate,
    SubscriptionCreate,
    SubscriptionRead,
    SubscriptionUsage,
)
from fixfly.core.models.io.payments import RazorpayOrderRead
from fixfly.server.errors import ConflictError, ExternalServiceError, NotFoundError, PermissionDeniedError, ValidationFailedError

from .notifications import NotificationService
from .razorpay import RazorpayClient

logger = get_logger(__name__)

SUBSCRIPTION_COUNTER = "amc_subscription"


def days_remaining(subscription: AMCSubscription, now: Optional[datetime] = None) -> int:
    if subscription.end_date is None:
        return 0
    now = now or utc_now()
    remaining = subscription.end_date - now
    if remaining.total_seconds() <= 0:
        return 0
    return remaining.days + (1 if remaining.seconds or remaining.microseconds else 0)


def is_expired(subscription: AMCSubscription, now: Optional[datetime] = None) -> bool:
    if subscription.status == SubscriptionStatus.expired.value:
        return True
    return subscription.end_date is not None and subscription.end_date <= (now or utc_now())


def to_read(subscription: AMCSubscription) -> SubscriptionRead:
    read = SubscriptionRead.model_validate(subscription)
    return read.model_copy(update={"days_remaining": days_remaining(subscription), "is_expired": is_expired(subscription)})


class AMCService:
    def __init__(self, repos: SqlRepoBundle, razorpay: Optional[RazorpayClient] = None):
        self.repos = repos
        self.razorpay = razorpay
        self.notifications = NotificationService(repos)

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    async def list_active_plans(self) -> List[AMCPlan]:
        return await self.repos.amc_plans.list_ordered(status=PlanStatus.active.value)

    async def list_all_plans(self) -> List[AMCPlan]:
        return await self.repos.amc_plans.list_ordered()

    async def get_plan(self, plan_id: int, *, active_only: bool = False) -> AMCPlan:
        plan = await self.repos.amc_plans.get_by_id(plan_id)
        if plan is None or (active_only and plan.status != PlanStatus.active.value):
            raise NotFoundError("AMC plan not found")
        return plan

    async def create_plan(self, data: AMCPlanCreate) -> AMCPlan:
        if await self.repos.amc_plans.get_by_name(data.name):
            raise ConflictError("name", "AMC plan with this name already exists")
        plan = AMCPlan.model_validate(data.model_dump(mode="json"))
        plan = await self.repos.amc_plans.create(plan)
        await self.repos.commit()
        logger.info(f"Created AMC plan {plan.name}")
        return plan

    async def update_plan(self, plan_id: int, data: AMCPlanUpdate) -> AMCPlan:
        plan = await self.get_plan(plan_id)
        changes = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        if "name" in changes and changes["name"] != plan.name:
            if await self.repos.amc_plans.get_by_name(changes["name"]):
                raise ConflictError("name", "AMC plan with this name already exists")
        for key, value in changes.items():
            setattr(plan, key, value)
        plan = await self.repos.amc_plans.update(plan)
        await self.repos.commit()
        return plan

    async def delete_plan(self, plan_id: int) -> None:
        plan = await self.get_plan(plan_id)
        if await self.repos.amc_subscriptions.count({"plan_id": plan.id, "status": SubscriptionStatus.active.value}):
            raise ValidationFailedError("Cannot delete a plan with active subscriptions, deactivate it instead")
        await self.repos.amc_plans.delete(plan.id)
        await self.repos.commit()
        logger.info(f"Deleted AMC plan {plan.name}")

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def get_subscription(self, subscription_id: str) -> AMCSubscription:
        subscription = await self.repos.amc_subscriptions.get_by_subscription_id(subscription_id.upper())
        if subscription is None:
            raise NotFoundError("Subscription not found")
        return subscription

    async def get_for_user(self, user: User, subscription_id: str) -> AMCSubscription:
        subscription = await self.get_subscription(subscription_id)
        if subscription.user_id != user.id:
            raise PermissionDeniedError("Not authorized to access this subscription")
        if subscription.status == SubscriptionStatus.active.value and is_expired(subscription):
            subscription.status = SubscriptionStatus.expired.value
            subscription = await self.repos.amc_subscriptions.update(subscription)
            await self.repos.commit()
        return subscription

    async def list_for_user(
        self, user: User, status: Optional[str] = None, limit: int = 20, offset: int = 0
    ) -> Tuple[List[AMCSubscription], int]:
        return await self.repos.amc_subscriptions.list_for_user(user.id, status=status, limit=limit, offset=offset)

    async def subscribe(
        self, user: User, data: SubscriptionCreate
    ) -> Tuple[AMCSubscription, Optional[RazorpayOrderRead]]:
        """
        Create a subscription awaiting payment and open its gateway order.

        Earlier unpaid attempts of the same user for the same plan are removed
        first. A free plan is activated right away without an order.
        """
        plan = await self.get_plan(data.plan_id)
        if plan.status != PlanStatus.active.value:
            raise ValidationFailedError("AMC plan is not available")

        for stale in await self.repos.amc_subscriptions.find_unpaid(user.id, plan.id):
            await self.repos.amc_subscriptions.delete(stale.id)
            logger.info(f"Removed unpaid subscription {stale.subscription_id} of customer {user.id}")

        seq = await self.repos.counters.next_value(SUBSCRIPTION_COUNTER)
        devices = [device.model_dump(exclude_none=True) for device in data.devices]
        subscription = AMCSubscription(
            subscription_id=f"AMC{seq:06d}",
            user_id=user.id,
            user_name=user.name or "",
            user_email=user.email,
            user_phone=user.phone,
            plan_id=plan.id,
            plan_name=plan.name,
            plan_price=plan.price,
            validity_period=plan.validity_period,
            devices=devices,
            device_count=len(devices),
            amount=round(plan.price * len(devices), 2),
            payment_method=data.payment_method,
            usage={"service_requests": 0, "visits": 0},
        )
        subscription = await self.repos.amc_subscriptions.create(subscription)

        if subscription.amount <= 0:
            self._activate(subscription, payment_id=None)
            subscription = await self.repos.amc_subscriptions.update(subscription)
            await self.repos.commit()
            return subscription, None

        try:
            order = await self._razorpay().create_order(
                subscription.amount,
                receipt=f"AMC_{subscription.subscription_id}",
                notes={"subscription_id": subscription.subscription_id, "plan": plan.name},
            )
        except ExternalServiceError:
            await self.repos.amc_subscriptions.delete(subscription.id)
            await self.repos.commit()
            logger.error(f"Order creation failed, removed subscription {subscription.subscription_id}")
            raise
        subscription.razorpay_order_id = order.order_id
        subscription = await self.repos.amc_subscriptions.update(subscription)
        await self.repos.commit()
        logger.info(f"Subscription {subscription.subscription_id} awaiting payment on order {order.order_id}")
        return subscription, order

    def _activate(self, subscription: AMCSubscription, payment_id: Optional[str]) -> None:
        now = utc_now()
        subscription.status = SubscriptionStatus.active.value
        subscription.payment_status = PaymentState.completed.value
        subscription.razorpay_payment_id = payment_id
        subscription.paid_at = now
        subscription.start_date = now
        subscription.end_date = now + timedelta(days=subscription.validity_period)

    async def apply_gateway_payment(self, subscription: AMCSubscription, order_id: str, payment_id: str) -> bool:
        """
        Activate a subscription, or extend it for a renewal order.

        Returns ``False`` when the order was already applied. The caller commits.
        """
        if order_id == subscription.pending_renewal_order_id:
            now = utc_now()
            base = subscription.end_date if subscription.end_date and subscription.end_date > now else now
            subscription.end_date = base + timedelta(days=subscription.validity_period)
            subscription.start_date = subscription.start_date or now
            subscription.status = SubscriptionStatus.active.value
            subscription.payment_status = PaymentState.completed.value
            subscription.razorpay_order_id = order_id
            subscription.razorpay_payment_id = payment_id
            subscription.paid_at = now
            subscription.pending_renewal_order_id = None
            await self.repos.amc_subscriptions.update(subscription)
            logger.info(f"Renewed subscription {subscription.subscription_id} until {subscription.end_date}")
            return True

        if subscription.payment_status == PaymentState.completed.value:
            return False
        if subscription.status != SubscriptionStatus.inactive.value:
            raise ValidationFailedError(f"Subscription is {subscription.status} and cannot be activated")
        self._activate(subscription, payment_id)
        await self.repos.amc_subscriptions.update(subscription)
        await self.notifications.notify_user(
            subscription.user_id,
            "AMC activated",
            f"Your {subscription.plan_name} subscription {subscription.subscription_id} is now active.",
            notification_type=NotificationType.payment,
            data={"subscription_id": subscription.subscription_id},
        )
        logger.info(f"Activated subscription {subscription.subscription_id}")
        return True

    async def cancel(self, user: User, subscription_id: str, reason: Optional[str]) -> AMCSubscription:
        subscription = await self.get_for_user(user, subscription_id)
        if subscription.status not in (SubscriptionStatus.active.value, SubscriptionStatus.inactive.value):
            raise ValidationFailedError(f"Subscription is already {subscription.status}")
        subscription.status = SubscriptionStatus.cancelled.value
        subscription.cancelled_at = utc_now()
        subscription.cancellation_reason = reason
        subscription = await self.repos.amc_subscriptions.update(subscription)
        await self.repos.commit()
        logger.info(f"Subscription {subscription.subscription_id} cancelled by customer")
        return subscription

    async def renew(self, user: User, subscription_id: str) -> Tuple[AMCSubscription, RazorpayOrderRead]:
        subscription = await self.get_for_user(user, subscription_id)
        if subscription.status not in (SubscriptionStatus.active.value, SubscriptionStatus.expired.value):
            raise ValidationFailedError("Only active or expired subscriptions can be renewed")
        if subscription.pending_renewal_order_id:
            return subscription, await self._razorpay().fetch_order(subscription.pending_renewal_order_id)
        amount = round(subscription.plan_price * subscription.device_count, 2)
        order = await self._razorpay().create_order(
            amount,
            receipt=f"AMC_R_{subscription.subscription_id}",
            notes={"subscription_id": subscription.subscription_id, "purpose": "renewal"},
        )
        subscription.pending_renewal_order_id = order.order_id
        subscription = await self.repos.amc_subscriptions.update(subscription)
        await self.repos.commit()
        return subscription, order

    async def usage(self, user: User, subscription_id: str) -> SubscriptionUsage:
        subscription = await self.get_for_user(user, subscription_id)
        usage = subscription.usage or {}
        return SubscriptionUsage(
            subscription_id=subscription.subscription_id,
            service_requests=int(usage.get("service_requests", 0)),
            visits=int(usage.get("visits", 0)),
            device_count=subscription.device_count,
            days_remaining=days_remaining(subscription),
            is_expired=is_expired(subscription),
        )

    def _razorpay(self) -> RazorpayClient:
        if self.razorpay is None:
            raise RuntimeError("AMCService needs a RazorpayClient for gateway operations")
        return self.razorpay
