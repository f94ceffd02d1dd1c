"""
Payment Endpoints.

Generic Razorpay order creation and verification plus the gateway webhook.
Verification from the client and the webhook settle payments through the same
idempotent path.
"""

from fastapi import APIRouter, Header, Request

from fixfly.core.models.io.payments import (
    CreateOrderRequest,
    PaymentDetails,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
    RazorpayOrderRead,
    WebhookAck,
)
from fixfly.server.services.deps import AnyPrincipalDep, PaymentServiceDep

router = APIRouter()


@router.post(
    "/create-order",
    response_model=RazorpayOrderRead,
    summary="Create Order",
    description="Create a Razorpay order for an amount in rupees.",
    responses={502: {"description": "Payment gateway unavailable"}},
)
async def create_order(
    data: CreateOrderRequest, principal: AnyPrincipalDep, payments: PaymentServiceDep
) -> RazorpayOrderRead:
    return await payments.create_order(data)


@router.post(
    "/verify",
    response_model=PaymentVerifyResponse,
    summary="Verify Payment",
    description="Verify a checkout signature and settle whatever the order was created for.",
    responses={400: {"description": "Invalid signature"}, 404: {"description": "Unknown order"}},
)
async def verify_payment(data: PaymentVerifyRequest, payments: PaymentServiceDep) -> PaymentVerifyResponse:
    return await payments.verify(data)


@router.post(
    "/webhook",
    response_model=WebhookAck,
    summary="Razorpay Webhook",
    description="Receive gateway events. Captured payments are settled once, keyed by order id.",
    responses={400: {"description": "Invalid webhook signature"}},
)
async def webhook(
    request: Request,
    payments: PaymentServiceDep,
    x_razorpay_signature: str = Header(default=""),
) -> WebhookAck:
    body = await request.body()
    return await payments.handle_webhook(body, x_razorpay_signature)


@router.get(
    "/{payment_id}",
    response_model=PaymentDetails,
    summary="Get Payment",
    description="Fetch a payment from Razorpay.",
)
async def get_payment(payment_id: str, principal: AnyPrincipalDep, payments: PaymentServiceDep) -> PaymentDetails:
    return await payments.fetch_payment(payment_id)
