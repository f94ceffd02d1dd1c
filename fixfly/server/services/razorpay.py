"""
Razorpay payment gateway client.

Amounts cross this boundary in rupees and are converted to paise for the
gateway. Signatures are HMAC-SHA256 hex digests compared in constant time.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Any, Dict, Optional

import httpx

from fixfly.core.logging_config import get_logger
from fixfly.core.models.io.payments import PaymentDetails, RazorpayOrderRead
from fixfly.core.monitoring import log_payment_event
from fixfly.server.core.config import RazorpayConfig, settings
from fixfly.server.errors import ExternalServiceError

logger = get_logger(__name__)


def to_paise(amount: float) -> int:
    return int(round(amount * 100))


def from_paise(amount: int) -> float:
    return round(amount / 100, 2)


class RazorpayClient:
    """Thin async wrapper over the Razorpay REST API.

    Pass ``client`` to supply a preconfigured ``httpx.AsyncClient`` (tests
    use one backed by ``httpx.MockTransport``).
    """

    def __init__(self, config: Optional[RazorpayConfig] = None, *, client: Optional[httpx.AsyncClient] = None):
        self.config = config or settings.razorpay
        self._http = client

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    def _client(self) -> httpx.AsyncClient:
        if not self.is_configured:
            raise ExternalServiceError("Payment gateway is not configured", error_code="PAYMENT_GATEWAY_UNAVAILABLE")
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.config.timeout)
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        client = self._client()
        url = f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"
        try:
            response = await client.request(
                method,
                url,
                auth=httpx.BasicAuth(self.config.key_id or "", self.config.key_secret or ""),
                **kwargs,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Razorpay {method} {path} failed with {e.response.status_code}: {e.response.text}")
            raise ExternalServiceError(
                "Payment gateway rejected the request",
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Razorpay {method} {path} failed: {e}")
            raise ExternalServiceError("Payment gateway is unreachable") from e
        return response.json()

    async def create_order(
        self, amount: float, receipt: str, notes: Optional[Dict[str, str]] = None
    ) -> RazorpayOrderRead:
        """
        Create a checkout order.

        Args:
            amount: Amount in rupees
            receipt: Merchant receipt, at most 40 characters
            notes: Free form key/values stored with the order

        Returns:
            Order details for the checkout widget
        """
        payload = {
            "amount": to_paise(amount),
            "currency": self.config.currency,
            "receipt": receipt[:40],
            "notes": notes or {},
        }
        data = await self._request("POST", "/orders", json=payload)
        log_payment_event("order_created", data["id"], amount=amount, receipt=receipt)
        logger.info(f"Created Razorpay order {data['id']} for ₹{amount:.2f} (receipt {receipt})")
        data.setdefault("amount", payload["amount"])
        data.setdefault("receipt", receipt)
        return self._order_read(data)

    async def fetch_order(self, order_id: str) -> RazorpayOrderRead:
        """Look up an order created earlier, so an unpaid checkout can be reopened."""
        return self._order_read(await self._request("GET", f"/orders/{order_id}"))

    def _order_read(self, data: Dict[str, Any]) -> RazorpayOrderRead:
        return RazorpayOrderRead(
            order_id=data["id"],
            amount=from_paise(data.get("amount", 0)),
            amount_paise=data.get("amount", 0),
            currency=data.get("currency", self.config.currency),
            receipt=data.get("receipt"),
            key_id=self.config.key_id,
        )

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Check the checkout callback signature over ``"<order_id>|<payment_id>"``."""
        if not self.config.key_secret:
            return False
        expected = hmac.new(
            self.config.key_secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256
        ).hexdigest()
        return hmac.compare_digest(expected, signature)

    def verify_webhook_signature(self, body: bytes, signature: str) -> bool:
        if not self.config.webhook_secret or not signature:
            return False
        expected = hmac.new(self.config.webhook_secret.encode(), body, hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected, signature)

    async def fetch_payment(self, payment_id: str) -> PaymentDetails:
        data = await self._request("GET", f"/payments/{payment_id}")
        return PaymentDetails(
            payment_id=data["id"],
            order_id=data.get("order_id"),
            amount=from_paise(data.get("amount", 0)),
            currency=data.get("currency", self.config.currency),
            status=data.get("status", "unknown"),
            method=data.get("method"),
            raw=data,
        )

    async def refund(self, payment_id: str, amount: Optional[float] = None) -> Dict[str, Any]:
        """Refund a captured payment, fully unless ``amount`` (rupees) is given."""
        payload: Dict[str, Any] = {}
        if amount is not None:
            payload["amount"] = to_paise(amount)
        data = await self._request("POST", f"/payments/{payment_id}/refund", json=payload)
        log_payment_event("refund_created", payment_id, amount=amount, refund_id=data.get("id"))
        logger.info(f"Refund {data.get('id')} created for payment {payment_id}")
        return data


_razorpay_client: Optional[RazorpayClient] = None


def get_razorpay_client() -> RazorpayClient:
    """Return the process wide Razorpay client."""
    global _razorpay_client
    if _razorpay_client is None:
        _razorpay_client = RazorpayClient()
    return _razorpay_client
