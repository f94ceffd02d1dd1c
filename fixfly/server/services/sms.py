"""
SMS India Hub gateway client used for OTP delivery.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

import httpx

from fixfly.core.logging_config import get_logger
from fixfly.server.core.config import SMSConfig, settings
from fixfly.server.errors import ExternalServiceError

logger = get_logger(__name__)

USER_AGENT = "Fixifly/1.0"


@dataclass(frozen=True)
class SmsResult:
    status: str  # "sent" or "skipped"
    to: str
    message_id: Optional[str] = None


class SmsService:
    """Send OTP messages through SMS India Hub.

    When no API key is configured the OTP is only logged and the send is
    reported as ``skipped``, which keeps local development usable.
    """

    def __init__(self, config: Optional[SMSConfig] = None, *, client: Optional[httpx.AsyncClient] = None):
        self.config = config or settings.sms
        self._http = client

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.config.timeout, headers={"User-Agent": USER_AGENT})
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def send_otp(self, phone: str, otp: str) -> SmsResult:
        """
        Send a login OTP.

        Args:
            phone: Normalized 10 digit mobile number
            otp: The six digit code

        Raises:
            ExternalServiceError: The gateway is unreachable or reported an error
        """
        msisdn = f"91{phone}"
        if not self.config.is_configured:
            logger.debug(f"SMS gateway not configured, OTP for {phone} is {otp}")
            return SmsResult(status="skipped", to=msisdn)

        params = {
            "APIKey": self.config.api_key,
            "msisdn": msisdn,
            "sid": self.config.sender_id,
            "msg": self.config.otp_template.format(otp=otp),
            "fl": "0",
            "dc": "0",
        }
        try:
            response = await self._client().get(self.config.url, params=params, headers={"User-Agent": USER_AGENT})
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"SMS gateway request for {msisdn} failed: {e}")
            raise ExternalServiceError("Failed to send OTP, please try again", error_code="SMS_SEND_FAILED") from e

        body = response.text
        try:
            data = json.loads(body)
        except ValueError:
            data = {}
        error_code = str(data.get("ErrorCode", "")) if isinstance(data, dict) else ""
        if "ErrorCode" in body and error_code != "000":
            logger.error(f"SMS gateway rejected message to {msisdn}: {body}")
            raise ExternalServiceError(
                "Failed to send OTP, please try again",
                error_code="SMS_SEND_FAILED",
                details={"gateway_error_code": error_code or "unknown"},
            )

        message_id = data.get("JobId") if isinstance(data, dict) else None
        logger.info(f"OTP sent to {msisdn}")
        return SmsResult(status="sent", to=msisdn, message_id=message_id)


_sms_service: Optional[SmsService] = None


def get_sms_service() -> SmsService:
    """Return the process wide SMS service."""
    global _sms_service
    if _sms_service is None:
        _sms_service = SmsService()
    return _sms_service
