"""
Domain exceptions raised by the service layer.

Every error carries the HTTP status it maps to and a machine readable
``error_code``; ``fixfly.server.exception_handlers`` turns them into JSON
responses.
"""

from __future__ import annotations

from typing import Any, Optional


class FixflyError(Exception):
    """Base class for expected, client-facing failures."""

    status_code: int = 400
    error_code: str = "BAD_REQUEST"

    def __init__(self, message: str, *, error_code: Optional[str] = None, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}


class NotFoundError(FixflyError):
    status_code = 404
    error_code = "NOT_FOUND"


class ValidationFailedError(FixflyError):
    status_code = 400
    error_code = "VALIDATION_ERROR"


class ConflictError(FixflyError):
    """A unique field is already taken."""

    status_code = 400
    error_code = "DUPLICATE"

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"{field} already exists", details={"field": field})
        self.field = field


class AuthenticationError(FixflyError):
    status_code = 401
    error_code = "UNAUTHORIZED"


class PermissionDeniedError(FixflyError):
    status_code = 403
    error_code = "FORBIDDEN"


class InsufficientBalanceError(FixflyError):
    status_code = 400
    error_code = "INSUFFICIENT_WALLET_BALANCE"


class DepositRequiredError(FixflyError):
    status_code = 403
    error_code = "MANDATORY_DEPOSIT_REQUIRED"


class PaymentVerificationError(FixflyError):
    status_code = 400
    error_code = "PAYMENT_VERIFICATION_FAILED"


class ExternalServiceError(FixflyError):
    """A payment or SMS gateway call failed or is not configured."""

    status_code = 502
    error_code = "EXTERNAL_SERVICE_ERROR"


class FileTooLargeError(FixflyError):
    status_code = 400
    error_code = "FILE_TOO_LARGE"
