"""
Unit tests for server exception handlers.

Tests cover the domain error, token error, integrity error and global
handlers, and their registration on the application.
"""

import json
from types import SimpleNamespace
from unittest.mock import Mock, patch

import jwt
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError

from fixfly.server.errors import (
    ConflictError,
    DepositRequiredError,
    ExternalServiceError,
    FixflyError,
    InsufficientBalanceError,
    NotFoundError,
)
from fixfly.server.exception_handlers import setup_exception_handlers
from fixfly.server.exception_handlers.domain_handlers import (
    fixfly_error_handler,
    integrity_error_handler,
    jwt_error_handler,
)
from fixfly.server.exception_handlers.global_handler import global_exception_handler


def body(response: JSONResponse) -> dict:
    return json.loads(response.body)


@pytest.fixture
def mock_request():
    """Create a mock request object."""
    request = Mock(spec=Request)
    request.method = "POST"
    request.url.path = "/api/v1/bookings"
    request.client = Mock()
    request.client.host = "127.0.0.1"
    request.state = SimpleNamespace(request_id="req-1")
    return request


class TestFixflyErrorHandler:
    @pytest.mark.asyncio
    async def test_not_found(self, mock_request):
        response = await fixfly_error_handler(mock_request, NotFoundError("Booking not found"))

        assert response.status_code == 404
        assert body(response) == {"detail": "Booking not found", "error_code": "NOT_FOUND"}

    @pytest.mark.asyncio
    async def test_details_are_included(self, mock_request):
        response = await fixfly_error_handler(mock_request, ConflictError("email", "Email already registered"))

        assert response.status_code == 400
        assert body(response) == {
            "detail": "Email already registered",
            "error_code": "DUPLICATE",
            "details": {"field": "email"},
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc,status,code",
        [
            (InsufficientBalanceError("low"), 400, "INSUFFICIENT_WALLET_BALANCE"),
            (DepositRequiredError("deposit"), 403, "MANDATORY_DEPOSIT_REQUIRED"),
            (FixflyError("custom", error_code="SCHEDULE_CONFLICT"), 400, "SCHEDULE_CONFLICT"),
        ],
    )
    async def test_status_and_code(self, mock_request, exc, status, code):
        response = await fixfly_error_handler(mock_request, exc)

        assert response.status_code == status
        assert body(response)["error_code"] == code

    @pytest.mark.asyncio
    async def test_server_side_failures_log_errors(self, mock_request):
        with patch("fixfly.server.exception_handlers.domain_handlers.logger") as mock_logger:
            response = await fixfly_error_handler(mock_request, ExternalServiceError("Razorpay is down"))

        assert response.status_code == 502
        mock_logger.error.assert_called_once()
        mock_logger.info.assert_not_called()


class TestJwtErrorHandler:
    @pytest.mark.asyncio
    async def test_invalid_token(self, mock_request):
        response = await jwt_error_handler(mock_request, jwt.InvalidSignatureError("bad"))

        assert response.status_code == 401
        assert body(response) == {"detail": "Invalid token", "error_code": "UNAUTHORIZED"}

    @pytest.mark.asyncio
    async def test_expired_token(self, mock_request):
        response = await jwt_error_handler(mock_request, jwt.ExpiredSignatureError("old"))

        assert response.status_code == 401
        assert body(response)["detail"] == "Token expired"


class TestIntegrityErrorHandler:
    @pytest.mark.asyncio
    async def test_duplicate(self, mock_request):
        exc = IntegrityError("INSERT INTO users", {}, Exception("UNIQUE constraint failed: users.email"))

        response = await integrity_error_handler(mock_request, exc)

        assert response.status_code == 400
        assert body(response)["error_code"] == "DUPLICATE"


class TestGlobalExceptionHandler:
    """Test suite for global exception handler."""

    @pytest.mark.asyncio
    async def test_exception_handler_logs_error(self, mock_request):
        exc = ValueError("Test error")

        with patch("fixfly.server.exception_handlers.global_handler.logger") as mock_logger:
            await global_exception_handler(mock_request, exc)

        mock_logger.error.assert_called_once()
        call_args = mock_logger.error.call_args
        assert "Unhandled exception" in call_args[0][0]
        assert call_args[1]["extra"]["error_type"] == "ValueError"
        assert call_args[1]["extra"]["request_id"] == "req-1"

    @pytest.mark.asyncio
    async def test_exception_handler_returns_500(self, mock_request):
        exc = KeyError("missing")

        response = await global_exception_handler(mock_request, exc)

        assert response.status_code == 500
        payload = body(response)
        assert payload["detail"] == "Internal server error"
        assert payload["error_type"] == "KeyError"
        assert payload["error_id"] == id(exc)

    @pytest.mark.asyncio
    async def test_reports_to_monitoring(self, mock_request):
        with patch("fixfly.server.exception_handlers.global_handler.log_error") as mock_log_error:
            await global_exception_handler(mock_request, RuntimeError("boom"))

        mock_log_error.assert_called_once()
        assert mock_log_error.call_args[0][:2] == ("RuntimeError", "boom")

    @pytest.mark.asyncio
    async def test_request_without_client(self, mock_request):
        mock_request.client = None

        response = await global_exception_handler(mock_request, RuntimeError("boom"))

        assert response.status_code == 500


class TestSetupExceptionHandlers:
    def test_registers_handlers(self):
        app = FastAPI()

        setup_exception_handlers(app)

        for exc_type in (FixflyError, jwt.InvalidTokenError, IntegrityError, Exception):
            assert exc_type in app.exception_handlers

    @pytest.mark.asyncio
    async def test_domain_error_through_application(self):
        app = FastAPI()
        setup_exception_handlers(app)

        @app.get("/missing")
        async def missing():
            raise NotFoundError("Vendor not found")

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            response = await client.get("/missing")

        assert response.status_code == 404
        assert response.json() == {"detail": "Vendor not found", "error_code": "NOT_FOUND"}
