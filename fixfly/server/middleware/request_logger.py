"""
Request logging middleware.

Tags every request with an id (echoed back as ``X-Request-ID``), times it and
reports it to the log and to Logfire. Sensitive query parameters are masked
before they are logged.
"""

import random
import string
import time
from typing import Callable, Dict

from fastapi import Request
from starlette.datastructures import QueryParams
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from fixfly.core.logging_config import get_logger
from fixfly.core.monitoring import log_api_request

logger = get_logger(__name__)

SENSITIVE_PARAMS = ("password", "otp", "token")
SLOW_REQUEST_MS = 1000


def new_request_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"req-{int(time.time() * 1000)}-{suffix}"


def redact_params(params: QueryParams) -> Dict[str, str]:
    return {
        key: "[REDACTED]" if any(word in key.lower() for word in SENSITIVE_PARAMS) else value
        for key, value in params.items()
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its status and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        request_id = request.headers.get("X-Request-ID") or new_request_id()
        method = request.method
        path = request.url.path

        request.state.request_id = request_id
        request.state.start_time = start_time

        logger.debug(
            f"[{request_id}] {method} {path}",
            extra={"request_id": request_id, "query_params": redact_params(request.query_params)},
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"[{request_id}] API request failed: {method} {path}",
                exc_info=True,
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": duration_ms,
                    "error": str(e),
                },
            )
            log_api_request(method=method, path=path, status_code=500, duration_ms=duration_ms, request_id=request_id)
            raise

        duration_ms = (time.time() - start_time) * 1000
        log_api_request(
            method=method, path=path, status_code=response.status_code, duration_ms=duration_ms, request_id=request_id
        )
        logger.info(f"[{request_id}] {method} {path} {response.status_code} {duration_ms:.1f}ms")

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}"

        if duration_ms > SLOW_REQUEST_MS:
            logger.warning(
                f"Slow API request: {method} {path} took {duration_ms:.2f}ms",
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": duration_ms,
                    "status_code": response.status_code,
                },
            )
        return response
