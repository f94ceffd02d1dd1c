"""
Handlers for expected failures: domain errors, bad tokens and unique
constraint violations.
"""

import jwt
from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from fixfly.core.logging_config import get_logger
from fixfly.server.errors import FixflyError

logger = get_logger(__name__)


async def fixfly_error_handler(request: Request, exc: FixflyError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: [{exc.error_code}] {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: [{exc.error_code}] {exc.message}")
    content = {"detail": exc.message, "error_code": exc.error_code}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


async def jwt_error_handler(request: Request, exc: jwt.InvalidTokenError) -> JSONResponse:
    detail = "Token expired" if isinstance(exc, jwt.ExpiredSignatureError) else "Invalid token"
    logger.info(f"{request.method} {request.url.path} rejected: {detail}")
    return JSONResponse(status_code=401, content={"detail": detail, "error_code": "UNAUTHORIZED"})


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=400,
        content={"detail": "A record with these details already exists", "error_code": "DUPLICATE"},
    )
