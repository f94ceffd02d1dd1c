"""
Exception handlers for the Fixfly server.

This package contains custom exception handlers for different error types
and a setup function to register them with the FastAPI application.
"""

import jwt
from fastapi import FastAPI
from sqlalchemy.exc import IntegrityError

from fixfly.core.logging_config import get_logger
from fixfly.server.errors import FixflyError

from .domain_handlers import fixfly_error_handler, integrity_error_handler, jwt_error_handler
from .global_handler import global_exception_handler

logger = get_logger(__name__)


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    This function should be called during application initialization to set up
    all custom exception handlers.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(FixflyError, fixfly_error_handler)
    app.add_exception_handler(jwt.InvalidTokenError, jwt_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")


__all__ = ["setup_exception_handlers"]
