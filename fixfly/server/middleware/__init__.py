"""
Middleware modules for the Fixfly server.
"""

from .request_logger import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
