"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request logging), registers exception handlers and includes all API routers.
It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from fixfly.core.database import async_session_maker, init_db
from fixfly.core.database.repositories import build_sql_repos_from_session
from fixfly.core.logging_config import get_logger, setup_logging
from fixfly.core.monitoring import initialize_logfire

from .api.v1 import (
    admin,
    amc,
    auth,
    bookings,
    health,
    notifications,
    payment,
    reviews,
    support_tickets,
    upload,
    vendors,
    wallet,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import RequestLoggingMiddleware
from .services.admin import AdminService
from .services.auto_reject import get_auto_reject_service
from .services.razorpay import get_razorpay_client
from .services.sms import get_sms_service

# Initialize logging
setup_logging()
logger = get_logger(__name__)


async def bootstrap_default_admin() -> None:
    async with async_session_maker() as session:
        await AdminService(build_sql_repos_from_session(session=session)).ensure_default_admin()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Startup creates the tables, bootstraps the default super admin and starts
    the auto-reject service. Shutdown stops it and closes the outbound HTTP
    clients.
    """
    # Startup
    try:
        logger.info("Starting up Fixfly Backend Server...")
        await init_db()
        logger.info("Database initialized successfully")
        await bootstrap_default_admin()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    auto_reject = get_auto_reject_service()
    if settings.booking.auto_reject_enabled:
        auto_reject.start()

    yield

    # Shutdown
    logger.info("Shutting down Fixfly Backend Server...")
    await auto_reject.stop()
    await get_razorpay_client().aclose()
    await get_sms_service().aclose()


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    Fixfly Backend API

    Backend services for the Fixfly IT repair and AMC platform: customer OTP login,
    service bookings with vendor dispatch, support tickets, AMC subscriptions,
    Razorpay payments and vendor wallets.
    """,
    version=constant.VERSION,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

# Set all CORS enabled origins
cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)
app.add_middleware(RequestLoggingMiddleware)

setup_exception_handlers(app)
initialize_logfire(app)


app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix=f"{constant.API_V1_STR}/auth", tags=["auth"])
app.include_router(vendors.router, prefix=f"{constant.API_V1_STR}/vendors", tags=["vendors"])
app.include_router(admin.router, prefix=f"{constant.API_V1_STR}/admin", tags=["admin"])
app.include_router(bookings.router, prefix=f"{constant.API_V1_STR}/bookings", tags=["bookings"])
app.include_router(payment.router, prefix=f"{constant.API_V1_STR}/payment", tags=["payment"])
app.include_router(amc.router, prefix=f"{constant.API_V1_STR}/amc", tags=["amc"])
app.include_router(reviews.router, prefix=f"{constant.API_V1_STR}/reviews", tags=["reviews"])
app.include_router(support_tickets.router, prefix=f"{constant.API_V1_STR}/support-tickets", tags=["support-tickets"])
app.include_router(wallet.router, prefix=f"{constant.API_V1_STR}/vendor/wallet", tags=["wallet"])
app.include_router(upload.router, prefix=f"{constant.API_V1_STR}/upload", tags=["upload"])
app.include_router(notifications.router, prefix=f"{constant.API_V1_STR}/notifications", tags=["notifications"])

app.mount(settings.uploads.base_url, StaticFiles(directory=settings.uploads.directory, check_dir=False), name="uploads")
