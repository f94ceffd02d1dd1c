from typing import AsyncGenerator
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from fixfly.server.core.config import BookingConfig, SMSConfig, UploadConfig
from fixfly.server.services.auto_reject import AutoRejectService
from fixfly.server.services.razorpay import RazorpayClient
from fixfly.server.services.sms import SmsService
from fixfly.server.services.uploads import UploadService


@pytest.fixture
def upload_service(tmp_path) -> UploadService:
    return UploadService(UploadConfig(directory=str(tmp_path), base_url="/uploads", max_image_size=1024))


@pytest.fixture
def auto_reject_service(session_maker) -> AutoRejectService:
    return AutoRejectService(session_factory=session_maker, config=BookingConfig(auto_reject_minutes=25))


@pytest_asyncio.fixture(name="client")
async def client_fixture(
    session: AsyncSession,
    razorpay_client: RazorpayClient,
    upload_service: UploadService,
    auto_reject_service: AutoRejectService,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from fixfly.core.database import get_session
    from fixfly.server.main import app
    from fixfly.server.services.auto_reject import get_auto_reject_service
    from fixfly.server.services.razorpay import get_razorpay_client
    from fixfly.server.services.sms import get_sms_service
    from fixfly.server.services.uploads import get_upload_service

    sms = SmsService(SMSConfig())

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_razorpay_client] = lambda: razorpay_client
    app.dependency_overrides[get_sms_service] = lambda: sms
    app.dependency_overrides[get_upload_service] = lambda: upload_service
    app.dependency_overrides[get_auto_reject_service] = lambda: auto_reject_service

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("fixfly.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            yield client

    app.dependency_overrides.clear()
