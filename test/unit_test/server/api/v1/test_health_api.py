import pytest
from httpx import AsyncClient

# Mark all tests in this module as async
pytestmark = pytest.mark.asyncio


async def test_health_check(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Fixfly Backend Server is running!"
    assert data["auto_reject_service"]["is_running"] is False
    assert data["auto_reject_service"]["total_processed"] == 0


async def test_version(client: AsyncClient):
    response = await client.get("/version")
    assert response.status_code == 200
    data = response.json()
    assert "version" in data
    assert data["api_version"] == "v1"


async def test_request_id_header(client: AsyncClient):
    response = await client.get("/health")
    assert response.headers["X-Request-ID"].startswith("req-")


async def test_unknown_route(client: AsyncClient):
    response = await client.get("/api/v1/nothing-here")
    assert response.status_code == 404
