"""
Health Check Endpoints.

This module provides basic system status endpoints (health, version)
used for monitoring and deployment verification.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from fixfly.server.core import constant
from fixfly.server.core.config import settings
from fixfly.server.services.deps import AutoRejectDep

router = APIRouter()


@router.get(
    "/health",
    summary="Health Check",
    description="Check the operational status of the API server and its background services.",
    response_description="Status object.",
)
async def health_check(auto_reject: AutoRejectDep):
    """
    Health check endpoint.

    Confirms the server is reachable and reports the auto-reject service state.
    """
    return {
        "success": True,
        "message": "Fixfly Backend Server is running!",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "auto_reject_service": auto_reject.get_status(),
    }


@router.get(
    "/version",
    summary="Get Version",
    description="Retrieve version information for the API server.",
    response_description="Version object.",
)
async def version():
    return {"version": constant.VERSION, "api_version": "v1"}
