"""
Main API router for Campus Events Service.
Combines all API endpoints and provides health checks.
"""

from fastapi import APIRouter
import logging

from campus_events.api.dependencies import check_service_health
from campus_events.schemas.event import HealthCheckResponse

logger = logging.getLogger(__name__)

SERVICE_VERSION = "1.0.0"

# Create main router
router = APIRouter(prefix="/api/v1")

# Include sub-routers
from campus_events.api.v1.events import router as events_router  # noqa: E402
from campus_events.api.v1.approvals import router as approvals_router  # noqa: E402
from campus_events.api.v1.registrations import router as registrations_router  # noqa: E402

router.include_router(events_router)
router.include_router(approvals_router)
router.include_router(registrations_router)


@router.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """
    Health check endpoint for the campus events service.

    Returns:
        Service health status
    """
    try:
        health_status = await check_service_health()

        return HealthCheckResponse(
            status=health_status["overall"],
            version=SERVICE_VERSION,
            database=health_status["database"],
            redis=health_status["redis"],
        )

    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return HealthCheckResponse(
            status="unhealthy",
            version=SERVICE_VERSION,
            database="unknown",
            redis="unknown",
        )


@router.get("/info")
async def service_info():
    """
    Service information endpoint.

    Returns:
        Service information and capabilities
    """
    return {
        "service": "Campus Events Service",
        "version": SERVICE_VERSION,
        "description": "Campus event proposals, two-stage approval and OTP-verified registration",
        "capabilities": [
            "Event proposal and draft editing",
            "General Secretary and Dean approval workflow",
            "Public event calendar",
            "Phone OTP verification",
            "Ticketed student registration"
        ],
        "endpoints": {
            "events": "/api/v1/events",
            "approvals": "/api/v1/approvals",
            "registrations": "/api/v1/registrations",
            "health": "/api/v1/health",
            "docs": "/docs"
        },
        "features": {
            "conditional_status_updates": True,
            "distributed_locking": True,
            "sms_delivery": True
        }
    }
