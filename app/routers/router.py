# routers/router.py
"""
FastAPI Router for worker health
"""

from fastapi import APIRouter, Request, status

from core.config import settings
from schemas.health_models import HealthResponse


router = APIRouter(
    prefix="/api/v1",
    tags=["Queue Worker"],
    responses={500: {"description": "Internal Server Error"}},
)


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Worker Health Check",
    description="Reports whether each queue consumer is running and polling without errors",
)
async def check_health(request: Request) -> HealthResponse:
    listener = getattr(request.app.state, "queue_listener", None)
    if listener is None:
        return HealthResponse(
            status="disabled",
            message="Queue consumers are not running",
            version=settings.VERSION,
        )

    consumers = listener.statuses()
    degraded = [c.name for c in consumers if not c.running or c.consecutive_errors > 0]
    if degraded:
        return HealthResponse(
            status="degraded",
            message=f"Consumers failing or stopped: {', '.join(degraded)}",
            version=settings.VERSION,
            consumers=consumers,
        )

    return HealthResponse(
        status="healthy",
        message="Queue consumers are polling",
        version=settings.VERSION,
        consumers=consumers,
    )
