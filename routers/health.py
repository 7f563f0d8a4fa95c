from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from constants import SERVICE_BANNER
from schemas.events import HealthResponse
from logging_config import get_logger

logger = get_logger(__name__)

health_router = APIRouter(tags=["health"])


@health_router.get("/", response_class=PlainTextResponse)
async def root():
    return SERVICE_BANNER


@health_router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    """Liveness plus the number of rooms that currently have members."""
    rooms = request.app.state.registry.room_count()
    logger.debug(f"Health check: {rooms} rooms")
    return HealthResponse(
        status="ok",
        rooms=rooms,
        timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    )
