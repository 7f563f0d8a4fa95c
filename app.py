from contextlib import asynccontextmanager
from typing import List, Optional
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth import AuthVerifier
from constants import ALLOWED_ORIGINS, BACKEND_URL
from lifecycle import ConnectionManager
from registry import RoomRegistry
from routers.health import health_router
from routers.signaling import signaling_router
from logging_config import get_logger, setup_logging

# Setup logging
log_level = os.getenv("LOG_LEVEL", "INFO")
log_file = os.getenv("LOG_FILE", None)
setup_logging(log_level=log_level, log_file=log_file)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Signaling server starting, auth backend: {BACKEND_URL}")
    yield
    await app.state.manager.aclose()
    logger.info("Signaling server stopped")


def create_app(
    registry: Optional[RoomRegistry] = None,
    verifier: Optional[AuthVerifier] = None,
    allowed_origins: Optional[List[str]] = None,
) -> FastAPI:
    """Build an app with its own room registry and connection manager."""
    app = FastAPI(title="StudyHub Signaling", lifespan=lifespan)

    allowed_origins = list(ALLOWED_ORIGINS if allowed_origins is None else allowed_origins)

    # HTTP CORS, the WebSocket handshake checks the same list itself
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.state.registry = registry if registry is not None else RoomRegistry()
    app.state.manager = ConnectionManager(app.state.registry, verifier if verifier is not None else AuthVerifier())
    app.state.allowed_origins = allowed_origins

    app.include_router(health_router)
    app.include_router(signaling_router)

    logger.info("FastAPI application initialized")
    return app


app = create_app()
