"""FastAPI application for Karaoke Session."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api.routes import router
from backend.config import get_backend_settings

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Send logs to stdout for the container runtime."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(levelname)s:%(name)s:%(message)s",
        stream=sys.stdout,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings = get_backend_settings()
    logger.info(f"Starting Karaoke Session API ({settings.environment})")
    if settings.is_emulated:
        logger.info(f"Using Firestore emulator at {settings.firestore_emulator_host}")

    yield

    logger.info("Shutting down Karaoke Session API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_backend_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Karaoke Session API",
        description="Group karaoke sessions with song picks for everyone on the roster",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/docs" if not settings.is_production else None,
        redoc_url="/api/redoc" if not settings.is_production else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url, *settings.cors_origins],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api")

    return app


app = create_app()
