"""Health check endpoints."""

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from backend.api.deps import FirestoreServiceDep
from backend.services.session_service import SessionService
from karaoke_session.core.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthCheckResponse(BaseModel):
    """Basic health check response."""

    status: str
    service: str


class DeepHealthCheckResponse(BaseModel):
    """Deep health check response with component status."""

    status: str
    service: str
    timestamp: str
    checks: dict[str, dict[str, Any]]


@router.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Health check endpoint for load balancers and monitoring."""
    return HealthCheckResponse(status="healthy", service="karaoke-session")


@router.get("/health/deep", response_model=DeepHealthCheckResponse)
async def deep_health_check(firestore: FirestoreServiceDep) -> DeepHealthCheckResponse:
    """Deep health check that validates connectivity to the session store.

    Does not require authentication since it only tests connectivity.
    """
    checks: dict[str, dict[str, Any]] = {}

    try:
        count = await firestore.count_documents(
            SessionService.SESSIONS_COLLECTION,
            filters=[("is_active", "==", True)],
        )
        checks["firestore"] = {
            "status": "healthy",
            "message": f"Connected, {count} active sessions",
        }
    except StoreUnavailableError as e:
        logger.error(f"Firestore health check failed: {e}")
        checks["firestore"] = {
            "status": "unhealthy",
            "error": str(e),
        }

    overall_healthy = all(check["status"] == "healthy" for check in checks.values())

    return DeepHealthCheckResponse(
        status="healthy" if overall_healthy else "unhealthy",
        service="karaoke-session",
        timestamp=datetime.now(UTC).isoformat(),
        checks=checks,
    )
