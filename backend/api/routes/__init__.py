"""API routes for Karaoke Session."""

from fastapi import APIRouter

from backend.api.routes.health import router as health_router
from backend.api.routes.mock_profiles import router as mock_profiles_router
from backend.api.routes.sessions import router as sessions_router
from backend.api.routes.songs import router as songs_router

router = APIRouter()

# Include all route modules
router.include_router(health_router, tags=["health"])
router.include_router(sessions_router, prefix="/sessions", tags=["sessions"])
router.include_router(mock_profiles_router, prefix="/mock-profiles", tags=["mock-profiles"])
router.include_router(songs_router, tags=["songs"])
