"""Dependency injection for API routes."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from backend.config import BackendSettings, get_backend_settings
from backend.services.firestore_service import FirestoreService, get_firestore_service
from backend.services.participant_registry import ParticipantRegistry, get_participant_registry
from backend.services.rating_service import RatingService, get_rating_service
from backend.services.session_controller import SessionControllerRegistry, get_controller_registry
from backend.services.session_service import SessionService, get_session_service

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_settings() -> BackendSettings:
    """Get application settings."""
    return get_backend_settings()


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[BackendSettings, Depends(get_settings)],
) -> str:
    """Get the authenticated user's ID from the identity provider's JWT.

    Raises:
        HTTPException: If not authenticated or token is invalid.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not settings.jwt_secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT_SECRET is not configured",
        )

    try:
        claims = jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return str(user_id)


async def get_firestore() -> FirestoreService:
    return get_firestore_service()


async def get_sessions() -> SessionService:
    return get_session_service()


async def get_participants() -> ParticipantRegistry:
    return get_participant_registry()


async def get_ratings() -> RatingService:
    return get_rating_service()


async def get_controllers() -> SessionControllerRegistry:
    return get_controller_registry()


# Type aliases for cleaner route signatures
CurrentUserId = Annotated[str, Depends(get_current_user_id)]
Settings = Annotated[BackendSettings, Depends(get_settings)]
FirestoreServiceDep = Annotated[FirestoreService, Depends(get_firestore)]
SessionServiceDep = Annotated[SessionService, Depends(get_sessions)]
ParticipantRegistryDep = Annotated[ParticipantRegistry, Depends(get_participants)]
RatingServiceDep = Annotated[RatingService, Depends(get_ratings)]
ControllerRegistryDep = Annotated[SessionControllerRegistry, Depends(get_controllers)]
