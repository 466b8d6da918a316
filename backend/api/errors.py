"""Mapping of domain errors to HTTP errors."""

import logging

from fastapi import HTTPException, status

from karaoke_session.core.exceptions import (
    AuthorizationError,
    DuplicateParticipantError,
    KaraokeSessionError,
    NotFoundError,
    SessionInactiveError,
    StoreUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def to_http_error(e: KaraokeSessionError) -> HTTPException:
    """Convert a domain error into the HTTPException a route should raise."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, AuthorizationError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, (DuplicateParticipantError, SessionInactiveError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    if isinstance(e, StoreUnavailableError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage temporarily unavailable",
        )

    logger.error(f"Unhandled domain error: {e}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error")
