"""Karaoke session routes.

Hosts create a session, add participants (real users or mock profiles)
and get song recommendations for the whole group.
"""

from typing import Literal

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from backend.api.deps import ControllerRegistryDep, CurrentUserId, SessionServiceDep
from backend.api.errors import to_http_error
from karaoke_session.core.exceptions import KaraokeSessionError
from karaoke_session.core.models import (
    KaraokeSession,
    Participant,
    RealUser,
    Recommendation,
)

router = APIRouter()


# -----------------------------------------------------------------------------
# Request/Response Models
# -----------------------------------------------------------------------------


class SessionResponse(BaseModel):
    """Karaoke session information."""

    id: str
    name: str | None
    host_id: str
    is_active: bool
    created_at: str


class SessionsListResponse(BaseModel):
    """Response containing a host's active sessions."""

    sessions: list[SessionResponse]
    total: int


class CreateSessionRequest(BaseModel):
    """Request to create a session."""

    name: str | None = Field(None, max_length=100, description="Optional session name")


class AddParticipantRequest(BaseModel):
    """Request to add a participant to a session."""

    participant_id: str = Field(..., min_length=1, description="User ID or mock profile ID")
    kind: Literal["user", "mock"] = Field("user", description="Participant type")


class ParticipantResponse(BaseModel):
    """Session participant."""

    id: str
    kind: str
    display_name: str
    avatar_url: str | None = None


class RosterResponse(BaseModel):
    """Response containing a session's participants."""

    session_id: str
    participants: list[ParticipantResponse]
    real_user_count: int


class RecommendationResponse(BaseModel):
    """A song recommended for the group."""

    song_id: str
    title: str
    artist: str
    language: str | None
    average_difficulty: float
    match_score: float
    rating_count: int


class RecommendationsResponse(BaseModel):
    """Response containing group recommendations."""

    session_id: str
    recommendations: list[RecommendationResponse]
    stale: bool = False


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _session_response(session: KaraokeSession) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        name=session.name,
        host_id=session.host_id,
        is_active=session.is_active,
        created_at=session.created_at.isoformat(),
    )


def _participant_response(participant: Participant) -> ParticipantResponse:
    return ParticipantResponse(
        id=participant.id,
        kind=participant.kind,
        display_name=participant.display_name,
        avatar_url=participant.avatar_url,
    )


def _recommendation_response(rec: Recommendation) -> RecommendationResponse:
    return RecommendationResponse(
        song_id=rec.song.id,
        title=rec.song.title,
        artist=rec.song.artist,
        language=rec.song.language,
        average_difficulty=round(rec.average_difficulty, 3),
        match_score=round(rec.match_score, 3),
        rating_count=rec.rating_count,
    )


def _roster_response(session_id: str, participants: list[Participant]) -> RosterResponse:
    return RosterResponse(
        session_id=session_id,
        participants=[_participant_response(p) for p in participants],
        real_user_count=sum(1 for p in participants if isinstance(p, RealUser)),
    )


# -----------------------------------------------------------------------------
# Sessions
# -----------------------------------------------------------------------------


@router.get("", response_model=SessionsListResponse)
async def list_sessions(
    user_id: CurrentUserId,
    session_service: SessionServiceDep,
) -> SessionsListResponse:
    """List the user's active sessions, newest first."""
    try:
        sessions = await session_service.list_active_sessions(user_id)
    except KaraokeSessionError as e:
        raise to_http_error(e)

    return SessionsListResponse(
        sessions=[_session_response(s) for s in sessions],
        total=len(sessions),
    )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    request: CreateSessionRequest,
    user_id: CurrentUserId,
    controllers: ControllerRegistryDep,
) -> SessionResponse:
    """Create a new session hosted by the user.

    The roster starts empty; the host is not added automatically.
    """
    try:
        controller = await controllers.create(user_id, request.name)
    except KaraokeSessionError as e:
        raise to_http_error(e)

    assert controller.session is not None
    return _session_response(controller.session)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    user_id: CurrentUserId,
    session_service: SessionServiceDep,
) -> SessionResponse:
    """Get a session hosted by the user."""
    try:
        session = await session_service.get_session_for_host(session_id, user_id)
    except KaraokeSessionError as e:
        raise to_http_error(e)

    return _session_response(session)


@router.post("/{session_id}/end", response_model=SessionResponse)
async def end_session(
    session_id: str,
    user_id: CurrentUserId,
    session_service: SessionServiceDep,
    controllers: ControllerRegistryDep,
) -> SessionResponse:
    """End a session. Ended sessions can't be reopened."""
    try:
        await session_service.get_session_for_host(session_id, user_id)
        controller = await controllers.get(session_id)
        session = await controller.end_session()
    except KaraokeSessionError as e:
        raise to_http_error(e)

    controllers.discard(session_id)

    return _session_response(session)


# -----------------------------------------------------------------------------
# Roster
# -----------------------------------------------------------------------------


@router.get("/{session_id}/participants", response_model=RosterResponse)
async def get_roster(
    session_id: str,
    user_id: CurrentUserId,
    session_service: SessionServiceDep,
    controllers: ControllerRegistryDep,
) -> RosterResponse:
    """List the session's participants."""
    try:
        await session_service.get_session_for_host(session_id, user_id)
        controller = await controllers.get(session_id)
        await controller.recover()
    except KaraokeSessionError as e:
        raise to_http_error(e)

    return _roster_response(session_id, controller.get_roster())


@router.post(
    "/{session_id}/participants",
    response_model=RosterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_participant(
    session_id: str,
    request: AddParticipantRequest,
    user_id: CurrentUserId,
    session_service: SessionServiceDep,
    controllers: ControllerRegistryDep,
) -> RosterResponse:
    """Add a real user or mock profile to the session.

    Recommendations are recomputed before this returns.
    """
    try:
        await session_service.get_session_for_host(session_id, user_id)
        controller = await controllers.get(session_id)
        await controller.add_participant(request.participant_id, request.kind)
    except KaraokeSessionError as e:
        raise to_http_error(e)

    return _roster_response(session_id, controller.get_roster())


# -----------------------------------------------------------------------------
# Recommendations
# -----------------------------------------------------------------------------


@router.get("/{session_id}/recommendations", response_model=RecommendationsResponse)
async def get_recommendations(
    session_id: str,
    user_id: CurrentUserId,
    session_service: SessionServiceDep,
    controllers: ControllerRegistryDep,
) -> RecommendationsResponse:
    """Get songs the group is most likely to know, best first.

    Songs known by more participants rank higher; among equally known
    songs, those closest to medium difficulty come first. A previously
    failed recomputation is retried first; if it fails again the last good
    list is returned with `stale` set.
    """
    try:
        await session_service.get_session_for_host(session_id, user_id)
        controller = await controllers.get(session_id)
        recommendations = await controller.recover()
    except KaraokeSessionError as e:
        raise to_http_error(e)

    return RecommendationsResponse(
        session_id=session_id,
        recommendations=[_recommendation_response(r) for r in recommendations],
        stale=controller.last_error is not None,
    )


@router.post("/{session_id}/recommendations/refresh", response_model=RecommendationsResponse)
async def refresh_recommendations(
    session_id: str,
    user_id: CurrentUserId,
    session_service: SessionServiceDep,
    controllers: ControllerRegistryDep,
) -> RecommendationsResponse:
    """Reload the roster and recompute recommendations now.

    Fails with 503 if the store is still unavailable.
    """
    try:
        await session_service.get_session_for_host(session_id, user_id)
        controller = await controllers.get(session_id)
        recommendations = await controller.refresh()
    except KaraokeSessionError as e:
        raise to_http_error(e)

    return RecommendationsResponse(
        session_id=session_id,
        recommendations=[_recommendation_response(r) for r in recommendations],
    )

