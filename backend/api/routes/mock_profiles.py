"""Mock profile routes.

Mock profiles stand in for friends without an account so a host can still
put them on a session roster. They never have ratings of their own.
"""

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from backend.api.deps import CurrentUserId, ParticipantRegistryDep
from backend.api.errors import to_http_error
from karaoke_session.core.exceptions import KaraokeSessionError
from karaoke_session.core.models import MockProfile

router = APIRouter()


class MockProfileResponse(BaseModel):
    """Mock profile information."""

    id: str
    display_name: str
    avatar_url: str | None
    created_by: str
    created_at: str


class MockProfilesListResponse(BaseModel):
    """Response containing the user's mock profiles."""

    mock_profiles: list[MockProfileResponse]
    total: int


class CreateMockProfileRequest(BaseModel):
    """Request to create a mock profile."""

    display_name: str = Field(..., min_length=1, max_length=100, description="Friend's name")
    avatar_url: str | None = Field(None, max_length=500)


def _mock_profile_response(profile: MockProfile) -> MockProfileResponse:
    return MockProfileResponse(
        id=profile.id,
        display_name=profile.display_name,
        avatar_url=profile.avatar_url,
        created_by=profile.created_by,
        created_at=profile.created_at.isoformat(),
    )


@router.get("", response_model=MockProfilesListResponse)
async def list_mock_profiles(
    user_id: CurrentUserId,
    registry: ParticipantRegistryDep,
    limit: int = Query(50, ge=1, le=100, description="Maximum profiles to return"),
) -> MockProfilesListResponse:
    """List mock profiles created by the user, newest first."""
    try:
        profiles = await registry.list_mock_profiles(user_id, limit=limit)
    except KaraokeSessionError as e:
        raise to_http_error(e)

    return MockProfilesListResponse(
        mock_profiles=[_mock_profile_response(p) for p in profiles],
        total=len(profiles),
    )


@router.post("", response_model=MockProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_mock_profile(
    request: CreateMockProfileRequest,
    user_id: CurrentUserId,
    registry: ParticipantRegistryDep,
) -> MockProfileResponse:
    """Create a mock profile owned by the user."""
    try:
        profile = await registry.create_mock_profile(
            created_by=user_id,
            display_name=request.display_name,
            avatar_url=request.avatar_url,
        )
    except KaraokeSessionError as e:
        raise to_http_error(e)

    return _mock_profile_response(profile)
