"""Song catalog and personal rating routes.

Users register songs they know and rate them (difficulty, mood tags,
enjoyment). These ratings are what group recommendations are built from.
"""

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from backend.api.deps import CurrentUserId, RatingServiceDep
from backend.api.errors import to_http_error
from karaoke_session.core.exceptions import KaraokeSessionError
from karaoke_session.core.models import Song, SongRating

router = APIRouter()


# -----------------------------------------------------------------------------
# Request/Response Models
# -----------------------------------------------------------------------------


class SongResponse(BaseModel):
    """Catalog song."""

    id: str
    title: str
    artist: str
    language: str | None
    spotify_id: str | None


class CreateSongRequest(BaseModel):
    """Request to register a song in the catalog."""

    title: str = Field(..., min_length=1, max_length=200)
    artist: str = Field(..., min_length=1, max_length=200)
    language: str | None = Field(None, max_length=50)
    spotify_id: str | None = Field(None, max_length=64)


class RateSongRequest(BaseModel):
    """Request to rate a song."""

    difficulty_rating: int | None = Field(None, ge=0, le=10, description="0 (easy) to 10 (hard)")
    mood_tags: list[str] = Field(default_factory=list, max_length=20)
    language_tags: list[str] = Field(default_factory=list, max_length=10, description="Languages sung in")
    rating: int | None = Field(None, ge=1, le=5, description="How much you enjoy singing it")


class SongRatingResponse(BaseModel):
    """A user's rating of a song."""

    song: SongResponse | None
    song_id: str
    difficulty_rating: int | None
    mood_tags: list[str]
    language_tags: list[str]
    rating: int | None
    times_performed: int
    updated_at: str


class SongRatingsListResponse(BaseModel):
    """Response containing the user's rated songs."""

    songs: list[SongRatingResponse]
    total: int
    page: int
    per_page: int


def _song_response(song: Song) -> SongResponse:
    return SongResponse(
        id=song.id,
        title=song.title,
        artist=song.artist,
        language=song.language,
        spotify_id=song.spotify_id,
    )


def _rating_response(rating: SongRating) -> SongRatingResponse:
    return SongRatingResponse(
        song=_song_response(rating.song) if rating.song else None,
        song_id=rating.song_id,
        difficulty_rating=rating.difficulty_rating,
        mood_tags=sorted(rating.mood_tags),
        language_tags=sorted(rating.language_tags),
        rating=rating.rating,
        times_performed=rating.times_performed,
        updated_at=rating.updated_at.isoformat(),
    )


# -----------------------------------------------------------------------------
# Catalog
# -----------------------------------------------------------------------------


@router.post("/songs", response_model=SongResponse, status_code=status.HTTP_201_CREATED)
async def create_song(
    request: CreateSongRequest,
    user_id: CurrentUserId,
    rating_service: RatingServiceDep,
) -> SongResponse:
    """Register a song in the catalog (idempotent by artist and title)."""
    try:
        song = await rating_service.upsert_song(
            title=request.title,
            artist=request.artist,
            language=request.language,
            spotify_id=request.spotify_id,
        )
    except KaraokeSessionError as e:
        raise to_http_error(e)

    return _song_response(song)


# -----------------------------------------------------------------------------
# My Songs
# -----------------------------------------------------------------------------


@router.get("/my/songs", response_model=SongRatingsListResponse)
async def get_my_songs(
    user_id: CurrentUserId,
    rating_service: RatingServiceDep,
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(20, ge=1, le=100, description="Results per page"),
) -> SongRatingsListResponse:
    """Get the user's rated songs, most recently updated first."""
    try:
        ratings = await rating_service.get_user_ratings(
            user_id=user_id,
            limit=per_page,
            offset=(page - 1) * per_page,
        )
    except KaraokeSessionError as e:
        raise to_http_error(e)

    return SongRatingsListResponse(
        songs=[_rating_response(r) for r in ratings],
        total=len(ratings),
        page=page,
        per_page=per_page,
    )


@router.put("/my/songs/{song_id}/rating", response_model=SongRatingResponse)
async def rate_song(
    song_id: str,
    request: RateSongRequest,
    user_id: CurrentUserId,
    rating_service: RatingServiceDep,
) -> SongRatingResponse:
    """Create or replace the user's rating of a song."""
    try:
        rating = await rating_service.rate_song(
            user_id=user_id,
            song_id=song_id,
            difficulty_rating=request.difficulty_rating,
            mood_tags=request.mood_tags,
            language_tags=request.language_tags,
            rating=request.rating,
        )
    except KaraokeSessionError as e:
        raise to_http_error(e)

    return _rating_response(rating)


@router.post("/my/songs/{song_id}/performances", response_model=SongRatingResponse)
async def record_performance(
    song_id: str,
    user_id: CurrentUserId,
    rating_service: RatingServiceDep,
) -> SongRatingResponse:
    """Record that the user performed a song they've rated."""
    try:
        rating = await rating_service.record_performance(user_id, song_id)
    except KaraokeSessionError as e:
        raise to_http_error(e)

    return _rating_response(rating)
