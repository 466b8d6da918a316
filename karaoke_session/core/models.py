"""Core data models for Karaoke Session."""

from datetime import UTC, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(UTC)


ParticipantKind = Literal["user", "mock"]


class RealUser(BaseModel):
    """Participant backed by a real account with a rating history."""

    kind: Literal["user"] = "user"
    id: str
    display_name: str = "Unknown User"
    avatar_url: str | None = None


class MockProfile(BaseModel):
    """Placeholder participant for a friend without an account.

    Created ad hoc by a session host; never has ratings of its own.
    """

    kind: Literal["mock"] = "mock"
    id: str
    display_name: str
    avatar_url: str | None = None
    created_by: str
    created_at: datetime = Field(default_factory=_utcnow)


# Tagged union, resolved on the "kind" field
Participant = Annotated[RealUser | MockProfile, Field(discriminator="kind")]


class ParticipantRef(BaseModel):
    """Roster entry: which participant, and which store to resolve it from."""

    participant_id: str
    kind: ParticipantKind


class KaraokeSession(BaseModel):
    """A karaoke night hosted by a real user."""

    id: str
    name: str | None = None
    host_id: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)


class Song(BaseModel):
    """Canonical catalog entry."""

    id: str  # Normalized: slugify(artist-title)
    title: str
    artist: str
    language: str | None = None
    spotify_id: str | None = None


class SongRating(BaseModel):
    """One real user's relationship to one song."""

    user_id: str
    song_id: str

    difficulty_rating: int | None = Field(None, ge=0, le=10)
    mood_tags: set[str] = Field(default_factory=set)
    language_tags: set[str] = Field(default_factory=set)
    rating: int | None = Field(None, ge=1, le=5)  # Enjoyment
    times_performed: int = Field(0, ge=0)

    # Embedded when fetched for recommendations
    song: Song | None = None

    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def id(self) -> str:
        """Document id; one rating per (user, song)."""
        return f"{self.user_id}:{self.song_id}"


class Recommendation(BaseModel):
    """A song recommended to the whole group. Derived, never stored."""

    song: Song
    average_difficulty: float
    match_score: float = Field(ge=0.0, le=1.0)
    rating_count: int = 0
