"""Shared test fixtures for Karaoke Session."""

import pytest

from karaoke_session.core.models import MockProfile, RealUser, Song, SongRating


@pytest.fixture
def songs() -> dict[str, Song]:
    """Small catalog keyed by song id."""
    return {
        song.id: song
        for song in [
            Song(id="queen-bohemian-rhapsody", title="Bohemian Rhapsody", artist="Queen"),
            Song(id="journey-dont-stop-believin", title="Don't Stop Believin'", artist="Journey"),
            Song(id="abba-dancing-queen", title="Dancing Queen", artist="ABBA"),
            Song(id="adele-someone-like-you", title="Someone Like You", artist="Adele"),
        ]
    }


@pytest.fixture
def make_rating(songs: dict[str, Song]):
    """Build a SongRating with the catalog song embedded."""

    def _make(user_id: str, song_id: str, difficulty: int | None = None) -> SongRating:
        return SongRating(
            user_id=user_id,
            song_id=song_id,
            difficulty_rating=difficulty,
            song=songs.get(song_id),
        )

    return _make


@pytest.fixture
def roster() -> list[RealUser | MockProfile]:
    """Three real users and two mock profiles."""
    return [
        RealUser(id="user1", display_name="Ana"),
        RealUser(id="user2", display_name="Ben"),
        RealUser(id="user3", display_name="Cam"),
        MockProfile(id="mock1", display_name="Dee", created_by="user1"),
        MockProfile(id="mock2", display_name="Eli", created_by="user1"),
    ]
