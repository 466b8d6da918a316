"""Core modules for Karaoke Session."""

from karaoke_session.core.config import Settings, get_settings
from karaoke_session.core.models import (
    KaraokeSession,
    MockProfile,
    Participant,
    ParticipantRef,
    RealUser,
    Recommendation,
    Song,
    SongRating,
)
from karaoke_session.core.scoring import RecommendationScorer, group_ratings_by_song

__all__ = [
    "Settings",
    "get_settings",
    "KaraokeSession",
    "MockProfile",
    "Participant",
    "ParticipantRef",
    "RealUser",
    "Recommendation",
    "RecommendationScorer",
    "Song",
    "SongRating",
    "group_ratings_by_song",
]
