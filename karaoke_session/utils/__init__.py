"""Utility modules for Karaoke Session."""

from karaoke_session.utils.text import (
    generate_song_id,
    normalize_artist,
    normalize_tags,
    normalize_title,
)

__all__ = ["normalize_artist", "normalize_title", "normalize_tags", "generate_song_id"]
