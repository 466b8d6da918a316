"""Service for songs and per-user song ratings.

Songs are canonical catalog entries; a rating is one user's take on one
song (difficulty, mood tags, enjoyment, how often they've performed it).
There is exactly one rating document per (user, song).
"""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

from backend.config import BackendSettings
from backend.services.firestore_service import FirestoreService
from karaoke_session.core.exceptions import NotFoundError, ValidationError
from karaoke_session.core.models import Song, SongRating
from karaoke_session.utils.text import generate_song_id, normalize_tags

logger = logging.getLogger(__name__)


class RatingService:
    """Service for the song/rating store.

    Handles:
    - Registering catalog songs
    - Upserting a user's rating of a song
    - Reading a user's library
    - Bulk-fetching ratings for a group of users
    """

    SONGS_COLLECTION = "songs"
    USER_SONGS_COLLECTION = "user_songs"

    MIN_DIFFICULTY = 0
    MAX_DIFFICULTY = 10
    MIN_RATING = 1
    MAX_RATING = 5

    def __init__(
        self,
        settings: BackendSettings,
        firestore: FirestoreService,
    ):
        """Initialize the rating service.

        Args:
            settings: Backend settings.
            firestore: Firestore service for persistence.
        """
        self.settings = settings
        self.firestore = firestore

    async def upsert_song(
        self,
        title: str,
        artist: str,
        language: str | None = None,
        spotify_id: str | None = None,
    ) -> Song:
        """Register a song in the catalog, or refresh its metadata.

        The song ID is derived from artist and title, so the same song
        added twice maps to one catalog entry.

        Raises:
            ValidationError: If title or artist is blank.
        """
        title, artist = title.strip(), artist.strip()
        song_id = generate_song_id(artist, title) if title and artist else ""
        if not song_id:
            raise ValidationError("Song needs a title and an artist")

        song = Song(
            id=song_id,
            title=title,
            artist=artist,
            language=language,
            spotify_id=spotify_id,
        )

        data: dict[str, Any] = {"title": title, "artist": artist}
        if language is not None:
            data["language"] = language
        if spotify_id is not None:
            data["spotify_id"] = spotify_id

        await self.firestore.set_document(self.SONGS_COLLECTION, song_id, data, merge=True)
        return song

    async def get_song(self, song_id: str) -> Song:
        """Get a catalog song.

        Raises:
            NotFoundError: If the song doesn't exist.
        """
        doc = await self.firestore.get_document(self.SONGS_COLLECTION, song_id)
        if doc is None:
            raise NotFoundError(f"Song {song_id} not found")
        return self._doc_to_song(doc)

    async def rate_song(
        self,
        user_id: str,
        song_id: str,
        difficulty_rating: int | None = None,
        mood_tags: list[str] | set[str] | None = None,
        language_tags: list[str] | set[str] | None = None,
        rating: int | None = None,
    ) -> SongRating:
        """Create or replace a user's rating of a song.

        Difficulty, mood and language tags and enjoyment are replaced as given; the
        performance count is kept.

        Raises:
            NotFoundError: If the song doesn't exist.
            ValidationError: If difficulty or rating is out of range.
        """
        if difficulty_rating is not None and not (
            self.MIN_DIFFICULTY <= difficulty_rating <= self.MAX_DIFFICULTY
        ):
            raise ValidationError(
                f"Difficulty must be between {self.MIN_DIFFICULTY} and {self.MAX_DIFFICULTY}"
            )
        if rating is not None and not (self.MIN_RATING <= rating <= self.MAX_RATING):
            raise ValidationError(f"Rating must be between {self.MIN_RATING} and {self.MAX_RATING}")

        song = await self.get_song(song_id)
        doc_id = f"{user_id}:{song_id}"
        existing = await self.firestore.get_document(self.USER_SONGS_COLLECTION, doc_id)

        now = datetime.now(UTC)
        data: dict[str, Any] = {
            "user_id": user_id,
            "song_id": song_id,
            "difficulty_rating": difficulty_rating,
            "mood_tags": sorted(normalize_tags(mood_tags)),
            "language_tags": sorted(normalize_tags(language_tags)),
            "rating": rating,
            "times_performed": existing.get("times_performed", 0) if existing else 0,
            "updated_at": now.isoformat(),
        }
        if existing is None:
            data["created_at"] = now.isoformat()

        await self.firestore.set_document(self.USER_SONGS_COLLECTION, doc_id, data, merge=True)

        return self._doc_to_rating({"id": doc_id, **data}, song)

    async def record_performance(self, user_id: str, song_id: str) -> SongRating:
        """Count one more performance of a rated song.

        Raises:
            NotFoundError: If the user hasn't rated this song.
        """
        doc_id = f"{user_id}:{song_id}"
        doc = await self.firestore.get_document(self.USER_SONGS_COLLECTION, doc_id)
        if doc is None:
            raise NotFoundError(f"No rating of {song_id} for user {user_id}")

        now = datetime.now(UTC).isoformat()
        times_performed = (doc.get("times_performed") or 0) + 1
        await self.firestore.update_document(
            self.USER_SONGS_COLLECTION,
            doc_id,
            {
                "times_performed": times_performed,
                "last_performed": now,
                "updated_at": now,
            },
        )

        doc.update(times_performed=times_performed, last_performed=now, updated_at=now)
        return self._doc_to_rating(doc)

    async def get_user_ratings(
        self,
        user_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> list[SongRating]:
        """Get a user's rated songs, most recently updated first."""
        docs = await self.firestore.query_documents(
            self.USER_SONGS_COLLECTION,
            filters=[("user_id", "==", user_id)],
            order_by="updated_at",
            order_direction="DESCENDING",
            limit=limit,
            offset=offset,
        )
        return await self._attach_songs(docs)

    async def fetch_ratings_for_users(self, user_ids: list[str]) -> list[SongRating]:
        """Fetch every rating of a group of users, with songs embedded.

        Queries are batched to Firestore's "in" filter limit and run
        concurrently. Ratings of songs missing from the catalog are skipped.
        """
        unique_ids = sorted(set(user_ids))
        if not unique_ids:
            return []

        batch_size = FirestoreService.MAX_IN_VALUES
        batches = [unique_ids[i : i + batch_size] for i in range(0, len(unique_ids), batch_size)]
        results = await asyncio.gather(
            *(
                self.firestore.query_documents(
                    self.USER_SONGS_COLLECTION,
                    filters=[("user_id", "in", batch)],
                )
                for batch in batches
            )
        )

        docs = [doc for batch_docs in results for doc in batch_docs]
        return await self._attach_songs(docs)

    async def _attach_songs(self, docs: list[dict[str, Any]]) -> list[SongRating]:
        song_ids = sorted({doc["song_id"] for doc in docs if doc.get("song_id")})
        song_docs = await asyncio.gather(
            *(self.firestore.get_document(self.SONGS_COLLECTION, sid) for sid in song_ids)
        )
        songs = {sid: self._doc_to_song(d) for sid, d in zip(song_ids, song_docs, strict=True) if d}

        ratings = []
        for doc in docs:
            song = songs.get(doc.get("song_id", ""))
            if song is None:
                logger.warning(f"Skipping rating {doc['id']}: song {doc.get('song_id')} not in catalog")
                continue
            ratings.append(self._doc_to_rating(doc, song))
        return ratings

    def _doc_to_song(self, doc: dict[str, Any]) -> Song:
        return Song(
            id=doc["id"],
            title=doc["title"],
            artist=doc["artist"],
            language=doc.get("language"),
            spotify_id=doc.get("spotify_id"),
        )

    def _doc_to_rating(self, doc: dict[str, Any], song: Song | None = None) -> SongRating:
        updated_at = doc.get("updated_at")
        return SongRating(
            user_id=doc["user_id"],
            song_id=doc["song_id"],
            difficulty_rating=doc.get("difficulty_rating"),
            mood_tags=set(doc.get("mood_tags") or []),
            language_tags=set(doc.get("language_tags") or []),
            rating=doc.get("rating"),
            times_performed=doc.get("times_performed") or 0,
            song=song,
            updated_at=datetime.fromisoformat(updated_at) if updated_at else datetime.now(UTC),
        )


# Lazy initialization
_rating_service: RatingService | None = None


def get_rating_service(
    settings: BackendSettings | None = None,
    firestore: FirestoreService | None = None,
) -> RatingService:
    """Get the rating service instance.

    Args:
        settings: Optional settings override.
        firestore: Optional Firestore service override.

    Returns:
        RatingService instance.
    """
    global _rating_service

    if _rating_service is None or settings is not None or firestore is not None:
        if settings is None:
            from backend.config import get_backend_settings

            settings = get_backend_settings()
        if firestore is None:
            firestore = FirestoreService(settings)

        _rating_service = RatingService(settings, firestore)

    return _rating_service
