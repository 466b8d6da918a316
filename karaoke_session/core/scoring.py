"""Group recommendation scoring.

Turns the song ratings of a session's real participants into a ranked list
of songs the whole group can sing. Everything here is pure: no I/O, no
hidden state, so the same input always produces the same ranking.
"""

from collections.abc import Iterable, Mapping

from karaoke_session.core.exceptions import ValidationError
from karaoke_session.core.models import (
    MockProfile,
    Participant,
    RealUser,
    Recommendation,
    Song,
    SongRating,
)


def real_user_ids(participants: Iterable[Participant]) -> set[str]:
    """Extract the ids of participants that have a rating history."""
    ids: set[str] = set()
    for participant in participants:
        match participant:
            case RealUser(id=user_id):
                ids.add(user_id)
            case MockProfile():
                continue
    return ids


def group_ratings_by_song(ratings: Iterable[SongRating]) -> dict[str, list[SongRating]]:
    """Group ratings by song id, keeping every contributing rating."""
    groups: dict[str, list[SongRating]] = {}
    for rating in ratings:
        groups.setdefault(rating.song_id, []).append(rating)
    return groups


class RecommendationScorer:
    """Ranks songs by how much of the group knows them.

    - match score: fraction of real participants who rated the song
    - tie-break: average difficulty closest to medium (5) first
    - final tie-break: song id, ascending
    """

    DEFAULT_DIFFICULTY = 5.0  # Unrated difficulty counts as medium
    TARGET_DIFFICULTY = 5.0
    MAX_RECOMMENDATIONS = 10

    def __init__(
        self,
        limit: int = MAX_RECOMMENDATIONS,
        default_difficulty: float = DEFAULT_DIFFICULTY,
    ):
        self.limit = max(0, min(limit, self.MAX_RECOMMENDATIONS))
        self.default_difficulty = default_difficulty

    def average_difficulty(self, ratings: list[SongRating]) -> float:
        """Mean difficulty of a song across its raters."""
        total = sum(
            r.difficulty_rating if r.difficulty_rating is not None else self.default_difficulty
            for r in ratings
        )
        return total / len(ratings)

    def score(
        self,
        song_groups: Mapping[str, list[SongRating]],
        total_real_user_count: int,
    ) -> list[Recommendation]:
        """Score and rank candidate songs for a group.

        Args:
            song_groups: Ratings grouped by song id.
            total_real_user_count: Number of real (non-mock) participants.

        Returns:
            At most ``limit`` recommendations, best first.

        Raises:
            ValidationError: If a song has more ratings than there are real
                participants.
        """
        if total_real_user_count <= 0:
            return []

        recommendations: list[Recommendation] = []
        for song_id, ratings in song_groups.items():
            if not ratings:
                continue
            if len(ratings) > total_real_user_count:
                raise ValidationError(
                    f"Song {song_id} has {len(ratings)} ratings but only "
                    f"{total_real_user_count} real participants"
                )

            recommendations.append(
                Recommendation(
                    song=self._song_for(song_id, ratings),
                    average_difficulty=self.average_difficulty(ratings),
                    match_score=len(ratings) / total_real_user_count,
                    rating_count=len(ratings),
                )
            )

        recommendations.sort(key=self._rank_key)
        return recommendations[: self.limit]

    def _rank_key(self, rec: Recommendation) -> tuple[float, float, str]:
        return (
            -rec.match_score,
            abs(self.TARGET_DIFFICULTY - rec.average_difficulty),
            rec.song.id,
        )

    @staticmethod
    def _song_for(song_id: str, ratings: list[SongRating]) -> Song:
        for rating in ratings:
            if rating.song is not None:
                return rating.song
        return Song(id=song_id, title="Unknown Song", artist="Unknown Artist")
