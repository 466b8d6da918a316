"""Aggregates song ratings across a group of real users."""

import logging

from backend.services.rating_service import RatingService
from karaoke_session.core.models import SongRating
from karaoke_session.core.scoring import group_ratings_by_song

logger = logging.getLogger(__name__)


class RatingAggregator:
    """Fetches the ratings of a set of real users and groups them by song."""

    def __init__(self, rating_service: RatingService):
        self.rating_service = rating_service

    async def aggregate(self, real_user_ids: set[str]) -> dict[str, list[SongRating]]:
        """Group the ratings of the given users by song ID.

        Args:
            real_user_ids: IDs of real-user participants. Mock profiles have
                no ratings and must not be passed here.

        Returns:
            Mapping of song ID to every rating of that song.

        Raises:
            StoreUnavailableError: If fetching ratings fails.
        """
        if not real_user_ids:
            return {}

        ratings = await self.rating_service.fetch_ratings_for_users(sorted(real_user_ids))
        groups = group_ratings_by_song(r for r in ratings if r.user_id in real_user_ids)

        logger.debug(f"Aggregated {len(ratings)} ratings into {len(groups)} songs for {len(real_user_ids)} users")
        return groups
