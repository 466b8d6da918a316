"""Session lifecycle controller.

Keeps the view state of one karaoke session (roster and group
recommendations) in step with roster changes. Every accepted mutation is
followed by a synchronous recomputation, so recommendations are never
left stale; a failed mutation leaves the state untouched.

States:
- IDLE: no session selected
- ACTIVE: session selected, roster and recommendations loaded
- ENDED: the selected session was ended; nothing can be added to it,
  but another session can be selected or created
"""

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from backend.services.participant_registry import ParticipantRegistry
from backend.services.rating_aggregator import RatingAggregator
from backend.services.session_service import SessionService
from karaoke_session.core.exceptions import (
    NotFoundError,
    SessionInactiveError,
    StoreUnavailableError,
)
from karaoke_session.core.models import (
    KaraokeSession,
    Participant,
    ParticipantKind,
    ParticipantRef,
    Recommendation,
)
from karaoke_session.core.scoring import RecommendationScorer, real_user_ids

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Lifecycle state of a controller."""

    IDLE = "idle"
    ACTIVE = "active"
    ENDED = "ended"


class SessionLifecycleController:
    """Single owner of one session's roster and recommendations.

    Mutations and recomputation are serialised by a lock, so the roster is
    never changed while recommendations are being computed from it.
    """

    def __init__(
        self,
        session_service: SessionService,
        participant_registry: ParticipantRegistry,
        rating_aggregator: RatingAggregator,
        scorer: RecommendationScorer,
    ):
        self.session_service = session_service
        self.participant_registry = participant_registry
        self.rating_aggregator = rating_aggregator
        self.scorer = scorer

        self._lock = asyncio.Lock()
        self._state = SessionState.IDLE
        self._session: KaraokeSession | None = None
        self._roster: list[Participant] = []
        self._recommendations: list[Recommendation] = []
        self.last_error: StoreUnavailableError | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> KaraokeSession | None:
        return self._session

    def get_roster(self) -> list[Participant]:
        """Participants of the selected session."""
        return list(self._roster)

    def get_recommendations(self) -> list[Recommendation]:
        """Current group recommendations, best first."""
        return list(self._recommendations)

    async def create_session(self, host_id: str, name: str | None = None) -> KaraokeSession:
        """Create a session and make it the selected one."""
        async with self._lock:
            session = await self.session_service.create_session(host_id, name)
            await self._activate(session)
            return session

    async def select_session(self, session_id: str) -> KaraokeSession:
        """Select an existing session and load its roster.

        Raises:
            NotFoundError: If the session doesn't exist.
            SessionInactiveError: If the session has ended.
        """
        async with self._lock:
            session = await self.session_service.get_session(session_id)
            if not session.is_active:
                raise SessionInactiveError(session_id)
            await self._activate(session)
            return session

    async def add_participant(self, participant_id: str, kind: ParticipantKind) -> ParticipantRef:
        """Add a participant and recompute recommendations.

        Raises:
            NotFoundError: If no session is selected or the participant doesn't exist.
            SessionInactiveError: If the session has ended.
            DuplicateParticipantError: If the participant is already on the roster.
        """
        async with self._lock:
            session = self._require_session()

            if kind == "user":
                await self.participant_registry.get_profile(participant_id)
            else:
                await self.participant_registry.get_mock_profile(participant_id)

            ref = await self.session_service.add_participant(session.id, participant_id, kind)
            await self._recompute(reraise=False)
            return ref

    async def refresh(self) -> list[Recommendation]:
        """Reload the roster and recompute recommendations.

        Raises:
            StoreUnavailableError: If the reload fails. Previous
                recommendations stay in place.
        """
        async with self._lock:
            self._require_session()
            await self._recompute(reraise=True)
            return list(self._recommendations)

    async def recover(self) -> list[Recommendation]:
        """Retry a failed recomputation, if there was one.

        A repeat failure keeps the previous recommendations and leaves
        `last_error` set.
        """
        async with self._lock:
            self._require_session()
            if self.last_error is not None:
                await self._recompute(reraise=False)
            return list(self._recommendations)

    async def end_session(self) -> KaraokeSession:
        """End the selected session and clear the view state."""
        async with self._lock:
            session = self._require_session()
            ended = await self.session_service.end_session(session.id)

            self._session = ended
            self._roster = []
            self._recommendations = []
            self._state = SessionState.ENDED
            return ended

    def _require_session(self) -> KaraokeSession:
        if self._state is SessionState.ENDED and self._session is not None:
            raise SessionInactiveError(self._session.id)
        if self._session is None:
            raise NotFoundError("No session selected")
        return self._session

    async def _activate(self, session: KaraokeSession) -> None:
        self._session = session
        self._state = SessionState.ACTIVE
        self._roster = []
        self._recommendations = []
        self.last_error = None
        await self._recompute(reraise=False)

    async def _recompute(self, reraise: bool) -> None:
        session = self._session
        assert session is not None

        try:
            refs = await self.session_service.list_participants(session.id)
            self._roster = await self.participant_registry.resolve(refs)

            user_ids = real_user_ids(self._roster)
            groups = await self.rating_aggregator.aggregate(user_ids)
            self._recommendations = self.scorer.score(groups, len(user_ids))
            self.last_error = None
        except StoreUnavailableError as e:
            logger.warning(f"Keeping previous recommendations for session {session.id}: {e}")
            self.last_error = e
            if reraise:
                raise


class SessionControllerRegistry:
    """Keeps exactly one live controller per session in this process."""

    def __init__(self, controller_factory: Callable[[], SessionLifecycleController]):
        self.controller_factory = controller_factory
        self._controllers: dict[str, SessionLifecycleController] = {}
        # One lock per session id, so loading one session never blocks another
        self._locks: dict[str, asyncio.Lock] = {}

    async def create(self, host_id: str, name: str | None = None) -> SessionLifecycleController:
        """Create a session and register its controller."""
        controller = self.controller_factory()
        session = await controller.create_session(host_id, name)
        self._controllers[session.id] = controller
        return controller

    async def get(self, session_id: str) -> SessionLifecycleController:
        """Get the controller of an active session, loading it on first use.

        Raises:
            NotFoundError: If the session doesn't exist.
            SessionInactiveError: If the session has ended.
        """
        async with self._locks.setdefault(session_id, asyncio.Lock()):
            controller = self._controllers.get(session_id)
            if controller is not None and controller.state is SessionState.ACTIVE:
                return controller

            controller = self.controller_factory()
            try:
                await controller.select_session(session_id)
            except SessionInactiveError:
                self.discard(session_id)
                raise
            self._controllers[session_id] = controller
            return controller

    def discard(self, session_id: str) -> None:
        """Forget a session's controller."""
        self._controllers.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._controllers)


# Lazy initialization
_controller_registry: SessionControllerRegistry | None = None


def get_controller_registry() -> SessionControllerRegistry:
    """Get the process-wide controller registry."""
    global _controller_registry

    if _controller_registry is None:
        from backend.config import get_backend_settings
        from backend.services.participant_registry import get_participant_registry
        from backend.services.rating_service import get_rating_service
        from backend.services.session_service import get_session_service

        settings = get_backend_settings()

        def factory() -> SessionLifecycleController:
            return SessionLifecycleController(
                session_service=get_session_service(),
                participant_registry=get_participant_registry(),
                rating_aggregator=RatingAggregator(get_rating_service()),
                scorer=RecommendationScorer(
                    limit=settings.recommendation_limit,
                    default_difficulty=settings.default_difficulty,
                ),
            )

        _controller_registry = SessionControllerRegistry(factory)

    return _controller_registry
