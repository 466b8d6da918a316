"""Shared test fixtures for backend tests."""

from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from backend.config import BackendSettings
from backend.services.participant_registry import ParticipantRegistry
from backend.services.rating_aggregator import RatingAggregator
from backend.services.rating_service import RatingService
from backend.services.session_controller import (
    SessionControllerRegistry,
    SessionLifecycleController,
)
from backend.services.session_service import SessionService
from karaoke_session.core.scoring import RecommendationScorer

TEST_JWT_SECRET = "test-jwt-secret-key-for-testing-only"


class InMemoryFirestore:
    """Dict-backed stand-in for FirestoreService.

    Supports the subset of queries the services issue: "==" and "in"
    filters, a single order_by, offset and limit.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}

    def _docs(self, collection: str) -> dict[str, dict[str, Any]]:
        return self.collections.setdefault(collection, {})

    async def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        data = self._docs(collection).get(doc_id)
        return {"id": doc_id, **data} if data is not None else None

    async def create_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> bool:
        docs = self._docs(collection)
        if doc_id in docs:
            return False
        docs[doc_id] = dict(data)
        return True

    async def set_document(
        self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False
    ) -> None:
        docs = self._docs(collection)
        if merge and doc_id in docs:
            docs[doc_id].update(data)
        else:
            docs[doc_id] = dict(data)

    async def update_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self._docs(collection)[doc_id].update(data)

    async def query_documents(
        self,
        collection: str,
        filters: list[tuple[str, str, Any]] | None = None,
        order_by: str | None = None,
        order_direction: str = "ASCENDING",
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        docs = [{"id": doc_id, **data} for doc_id, data in self._docs(collection).items()]
        for field, op, value in filters or []:
            if op == "==":
                docs = [d for d in docs if d.get(field) == value]
            elif op == "in":
                docs = [d for d in docs if d.get(field) in value]
            else:
                raise NotImplementedError(op)
        if order_by:
            docs.sort(key=lambda d: d.get(order_by) or "", reverse=order_direction == "DESCENDING")
        if offset:
            docs = docs[offset:]
        if limit:
            docs = docs[:limit]
        return docs

    async def count_documents(
        self, collection: str, filters: list[tuple[str, str, Any]] | None = None
    ) -> int:
        return len(await self.query_documents(collection, filters=filters))


@pytest.fixture
def mock_backend_settings() -> BackendSettings:
    """Create mock backend settings for testing."""
    return BackendSettings(
        environment="development",
        google_cloud_project="test-project",
    )


@pytest.fixture
def auth_backend_settings() -> BackendSettings:
    """Create backend settings with JWT secret for auth testing."""
    return BackendSettings(
        environment="development",
        google_cloud_project="test-project",
        jwt_secret=TEST_JWT_SECRET,
        jwt_algorithm="HS256",
        frontend_url="http://localhost:3000",
    )


@pytest.fixture
def mock_firestore_service() -> MagicMock:
    """Create a mock Firestore service for testing."""
    mock = MagicMock()
    mock.get_document = AsyncMock(return_value=None)
    mock.create_document = AsyncMock(return_value=True)
    mock.set_document = AsyncMock(return_value=None)
    mock.update_document = AsyncMock(return_value=None)
    mock.query_documents = AsyncMock(return_value=[])
    mock.count_documents = AsyncMock(return_value=0)
    return mock


@pytest.fixture
def memory_firestore() -> InMemoryFirestore:
    """Empty in-memory document store."""
    return InMemoryFirestore()


@pytest.fixture
def session_service(auth_backend_settings: BackendSettings, memory_firestore: InMemoryFirestore) -> SessionService:
    return SessionService(auth_backend_settings, memory_firestore)  # type: ignore[arg-type]


@pytest.fixture
def participant_registry(
    auth_backend_settings: BackendSettings, memory_firestore: InMemoryFirestore
) -> ParticipantRegistry:
    return ParticipantRegistry(auth_backend_settings, memory_firestore)  # type: ignore[arg-type]


@pytest.fixture
def rating_service(auth_backend_settings: BackendSettings, memory_firestore: InMemoryFirestore) -> RatingService:
    return RatingService(auth_backend_settings, memory_firestore)  # type: ignore[arg-type]


@pytest.fixture
def controller_factory(
    session_service: SessionService,
    participant_registry: ParticipantRegistry,
    rating_service: RatingService,
) -> Callable[[], SessionLifecycleController]:
    """Build controllers wired to the in-memory store."""

    def factory() -> SessionLifecycleController:
        return SessionLifecycleController(
            session_service=session_service,
            participant_registry=participant_registry,
            rating_aggregator=RatingAggregator(rating_service),
            scorer=RecommendationScorer(),
        )

    return factory


@pytest.fixture
def make_token() -> Callable[[str], str]:
    """Issue a signed JWT for a user ID."""

    def _make(user_id: str) -> str:
        return jwt.encode({"sub": user_id}, TEST_JWT_SECRET, algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(make_token: Callable[[str], str]) -> Callable[[str], dict[str, str]]:
    """Authorization headers for a user ID."""

    def _headers(user_id: str = "host1") -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _headers


@pytest.fixture
def client(
    auth_backend_settings: BackendSettings,
    memory_firestore: InMemoryFirestore,
    session_service: SessionService,
    participant_registry: ParticipantRegistry,
    rating_service: RatingService,
    controller_factory: Callable[[], SessionLifecycleController],
) -> Generator[TestClient, None, None]:
    """Create test client backed by the in-memory store."""
    from backend.api import deps
    from backend.main import app

    controllers = SessionControllerRegistry(controller_factory)

    async def get_settings_override() -> BackendSettings:
        return auth_backend_settings

    async def get_firestore_override() -> InMemoryFirestore:
        return memory_firestore

    async def get_sessions_override() -> SessionService:
        return session_service

    async def get_participants_override() -> ParticipantRegistry:
        return participant_registry

    async def get_ratings_override() -> RatingService:
        return rating_service

    async def get_controllers_override() -> SessionControllerRegistry:
        return controllers

    app.dependency_overrides[deps.get_settings] = get_settings_override
    app.dependency_overrides[deps.get_firestore] = get_firestore_override
    app.dependency_overrides[deps.get_sessions] = get_sessions_override
    app.dependency_overrides[deps.get_participants] = get_participants_override
    app.dependency_overrides[deps.get_ratings] = get_ratings_override
    app.dependency_overrides[deps.get_controllers] = get_controllers_override

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def seed_profile(memory_firestore: InMemoryFirestore) -> Callable[..., None]:
    """Store a real user's profile."""

    def _seed(user_id: str, name: str | None = None) -> None:
        memory_firestore._docs(ParticipantRegistry.PROFILES_COLLECTION)[user_id] = {"name": name}

    return _seed


@pytest.fixture
def seed_rating(memory_firestore: InMemoryFirestore) -> Callable[..., None]:
    """Store a catalog song (if missing) and a user's rating of it."""

    def _seed(user_id: str, song_id: str, difficulty: int | None = None) -> None:
        songs = memory_firestore._docs(RatingService.SONGS_COLLECTION)
        songs.setdefault(song_id, {"title": song_id.title(), "artist": "Test Artist"})
        memory_firestore._docs(RatingService.USER_SONGS_COLLECTION)[f"{user_id}:{song_id}"] = {
            "user_id": user_id,
            "song_id": song_id,
            "difficulty_rating": difficulty,
            "mood_tags": [],
            "language_tags": [],
            "rating": None,
            "times_performed": 0,
            "updated_at": "2024-01-01T12:00:00+00:00",
        }

    return _seed
