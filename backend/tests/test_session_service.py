"""Tests for the session service."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from backend.config import BackendSettings
from backend.services.session_service import SessionService
from karaoke_session.core.exceptions import (
    AuthorizationError,
    DuplicateParticipantError,
    NotFoundError,
    SessionInactiveError,
    StoreUnavailableError,
)
from karaoke_session.core.models import ParticipantRef


class TestCreateSession:
    """Tests for create_session."""

    @pytest.mark.asyncio
    async def test_creates_active_session(self, session_service: SessionService) -> None:
        session = await session_service.create_session("host1", "Friday night")

        assert session.host_id == "host1"
        assert session.name == "Friday night"
        assert session.is_active is True
        assert await session_service.list_participants(session.id) == []

    @pytest.mark.asyncio
    async def test_blank_name_stored_as_none(self, session_service: SessionService) -> None:
        session = await session_service.create_session("host1", "   ")
        assert session.name is None

    @pytest.mark.asyncio
    async def test_round_trips_through_store(self, session_service: SessionService) -> None:
        created = await session_service.create_session("host1", "Friday night")

        loaded = await session_service.get_session(created.id)

        assert loaded == created

    @pytest.mark.asyncio
    async def test_store_failure_propagates(
        self, mock_backend_settings: BackendSettings, mock_firestore_service: MagicMock
    ) -> None:
        mock_firestore_service.set_document = AsyncMock(side_effect=StoreUnavailableError("down"))
        service = SessionService(mock_backend_settings, mock_firestore_service)

        with pytest.raises(StoreUnavailableError):
            await service.create_session("host1")


class TestGetSession:
    """Tests for get_session and get_session_for_host."""

    @pytest.mark.asyncio
    async def test_missing(self, session_service: SessionService) -> None:
        with pytest.raises(NotFoundError):
            await session_service.get_session("nope")

    @pytest.mark.asyncio
    async def test_not_host(self, session_service: SessionService) -> None:
        session = await session_service.create_session("host1")

        with pytest.raises(AuthorizationError):
            await session_service.get_session_for_host(session.id, "someone-else")

    @pytest.mark.asyncio
    async def test_list_active_sessions_excludes_ended(self, session_service: SessionService) -> None:
        kept = await session_service.create_session("host1", "kept")
        ended = await session_service.create_session("host1", "ended")
        await session_service.create_session("host2", "other host")
        await session_service.end_session(ended.id)

        sessions = await session_service.list_active_sessions("host1")

        assert [s.id for s in sessions] == [kept.id]


class TestAddParticipant:
    """Tests for add_participant."""

    @pytest.mark.asyncio
    async def test_adds_user_and_mock(self, session_service: SessionService) -> None:
        session = await session_service.create_session("host1")

        await session_service.add_participant(session.id, "user1", "user")
        await session_service.add_participant(session.id, "mock1", "mock")

        refs = await session_service.list_participants(session.id)
        assert sorted(refs, key=lambda r: r.participant_id) == [
            ParticipantRef(participant_id="mock1", kind="mock"),
            ParticipantRef(participant_id="user1", kind="user"),
        ]

    @pytest.mark.asyncio
    async def test_duplicate_rejected(self, session_service: SessionService) -> None:
        session = await session_service.create_session("host1")
        await session_service.add_participant(session.id, "user1", "user")

        with pytest.raises(DuplicateParticipantError) as exc_info:
            await session_service.add_participant(session.id, "user1", "user")

        assert exc_info.value.participant_id == "user1"
        assert len(await session_service.list_participants(session.id)) == 1

    @pytest.mark.asyncio
    async def test_same_participant_in_two_sessions(self, session_service: SessionService) -> None:
        first = await session_service.create_session("host1")
        second = await session_service.create_session("host1")

        await session_service.add_participant(first.id, "user1", "user")
        await session_service.add_participant(second.id, "user1", "user")

        assert len(await session_service.list_participants(first.id)) == 1
        assert len(await session_service.list_participants(second.id)) == 1

    @pytest.mark.asyncio
    async def test_ended_session_rejects_participants(self, session_service: SessionService) -> None:
        session = await session_service.create_session("host1")
        await session_service.add_participant(session.id, "user1", "user")
        await session_service.end_session(session.id)

        with pytest.raises(SessionInactiveError):
            await session_service.add_participant(session.id, "user2", "user")

        refs = await session_service.list_participants(session.id)
        assert [r.participant_id for r in refs] == ["user1"]

    @pytest.mark.asyncio
    async def test_missing_session(self, session_service: SessionService) -> None:
        with pytest.raises(NotFoundError):
            await session_service.add_participant("nope", "user1", "user")

    @pytest.mark.asyncio
    async def test_writes_roster_entry(
        self, mock_backend_settings: BackendSettings, mock_firestore_service: MagicMock
    ) -> None:
        mock_firestore_service.get_document = AsyncMock(
            return_value={
                "id": "s1",
                "host_id": "host1",
                "is_active": True,
                "created_at": "2024-01-01T12:00:00+00:00",
            }
        )
        service = SessionService(mock_backend_settings, mock_firestore_service)

        await service.add_participant("s1", "mock1", "mock")

        collection, doc_id, data = mock_firestore_service.create_document.call_args.args
        assert collection == "session_participants"
        assert doc_id == "s1:mock1"
        assert data["kind"] == "mock"
        assert data["mock_profile_id"] == "mock1"
        assert "user_id" not in data


class TestListParticipants:
    """Tests for list_participants."""

    @pytest.mark.asyncio
    async def test_legacy_entries_without_kind(
        self, mock_backend_settings: BackendSettings, mock_firestore_service: MagicMock
    ) -> None:
        mock_firestore_service.query_documents = AsyncMock(
            return_value=[
                {"id": "s1:user1", "session_id": "s1", "user_id": "user1"},
                {"id": "s1:mock1", "session_id": "s1", "mock_profile_id": "mock1"},
                {"id": "s1:broken", "session_id": "s1"},
            ]
        )
        service = SessionService(mock_backend_settings, mock_firestore_service)

        refs = await service.list_participants("s1")

        assert refs == [
            ParticipantRef(participant_id="user1", kind="user"),
            ParticipantRef(participant_id="mock1", kind="mock"),
        ]


class TestEndSession:
    """Tests for end_session."""

    @pytest.mark.asyncio
    async def test_ends_session(self, session_service: SessionService) -> None:
        session = await session_service.create_session("host1")

        ended = await session_service.end_session(session.id)

        assert ended.is_active is False
        assert (await session_service.get_session(session.id)).is_active is False

    @pytest.mark.asyncio
    async def test_end_twice(self, session_service: SessionService) -> None:
        session = await session_service.create_session("host1")
        await session_service.end_session(session.id)

        with pytest.raises(SessionInactiveError):
            await session_service.end_session(session.id)
