"""Service for karaoke session management.

Owns the lifecycle of a karaoke session (create, add participants, end)
and its roster, stored in Firestore.
"""

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from backend.config import BackendSettings
from backend.services.firestore_service import FirestoreService
from karaoke_session.core.exceptions import (
    AuthorizationError,
    DuplicateParticipantError,
    NotFoundError,
    SessionInactiveError,
)
from karaoke_session.core.models import KaraokeSession, ParticipantKind, ParticipantRef

logger = logging.getLogger(__name__)


class SessionService:
    """Service for session and roster persistence.

    Handles:
    - Creating, reading and ending sessions
    - Listing a host's active sessions
    - Adding participants to a session roster
    """

    SESSIONS_COLLECTION = "karaoke_sessions"
    PARTICIPANTS_COLLECTION = "session_participants"

    def __init__(
        self,
        settings: BackendSettings,
        firestore: FirestoreService,
    ):
        """Initialize the session service.

        Args:
            settings: Backend settings.
            firestore: Firestore service for persistence.
        """
        self.settings = settings
        self.firestore = firestore

    async def create_session(self, host_id: str, name: str | None = None) -> KaraokeSession:
        """Create a new, active session with an empty roster.

        The host is not added to the roster automatically.

        Args:
            host_id: Host's user ID.
            name: Optional session name.

        Returns:
            Created session.
        """
        session = KaraokeSession(
            id=str(uuid.uuid4()),
            name=name.strip() if name and name.strip() else None,
            host_id=host_id,
            is_active=True,
            created_at=datetime.now(UTC),
        )

        await self.firestore.set_document(
            self.SESSIONS_COLLECTION,
            session.id,
            {
                "name": session.name,
                "host_id": session.host_id,
                "is_active": True,
                "created_at": session.created_at.isoformat(),
            },
        )

        logger.info(f"Created session {session.id} for host {host_id}")
        return session

    async def get_session(self, session_id: str) -> KaraokeSession:
        """Get a session by ID.

        Raises:
            NotFoundError: If the session doesn't exist.
        """
        doc = await self.firestore.get_document(self.SESSIONS_COLLECTION, session_id)
        if doc is None:
            raise NotFoundError(f"Session {session_id} not found")
        return self._doc_to_session(doc)

    async def get_session_for_host(self, session_id: str, host_id: str) -> KaraokeSession:
        """Get a session, checking that the caller hosts it.

        Raises:
            NotFoundError: If the session doesn't exist.
            AuthorizationError: If the caller isn't the host.
        """
        session = await self.get_session(session_id)
        if session.host_id != host_id:
            raise AuthorizationError("Only the host can manage this session")
        return session

    async def list_active_sessions(self, host_id: str) -> list[KaraokeSession]:
        """List a host's active sessions, most recently created first."""
        docs = await self.firestore.query_documents(
            self.SESSIONS_COLLECTION,
            filters=[
                ("host_id", "==", host_id),
                ("is_active", "==", True),
            ],
            order_by="created_at",
            order_direction="DESCENDING",
            limit=self.settings.max_active_sessions_listed,
        )
        return [self._doc_to_session(doc) for doc in docs]

    async def add_participant(
        self,
        session_id: str,
        participant_id: str,
        kind: ParticipantKind,
    ) -> ParticipantRef:
        """Add a participant to a session roster.

        Args:
            session_id: Session ID.
            participant_id: Real user ID or mock profile ID.
            kind: Which variant the ID refers to.

        Returns:
            The new roster entry.

        Raises:
            NotFoundError: If the session doesn't exist.
            SessionInactiveError: If the session has ended.
            DuplicateParticipantError: If the participant is already on the roster.
        """
        session = await self.get_session(session_id)
        if not session.is_active:
            raise SessionInactiveError(session_id)

        data: dict[str, Any] = {
            "session_id": session_id,
            "participant_id": participant_id,
            "kind": kind,
            "joined_at": datetime.now(UTC).isoformat(),
        }
        if kind == "user":
            data["user_id"] = participant_id
        else:
            data["mock_profile_id"] = participant_id

        # Keyed on participant ID alone, so a user can't join twice under either variant
        created = await self.firestore.create_document(
            self.PARTICIPANTS_COLLECTION,
            self._participant_doc_id(session_id, participant_id),
            data,
        )
        if not created:
            raise DuplicateParticipantError(session_id, participant_id)

        return ParticipantRef(participant_id=participant_id, kind=kind)

    async def list_participants(self, session_id: str) -> list[ParticipantRef]:
        """List roster entries of a session."""
        docs = await self.firestore.query_documents(
            self.PARTICIPANTS_COLLECTION,
            filters=[("session_id", "==", session_id)],
        )
        refs = []
        for doc in docs:
            kind = doc.get("kind") or ("user" if doc.get("user_id") else "mock")
            participant_id = doc.get("participant_id") or doc.get("user_id") or doc.get("mock_profile_id")
            if not participant_id:
                logger.warning(f"Skipping roster entry {doc['id']} with no participant")
                continue
            refs.append(ParticipantRef(participant_id=participant_id, kind=kind))
        return refs

    async def end_session(self, session_id: str) -> KaraokeSession:
        """End a session. Ended sessions are never reactivated.

        Raises:
            NotFoundError: If the session doesn't exist.
            SessionInactiveError: If the session already ended.
        """
        session = await self.get_session(session_id)
        if not session.is_active:
            raise SessionInactiveError(session_id)

        await self.firestore.update_document(
            self.SESSIONS_COLLECTION,
            session_id,
            {"is_active": False},
        )

        logger.info(f"Ended session {session_id}")
        return session.model_copy(update={"is_active": False})

    @staticmethod
    def _participant_doc_id(session_id: str, participant_id: str) -> str:
        return f"{session_id}:{participant_id}"

    def _doc_to_session(self, doc: dict[str, Any]) -> KaraokeSession:
        return KaraokeSession(
            id=doc["id"],
            name=doc.get("name"),
            host_id=doc["host_id"],
            is_active=bool(doc.get("is_active", False)),
            created_at=datetime.fromisoformat(doc["created_at"]),
        )


# Lazy initialization
_session_service: SessionService | None = None


def get_session_service(
    settings: BackendSettings | None = None,
    firestore: FirestoreService | None = None,
) -> SessionService:
    """Get the session service instance.

    Args:
        settings: Optional settings override.
        firestore: Optional Firestore service override.

    Returns:
        SessionService instance.
    """
    global _session_service

    if _session_service is None or settings is not None or firestore is not None:
        if settings is None:
            from backend.config import get_backend_settings

            settings = get_backend_settings()
        if firestore is None:
            firestore = FirestoreService(settings)

        _session_service = SessionService(settings, firestore)

    return _session_service
