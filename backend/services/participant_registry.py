"""Service for resolving session participants.

A roster mixes real accounts and mock profiles (placeholders a host creates
for friends without an account). This service turns roster references into
typed Participant models and manages the host's mock profiles.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

from backend.config import BackendSettings
from backend.services.firestore_service import FirestoreService
from karaoke_session.core.exceptions import NotFoundError, ValidationError
from karaoke_session.core.models import MockProfile, Participant, ParticipantRef, RealUser

logger = logging.getLogger(__name__)

_P = TypeVar("_P", RealUser, MockProfile)


class ParticipantRegistry:
    """Resolves participant references against profile stores.

    Handles:
    - Looking up real user profiles and mock profiles
    - Resolving a roster, tolerating stale references
    - Creating and listing a host's mock profiles
    """

    PROFILES_COLLECTION = "profiles"
    MOCK_PROFILES_COLLECTION = "mock_profiles"

    def __init__(
        self,
        settings: BackendSettings,
        firestore: FirestoreService,
    ):
        """Initialize the participant registry.

        Args:
            settings: Backend settings.
            firestore: Firestore service for profile lookups.
        """
        self.settings = settings
        self.firestore = firestore

    async def get_profile(self, user_id: str) -> RealUser:
        """Get a real user's profile.

        Raises:
            NotFoundError: If no profile exists for this user.
        """
        doc = await self.firestore.get_document(self.PROFILES_COLLECTION, user_id)
        if doc is None:
            raise NotFoundError(f"Profile {user_id} not found")
        return self._doc_to_real_user(doc)

    async def get_mock_profile(self, mock_profile_id: str) -> MockProfile:
        """Get a mock profile.

        Raises:
            NotFoundError: If the mock profile doesn't exist.
        """
        doc = await self.firestore.get_document(self.MOCK_PROFILES_COLLECTION, mock_profile_id)
        if doc is None:
            raise NotFoundError(f"Mock profile {mock_profile_id} not found")
        return self._doc_to_mock_profile(doc)

    async def create_mock_profile(
        self,
        created_by: str,
        display_name: str,
        avatar_url: str | None = None,
    ) -> MockProfile:
        """Create a mock profile owned by a host.

        Raises:
            ValidationError: If the display name is blank.
        """
        display_name = display_name.strip()
        if not display_name:
            raise ValidationError("Mock profile name cannot be empty")

        profile = MockProfile(
            id=str(uuid.uuid4()),
            display_name=display_name,
            avatar_url=avatar_url,
            created_by=created_by,
            created_at=datetime.now(UTC),
        )

        await self.firestore.set_document(
            self.MOCK_PROFILES_COLLECTION,
            profile.id,
            {
                "name": profile.display_name,
                "avatar_url": profile.avatar_url,
                "created_by": profile.created_by,
                "created_at": profile.created_at.isoformat(),
            },
        )
        return profile

    async def list_mock_profiles(self, created_by: str, limit: int = 50) -> list[MockProfile]:
        """List mock profiles created by a host, newest first."""
        docs = await self.firestore.query_documents(
            self.MOCK_PROFILES_COLLECTION,
            filters=[("created_by", "==", created_by)],
            order_by="created_at",
            order_direction="DESCENDING",
            limit=limit,
        )
        return [self._doc_to_mock_profile(doc) for doc in docs]

    async def resolve(self, refs: list[ParticipantRef]) -> list[Participant]:
        """Resolve roster references into participants.

        Real-user and mock-profile lookups run concurrently. A reference
        whose profile no longer exists is dropped rather than failing the
        whole roster.

        Args:
            refs: Roster references.

        Returns:
            Resolved participants, in no particular order.

        Raises:
            StoreUnavailableError: If a lookup fails for any other reason.
        """
        user_ids = list(dict.fromkeys(r.participant_id for r in refs if r.kind == "user"))
        mock_ids = list(dict.fromkeys(r.participant_id for r in refs if r.kind == "mock"))

        users, mocks = await asyncio.gather(
            self._resolve_each(user_ids, self.get_profile),
            self._resolve_each(mock_ids, self.get_mock_profile),
        )
        return [*users, *mocks]

    async def _resolve_each(
        self,
        ids: list[str],
        fetch: Callable[[str], Awaitable[_P]],
    ) -> list[_P]:
        results = await asyncio.gather(*(fetch(i) for i in ids), return_exceptions=True)

        resolved: list[_P] = []
        for participant_id, result in zip(ids, results, strict=True):
            if isinstance(result, NotFoundError):
                logger.warning(f"Dropping stale participant {participant_id}: {result}")
                continue
            if isinstance(result, BaseException):
                raise result
            resolved.append(result)
        return resolved

    def _doc_to_real_user(self, doc: dict[str, Any]) -> RealUser:
        return RealUser(
            id=doc["id"],
            display_name=doc.get("name") or "Unknown User",
            avatar_url=doc.get("avatar_url"),
        )

    def _doc_to_mock_profile(self, doc: dict[str, Any]) -> MockProfile:
        created_at = doc.get("created_at")
        return MockProfile(
            id=doc["id"],
            display_name=doc["name"],
            avatar_url=doc.get("avatar_url"),
            created_by=doc["created_by"],
            created_at=datetime.fromisoformat(created_at) if created_at else datetime.now(UTC),
        )


# Lazy initialization
_participant_registry: ParticipantRegistry | None = None


def get_participant_registry(
    settings: BackendSettings | None = None,
    firestore: FirestoreService | None = None,
) -> ParticipantRegistry:
    """Get the participant registry instance.

    Args:
        settings: Optional settings override.
        firestore: Optional Firestore service override.

    Returns:
        ParticipantRegistry instance.
    """
    global _participant_registry

    if _participant_registry is None or settings is not None or firestore is not None:
        if settings is None:
            from backend.config import get_backend_settings

            settings = get_backend_settings()
        if firestore is None:
            firestore = FirestoreService(settings)

        _participant_registry = ParticipantRegistry(settings, firestore)

    return _participant_registry
