"""Firestore database service."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from google.api_core.exceptions import AlreadyExists, GoogleAPIError
from google.cloud import firestore

from backend.config import BackendSettings
from karaoke_session.core.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(operation: str, collection: str) -> Iterator[None]:
    """Surface Firestore client failures as StoreUnavailableError."""
    try:
        yield
    except GoogleAPIError as e:
        logger.error(f"Firestore {operation} on {collection} failed: {e}")
        raise StoreUnavailableError(f"{operation} on {collection} failed: {e}") from e


class FirestoreService:
    """Service for Firestore database operations."""

    # Firestore rejects "in" filters with more values than this
    MAX_IN_VALUES = 30

    def __init__(self, settings: BackendSettings):
        self.settings = settings
        self._client: firestore.AsyncClient | None = None

    @property
    def client(self) -> firestore.AsyncClient:
        """Get or create Firestore client."""
        if self._client is None:
            self._client = firestore.AsyncClient(
                project=self.settings.google_cloud_project,
                database=self.settings.firestore_database,
            )
        return self._client

    def collection(self, name: str) -> firestore.AsyncCollectionReference:
        """Get a collection reference."""
        return self.client.collection(name)

    async def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Get a document by ID."""
        with _store_errors("get", collection):
            doc = await self.collection(collection).document(doc_id).get()
        if doc.exists:
            return {"id": doc.id, **doc.to_dict()}
        return None

    async def create_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> bool:
        """Create a document, failing softly if it already exists.

        Returns:
            True if created, False if a document with this ID was already there.
        """
        with _store_errors("create", collection):
            try:
                await self.collection(collection).document(doc_id).create(data)
            except AlreadyExists:
                return False
        return True

    async def set_document(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> None:
        """Set a document (create or overwrite)."""
        with _store_errors("set", collection):
            await self.collection(collection).document(doc_id).set(data, merge=merge)

    async def update_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Update specific fields in a document."""
        with _store_errors("update", collection):
            await self.collection(collection).document(doc_id).update(data)

    async def query_documents(
        self,
        collection: str,
        filters: list[tuple[str, str, Any]] | None = None,
        order_by: str | None = None,
        order_direction: str = "ASCENDING",
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        """Query documents with filters.

        Args:
            collection: Collection name
            filters: List of (field, operator, value) tuples
            order_by: Field to order by
            order_direction: ASCENDING or DESCENDING
            limit: Max documents to return
            offset: Number of documents to skip

        Returns:
            List of document dictionaries with IDs
        """
        query = self.collection(collection)

        if filters:
            for field, op, value in filters:
                query = query.where(field, op, value)

        if order_by:
            direction = (
                firestore.Query.DESCENDING if order_direction == "DESCENDING" else firestore.Query.ASCENDING
            )
            query = query.order_by(order_by, direction=direction)

        if offset:
            query = query.offset(offset)

        if limit:
            query = query.limit(limit)

        docs = []
        with _store_errors("query", collection):
            async for doc in query.stream():
                docs.append({"id": doc.id, **doc.to_dict()})

        return docs

    async def count_documents(
        self,
        collection: str,
        filters: list[tuple[str, str, Any]] | None = None,
    ) -> int:
        """Count documents matching filters."""
        query = self.collection(collection)

        if filters:
            for field, op, value in filters:
                query = query.where(field, op, value)

        with _store_errors("count", collection):
            result = await query.count().get()
        return result[0][0].value


# Lazy initialization
_firestore_service: FirestoreService | None = None


def get_firestore_service(settings: BackendSettings | None = None) -> FirestoreService:
    """Get the shared Firestore service instance."""
    global _firestore_service

    if _firestore_service is None or settings is not None:
        if settings is None:
            from backend.config import get_backend_settings

            settings = get_backend_settings()
        _firestore_service = FirestoreService(settings)

    return _firestore_service
