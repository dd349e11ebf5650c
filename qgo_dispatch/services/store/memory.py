"""
In-process document store.

Used for local development (``DATABASE_URL=memory://``) and tests. Access
to a collection can be revoked with ``deny()`` to reproduce a store that
rejects the app's access rules.
"""
import copy
import logging
from typing import Any, Optional
from uuid import uuid4

from qgo_dispatch.core.exceptions import NotFound, PermissionDenied
from qgo_dispatch.services.store.base import DocumentStore, OrderBy, sort_documents

logger = logging.getLogger(__name__)


class MemoryDocumentStore(DocumentStore):
    """Dict-backed store; every write pushes snapshots synchronously."""

    def __init__(self, seed: Optional[dict[str, list[dict[str, Any]]]] = None):
        super().__init__()
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._denied: set[str] = set()
        for collection, records in (seed or {}).items():
            bucket = self._collections.setdefault(collection, {})
            for record in records:
                data = copy.deepcopy(record)
                doc_id = data.pop("id")
                bucket[doc_id] = data

    @property
    def provider_name(self) -> str:
        return "memory"

    # ------------------------------------------------------------------
    # Access control
    # ------------------------------------------------------------------

    def deny(self, collection: str) -> None:
        """Reject all further access to ``collection`` (and tell subscribers)."""
        self._denied.add(collection)
        self._fail_subscribers(collection, self._denied_error(collection))

    def allow(self, collection: str) -> None:
        self._denied.discard(collection)

    def _denied_error(self, collection: str) -> PermissionDenied:
        return PermissionDenied(
            f"Missing or insufficient permissions for '{collection}'",
            collection,
        )

    def _check(self, collection: str) -> dict[str, dict[str, Any]]:
        if collection in self._denied:
            raise self._denied_error(collection)
        return self._collections.setdefault(collection, {})

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    async def _query(self, collection: str, order_by: Optional[OrderBy]) -> list[dict[str, Any]]:
        bucket = self._check(collection)
        records = [{**copy.deepcopy(data), "id": doc_id} for doc_id, data in bucket.items()]
        return sort_documents(records, order_by)

    async def create(self, collection: str, record: dict[str, Any]) -> str:
        bucket = self._check(collection)
        doc_id = uuid4().hex
        bucket[doc_id] = _strip_id(record)
        await self._broadcast(collection)
        return doc_id

    async def put(self, collection: str, doc_id: str, record: dict[str, Any]) -> None:
        bucket = self._check(collection)
        bucket[doc_id] = _strip_id(record)
        await self._broadcast(collection)

    async def patch(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        bucket = self._check(collection)
        if doc_id not in bucket:
            raise NotFound(collection, doc_id)
        bucket[doc_id] = {**bucket[doc_id], **_strip_id(fields)}
        await self._broadcast(collection)

    async def get(self, collection: str, doc_id: str) -> dict[str, Any]:
        bucket = self._check(collection)
        if doc_id not in bucket:
            raise NotFound(collection, doc_id)
        return {**copy.deepcopy(bucket[doc_id]), "id": doc_id}

    async def delete(self, collection: str, doc_id: str) -> None:
        bucket = self._check(collection)
        if bucket.pop(doc_id, None) is not None:
            await self._broadcast(collection)


def _strip_id(record: dict[str, Any]) -> dict[str, Any]:
    data = copy.deepcopy(record)
    data.pop("id", None)
    return data
