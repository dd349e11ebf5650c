"""
SQL-backed document store.

All collections share the ``documents`` table. Writes push fresh
snapshots to local subscribers; on PostgreSQL every write also issues
``pg_notify`` on the configured channel, and a LISTEN connection turns
notifications from other processes into local snapshots.
"""
import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional
from uuid import uuid4

from sqlalchemy import select, text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncSession

from qgo_dispatch.core.config import Settings
from qgo_dispatch.core.exceptions import (
    NotFound,
    PermissionDenied,
    StoreError,
    TransportError,
)
from qgo_dispatch.db.database import create_engine_from_settings, create_session_maker
from qgo_dispatch.models.document import StoredDocument
from qgo_dispatch.services.store.base import DocumentStore, ErrorCallback, OrderBy, Subscription

logger = logging.getLogger(__name__)

# SQLSTATE for insufficient_privilege
SQLSTATE_INSUFFICIENT_PRIVILEGE = "42501"


def map_db_error(exc: Exception, collection: Optional[str] = None) -> StoreError:
    """Translate a SQLAlchemy/driver exception into the store error taxonomy."""
    if isinstance(exc, DBAPIError):
        orig = exc.orig
        sqlstate = (
            getattr(orig, "sqlstate", None)
            or getattr(orig, "pgcode", None)
            or getattr(getattr(orig, "__cause__", None), "sqlstate", None)
        )
        if sqlstate == SQLSTATE_INSUFFICIENT_PRIVILEGE:
            return PermissionDenied(f"Permission denied: {orig}", collection)
    return TransportError(f"Document store error: {exc}", collection)


class SqlDocumentStore(DocumentStore):
    """Document store on top of SQLAlchemy async."""

    def __init__(self, engine: AsyncEngine, notify_channel: Optional[str] = None):
        super().__init__()
        self._engine = engine
        self._session_maker = create_session_maker(engine)
        self._notify_channel = (
            notify_channel if engine.dialect.name == "postgresql" else None
        )
        self._instance_id = uuid4().hex
        self._listener: Optional[AsyncConnection] = None
        self._listener_tasks: set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, settings: Settings) -> "SqlDocumentStore":
        return cls(create_engine_from_settings(settings), settings.notify_channel)

    @property
    def provider_name(self) -> str:
        return "sql"

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _session(self, collection: str) -> AsyncIterator[AsyncSession]:
        """Transactional session that maps database errors onto StoreError."""
        async with self._session_maker() as session:
            try:
                yield session
                await session.commit()
            except StoreError:
                await session.rollback()
                raise
            except SQLAlchemyError as exc:
                await session.rollback()
                raise map_db_error(exc, collection) from exc
            except OSError as exc:
                raise TransportError(f"Cannot reach document store: {exc}", collection) from exc

    async def _notify(self, session: AsyncSession, collection: str) -> None:
        if self._notify_channel is None:
            return
        payload = json.dumps({"collection": collection, "origin": self._instance_id})
        await session.execute(
            text("SELECT pg_notify(:channel, :payload)"),
            {"channel": self._notify_channel, "payload": payload},
        )

    # ------------------------------------------------------------------
    # Cross-process notifications
    # ------------------------------------------------------------------

    async def subscribe(
        self,
        collection: str,
        order_by: Optional[OrderBy] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        await self._ensure_listener()
        return await super().subscribe(collection, order_by=order_by, on_error=on_error)

    async def _ensure_listener(self) -> None:
        if self._notify_channel is None or self._listener is not None:
            return
        try:
            self._listener = await self._engine.connect()
            raw = await self._listener.get_raw_connection()
            await raw.driver_connection.add_listener(self._notify_channel, self._on_notification)
            logger.info(f"Listening for document changes on '{self._notify_channel}'")
        except (SQLAlchemyError, OSError) as exc:
            # Local writes still reach local subscribers
            logger.warning(f"Cross-process notifications unavailable: {exc}")
            if self._listener is not None:
                await self._listener.close()
            self._listener = None

    def _on_notification(self, connection, pid, channel, payload) -> None:
        try:
            message = json.loads(payload)
        except ValueError:
            logger.warning(f"Ignoring malformed notification on '{channel}': {payload!r}")
            return
        if message.get("origin") == self._instance_id:
            return
        collection = message.get("collection")
        if not collection:
            return
        task = asyncio.get_running_loop().create_task(self._broadcast(collection))
        self._listener_tasks.add(task)
        task.add_done_callback(self._listener_tasks.discard)

    async def close(self) -> None:
        await super().close()
        for task in list(self._listener_tasks):
            task.cancel()
        if self._listener is not None:
            await self._listener.close()
            self._listener = None
        await self._engine.dispose()

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    async def _query(self, collection: str, order_by: Optional[OrderBy]) -> list[dict[str, Any]]:
        query = select(StoredDocument).where(StoredDocument.collection == collection)
        if order_by is not None:
            key = StoredDocument.data[order_by.field].as_string()
            query = query.order_by(key.desc() if order_by.descending else key.asc())

        async with self._session(collection) as session:
            result = await session.execute(query)
            documents = result.scalars().all()
            return [doc.to_record() for doc in documents]

    async def create(self, collection: str, record: dict[str, Any]) -> str:
        doc_id = uuid4().hex
        data = {k: v for k, v in record.items() if k != "id"}
        async with self._session(collection) as session:
            session.add(StoredDocument(collection=collection, id=doc_id, data=data))
            await self._notify(session, collection)
        await self._broadcast(collection)
        return doc_id

    async def put(self, collection: str, doc_id: str, record: dict[str, Any]) -> None:
        data = {k: v for k, v in record.items() if k != "id"}
        async with self._session(collection) as session:
            await session.merge(StoredDocument(collection=collection, id=doc_id, data=data))
            await self._notify(session, collection)
        await self._broadcast(collection)

    async def patch(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        async with self._session(collection) as session:
            document = await session.get(StoredDocument, (collection, doc_id))
            if document is None:
                raise NotFound(collection, doc_id)
            # Reassign so the JSON column is flagged dirty
            document.data = {
                **document.data,
                **{k: v for k, v in fields.items() if k != "id"},
            }
            await self._notify(session, collection)
        await self._broadcast(collection)

    async def get(self, collection: str, doc_id: str) -> dict[str, Any]:
        async with self._session(collection) as session:
            document = await session.get(StoredDocument, (collection, doc_id))
            if document is None:
                raise NotFound(collection, doc_id)
            return document.to_record()

    async def delete(self, collection: str, doc_id: str) -> None:
        async with self._session(collection) as session:
            document = await session.get(StoredDocument, (collection, doc_id))
            if document is None:
                return
            await session.delete(document)
            await self._notify(session, collection)
        await self._broadcast(collection)
