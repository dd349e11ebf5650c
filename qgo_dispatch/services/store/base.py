"""
DocumentStore abstraction over a live document database.

A store exposes per-document reads and writes plus long-lived
subscriptions. A subscription is an async iterator of full-collection
``Snapshot``s: every change to the collection produces a new snapshot
containing the entire current contents, so consumers simply replace their
copy. Errors on a subscription go to its ``on_error`` callback and do not
end the stream; only ``Subscription.close()`` does.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional

from qgo_dispatch.core.exceptions import StoreError

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[StoreError], None]


@dataclass(frozen=True)
class OrderBy:
    """Ordering of the documents inside a snapshot."""
    field: str
    descending: bool = True


@dataclass(frozen=True)
class Snapshot:
    """Immutable full contents of one collection at one point in time."""
    collection: str
    documents: tuple[Mapping[str, Any], ...]

    @classmethod
    def build(cls, collection: str, records: Iterable[dict[str, Any]]) -> "Snapshot":
        return cls(
            collection=collection,
            documents=tuple(MappingProxyType(dict(r)) for r in records),
        )

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def ids(self) -> list[str]:
        return [doc["id"] for doc in self.documents]


def sort_documents(
    records: list[dict[str, Any]],
    order_by: Optional[OrderBy],
) -> list[dict[str, Any]]:
    """Order records by ``order_by.field``; records without the field go last."""
    if order_by is None:
        return records
    present = [r for r in records if r.get(order_by.field) is not None]
    missing = [r for r in records if r.get(order_by.field) is None]
    present.sort(key=lambda r: r[order_by.field], reverse=order_by.descending)
    return present + missing


class Subscription:
    """
    Live stream of snapshots for one collection.

    Only the newest undelivered snapshot is kept: a slow consumer skips
    intermediate states but always ends up on the latest one.
    """

    def __init__(
        self,
        collection: str,
        order_by: Optional[OrderBy] = None,
        on_error: Optional[ErrorCallback] = None,
        on_close: Optional[Callable[["Subscription"], None]] = None,
    ):
        self.collection = collection
        self.order_by = order_by
        self._on_error = on_error
        self._on_close = on_close
        self._pending: Optional[Snapshot] = None
        self._ready = asyncio.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, snapshot: Snapshot) -> None:
        """Queue ``snapshot`` for delivery, replacing any undelivered one."""
        if self._closed:
            return
        self._pending = snapshot
        self._ready.set()

    def fail(self, error: StoreError) -> None:
        """Report a stream error through the side channel."""
        if self._closed:
            return
        if self._on_error is None:
            logger.error(f"Unhandled error on '{self.collection}' subscription: {error}")
            return
        self._on_error(error)

    def close(self) -> None:
        """Stop the stream. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._pending = None
        self._ready.set()
        if self._on_close is not None:
            self._on_close(self)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Snapshot:
        while True:
            if self._closed:
                raise StopAsyncIteration
            if self._pending is not None:
                snapshot, self._pending = self._pending, None
                self._ready.clear()
                return snapshot
            await self._ready.wait()


class DocumentStore(ABC):
    """Abstract base class for live document stores."""

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[Subscription]] = defaultdict(list)

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the store identifier ('memory' or 'sql')."""

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def subscribe(
        self,
        collection: str,
        order_by: Optional[OrderBy] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        """Open a live subscription; the current contents are pushed at once."""
        subscription = Subscription(
            collection,
            order_by=order_by,
            on_error=on_error,
            on_close=self._detach,
        )
        self._subscriptions[collection].append(subscription)
        logger.debug(f"Subscribed to '{collection}' ({self.provider_name})")
        await self._deliver(subscription)
        return subscription

    def _detach(self, subscription: Subscription) -> None:
        subscribers = self._subscriptions.get(subscription.collection, [])
        if subscription in subscribers:
            subscribers.remove(subscription)

    def subscriber_count(self, collection: Optional[str] = None) -> int:
        if collection is not None:
            return len(self._subscriptions.get(collection, []))
        return sum(len(subs) for subs in self._subscriptions.values())

    async def _deliver(self, subscription: Subscription) -> None:
        try:
            records = await self._query(subscription.collection, subscription.order_by)
        except StoreError as exc:
            subscription.fail(exc)
            return
        subscription.push(Snapshot.build(subscription.collection, records))

    async def _broadcast(self, collection: str) -> None:
        """Push a fresh snapshot to every subscriber of ``collection``."""
        for subscription in list(self._subscriptions.get(collection, [])):
            await self._deliver(subscription)

    def _fail_subscribers(self, collection: str, error: StoreError) -> None:
        for subscription in list(self._subscriptions.get(collection, [])):
            subscription.fail(error)

    async def close(self) -> None:
        """Close every open subscription and release resources."""
        for subscribers in list(self._subscriptions.values()):
            for subscription in list(subscribers):
                subscription.close()
        self._subscriptions.clear()

    # ------------------------------------------------------------------
    # Backend primitives
    # ------------------------------------------------------------------

    @abstractmethod
    async def _query(
        self,
        collection: str,
        order_by: Optional[OrderBy],
    ) -> list[dict[str, Any]]:
        """Return every record of ``collection`` (with ``id``), ordered."""

    @abstractmethod
    async def create(self, collection: str, record: dict[str, Any]) -> str:
        """Insert ``record`` under a freshly generated id and return the id."""

    @abstractmethod
    async def put(self, collection: str, doc_id: str, record: dict[str, Any]) -> None:
        """Create or fully replace the document at ``doc_id``."""

    @abstractmethod
    async def patch(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Merge ``fields`` into an existing document.

        Raises:
            NotFound: If the document does not exist.
        """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> dict[str, Any]:
        """Return the document (with ``id``).

        Raises:
            NotFound: If the document does not exist.
        """

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete the document; deleting a missing document is not an error."""
