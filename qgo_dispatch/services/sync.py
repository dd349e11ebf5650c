"""
Synchronization controller.

Keeps an in-memory mirror of the ``drivers``, ``jobs`` and ``receipts``
collections. Each collection has one live subscription; every snapshot it
delivers replaces that collection wholesale through ``apply_snapshot``.
Mutations go straight to the store and come back through the
subscriptions, so the mirror is only ever written by the consumers.

Without a configured store the mirror is filled from fixtures once and no
subscription is opened.
"""
import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from functools import partial
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, TypeVar

from pydantic import ValidationError

from qgo_dispatch.core.exceptions import (
    AlreadyExists,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    StoreError,
    StoreUnconfigured,
)
from qgo_dispatch.core.security import get_password_hash
from qgo_dispatch.models.enums import Collection, JobStatus, ReceiptStatus
from qgo_dispatch.schemas.base import BaseSchema, Location, format_timestamp, utcnow
from qgo_dispatch.schemas.driver import Driver, DriverCreate, DriverUpdate
from qgo_dispatch.schemas.job import Job, JobCreate
from qgo_dispatch.schemas.receipt import ReceiptCreate, ReceiptEntry
from qgo_dispatch.services.fixtures import FixtureSet, build_fixtures
from qgo_dispatch.services.session import SessionStore
from qgo_dispatch.services.store.base import DocumentStore, OrderBy, Snapshot, Subscription

logger = logging.getLogger(__name__)

PERMISSION_DENIED_MESSAGE = "Remote store permission denied"

# Access rule offered to the admin when the store denies access.
# Grants everyone read/write: a development shortcut, not a production rule.
REMEDIATION_RULES = """rules_version = '2';
service cloud.firestore {
  match /databases/{database}/documents {
    match /{document=**} {
      allow read, write: if true;
    }
  }
}"""

SUBSCRIPTIONS: tuple[tuple[Collection, Optional[OrderBy]], ...] = (
    (Collection.DRIVERS, None),
    (Collection.JOBS, OrderBy("assignedAt", descending=True)),
    (Collection.RECEIPTS, OrderBy("date", descending=True)),
)

SchemaT = TypeVar("SchemaT", bound=BaseSchema)


@dataclass(frozen=True)
class FleetState:
    """Immutable view of the mirrored collections plus the sync banner."""
    drivers: Mapping[str, Driver] = field(default_factory=lambda: MappingProxyType({}))
    jobs: tuple[Job, ...] = ()
    receipts: tuple[ReceiptEntry, ...] = ()
    loading: bool = True
    error: Optional[str] = None
    show_remediation: bool = False


def parse_documents(snapshot: Snapshot, model: type[SchemaT]) -> tuple[SchemaT, ...]:
    """Validate snapshot documents, skipping (and logging) malformed ones."""
    items = []
    for document in snapshot.documents:
        try:
            items.append(model.model_validate(dict(document)))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed {snapshot.collection} document "
                f"{document.get('id')!r}: {e.error_count()} error(s)"
            )
    return tuple(items)


def apply_snapshot(state: FleetState, snapshot: Snapshot) -> FleetState:
    """Reducer: replace the snapshot's collection in ``state``.

    A drivers snapshot also clears the error banner, since it proves the
    store is readable again.
    """
    collection = Collection(snapshot.collection)
    if collection == Collection.DRIVERS:
        drivers = parse_documents(snapshot, Driver)
        return replace(
            state,
            drivers=MappingProxyType({d.id: d for d in drivers}),
            error=None,
        )
    if collection == Collection.JOBS:
        return replace(state, jobs=parse_documents(snapshot, Job))
    return replace(state, receipts=parse_documents(snapshot, ReceiptEntry))


def state_from_fixtures(fixtures: FixtureSet) -> FleetState:
    return FleetState(
        drivers=MappingProxyType({d.id: d for d in fixtures.drivers}),
        jobs=tuple(sorted(fixtures.jobs, key=lambda j: j.assigned_at, reverse=True)),
        receipts=tuple(sorted(fixtures.receipts, key=lambda r: r.date, reverse=True)),
        loading=False,
    )


async def _exists(store: DocumentStore, collection: Collection, doc_id: str) -> bool:
    try:
        await store.get(collection.value, doc_id)
    except NotFound:
        return False
    return True


@contextmanager
def _logged(action: str) -> Iterator[None]:
    """Log a failed store call and let the error propagate."""
    try:
        yield
    except StoreError as e:
        logger.error(f"{action} failed: {e}")
        raise


class SyncController:
    """Live mirror of the remote collections and the mutation entry points."""

    def __init__(
        self,
        store: Optional[DocumentStore],
        session_store: SessionStore,
        fixtures: Optional[FixtureSet] = None,
    ):
        self.store = store
        self.session_store = session_store
        self._fixtures = fixtures
        self._state = FleetState()
        self._subscriptions: list[Subscription] = []
        self._tasks: list[asyncio.Task] = []
        self._seen: set[Collection] = set()
        self._ready = asyncio.Event()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> FleetState:
        return self._state

    @property
    def configured(self) -> bool:
        return self.store is not None

    @property
    def subscriptions(self) -> tuple[Subscription, ...]:
        return tuple(self._subscriptions)

    async def start(self) -> None:
        """Restore the session and open the three subscriptions."""
        self.session_store.restore()

        if self.store is None:
            self._state = state_from_fixtures(self._fixtures or build_fixtures())
            self._ready.set()
            logger.info("No remote store configured, serving fixture data")
            return

        for collection, order_by in SUBSCRIPTIONS:
            subscription = await self.store.subscribe(
                collection.value,
                order_by=order_by,
                on_error=partial(self._handle_error, collection),
            )
            self._subscriptions.append(subscription)
            task = asyncio.create_task(
                self._consume(collection, subscription),
                name=f"sync-{collection.value}",
            )
            task.add_done_callback(partial(self._consumer_done, collection))
            self._tasks.append(task)

        logger.info(f"Subscribed to {len(self._subscriptions)} collections ({self.store.provider_name})")

    async def stop(self) -> None:
        """Close every subscription and stop the consumers."""
        for subscription in self._subscriptions:
            subscription.close()
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._subscriptions.clear()
        self._tasks.clear()
        logger.info("Sync controller stopped")

    async def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Wait until every collection delivered a snapshot or an error."""
        try:
            await asyncio.wait_for(self._ready.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def _consume(self, collection: Collection, subscription: Subscription) -> None:
        async for snapshot in subscription:
            self._state = apply_snapshot(self._state, snapshot)
            logger.debug(f"Applied {collection.value} snapshot ({len(snapshot)} documents)")
            self._mark_seen(collection)

    def _consumer_done(self, collection: Collection, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                f"Sync of '{collection.value}' stopped unexpectedly",
                exc_info=error,
            )

    def _mark_seen(self, collection: Collection) -> None:
        if self._ready.is_set():
            return
        self._seen.add(collection)
        if len(self._seen) == len(SUBSCRIPTIONS):
            self._state = replace(self._state, loading=False)
            self._ready.set()

    def _handle_error(self, collection: Collection, error: StoreError) -> None:
        logger.error(f"Sync error on '{collection.value}': {error}")
        if isinstance(error, PermissionDenied):
            self._state = replace(
                self._state,
                error=PERMISSION_DENIED_MESSAGE,
                show_remediation=True,
            )
        self._mark_seen(collection)

    def dismiss_remediation(self) -> None:
        self._state = replace(self._state, show_remediation=False)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_driver(self, driver_id: str) -> Optional[Driver]:
        return self._state.drivers.get(driver_id)

    def find_job(self, job_id: str) -> Optional[Job]:
        return next((j for j in self._state.jobs if j.id == job_id), None)

    def find_receipt(self, receipt_id: str) -> Optional[ReceiptEntry]:
        return next((r for r in self._state.receipts if r.id == receipt_id), None)

    def jobs_for_driver(self, driver_id: str) -> list[Job]:
        return [j for j in self._state.jobs if j.driver_id == driver_id]

    def receipts_for_driver(self, driver_id: str) -> list[ReceiptEntry]:
        return [r for r in self._state.receipts if r.driver_id == driver_id]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def require_store(self) -> DocumentStore:
        if self.store is None:
            raise StoreUnconfigured("Remote store is not configured; fixture data is read only")
        return self.store

    async def add_job(self, data: JobCreate) -> Job:
        """Create a PENDING job stamped with the assignment time."""
        store = self.require_store()
        document = {
            **data.to_document(),
            "status": JobStatus.PENDING.value,
            "assignedAt": format_timestamp(utcnow()),
        }

        with _logged("Creating job"):
            if data.id:
                if await _exists(store, Collection.JOBS, data.id):
                    raise AlreadyExists(Collection.JOBS.value, data.id)
                await store.put(Collection.JOBS.value, data.id, document)
                job_id = data.id
            else:
                job_id = await store.create(Collection.JOBS.value, document)

        logger.info(f"Job {job_id} assigned to driver {data.driver_id}")
        return Job.model_validate({**document, "id": job_id})

    async def add_driver(self, data: DriverCreate) -> Driver:
        store = self.require_store()
        with _logged(f"Checking driver {data.id}"):
            taken = await _exists(store, Collection.DRIVERS, data.id)
        if taken:
            raise AlreadyExists(Collection.DRIVERS.value, data.id)

        if data.password:
            data = data.model_copy(update={"password": get_password_hash(data.password)})
        driver = Driver.model_validate(data.model_dump())

        with _logged(f"Adding driver {driver.id}"):
            await store.put(Collection.DRIVERS.value, driver.id, driver.to_document())

        logger.info(f"Driver {driver.id} added")
        return driver

    async def update_driver(self, driver_id: str, data: DriverUpdate) -> Driver:
        store = self.require_store()
        fields = data.model_dump(mode="json", by_alias=True, exclude_unset=True, exclude_none=True)
        if "password" in fields:
            fields["password"] = get_password_hash(fields["password"])

        with _logged(f"Updating driver {driver_id}"):
            if fields:
                await store.patch(Collection.DRIVERS.value, driver_id, fields)
            record = await store.get(Collection.DRIVERS.value, driver_id)

        return Driver.model_validate(record)

    async def delete_driver(self, driver_id: str) -> None:
        store = self.require_store()
        with _logged(f"Deleting driver {driver_id}"):
            await store.delete(Collection.DRIVERS.value, driver_id)
        logger.info(f"Driver {driver_id} deleted")

    async def report_location(self, driver_id: str, lat: float, lng: float) -> Location:
        """Record a driver's position ping as ``lastKnownLocation``."""
        store = self.require_store()
        now = utcnow()
        location = Location(lat=lat, lng=lng, timestamp=int(now.timestamp() * 1000))

        with _logged(f"Recording location of driver {driver_id}"):
            await store.patch(
                Collection.DRIVERS.value,
                driver_id,
                {"lastKnownLocation": location.to_document()},
            )
        return location

    async def log_receipt(self, driver_id: str, data: ReceiptCreate) -> ReceiptEntry:
        """Store an expense submitted by ``driver_id`` as PENDING."""
        store = self.require_store()
        document = {
            **data.to_document(),
            "driverId": driver_id,
            "status": ReceiptStatus.PENDING.value,
        }
        if "date" not in document:
            document["date"] = format_timestamp(utcnow())

        with _logged(f"Logging receipt for driver {driver_id}"):
            receipt_id = await store.create(Collection.RECEIPTS.value, document)

        logger.info(f"Receipt {receipt_id} logged by driver {driver_id} ({data.type.value} {data.amount})")
        return ReceiptEntry.model_validate({**document, "id": receipt_id})

    async def review_receipt(self, receipt_id: str, status: ReceiptStatus) -> ReceiptEntry:
        """Approve or reject a PENDING receipt."""
        store = self.require_store()
        with _logged(f"Reading receipt {receipt_id}"):
            receipt = ReceiptEntry.model_validate(
                await store.get(Collection.RECEIPTS.value, receipt_id)
            )
        if receipt.status != ReceiptStatus.PENDING:
            raise InvalidTransition(
                f"Receipt {receipt_id} was already {receipt.status.value}"
            )

        with _logged(f"Reviewing receipt {receipt_id}"):
            await store.patch(Collection.RECEIPTS.value, receipt_id, {"status": status.value})

        logger.info(f"Receipt {receipt_id} {status.value}")
        return receipt.model_copy(update={"status": status})
