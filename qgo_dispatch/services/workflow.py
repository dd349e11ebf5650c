"""
Job lifecycle workflow.

Advancing a job writes two documents, the job first and its driver
second:

1. ``jobs/<id>``: new status, plus ``startTime`` on entering IN_PROGRESS
   and ``endTime`` / ``currentLocation`` on entering COMPLETED.
2. ``drivers/<driverId>``: ON_JOB while the job runs, ONLINE otherwise.

The two writes are not atomic. If the driver write fails the job keeps
its new status; the failure is logged with both ids and re-raised.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Optional

from pydantic import ValidationError

from qgo_dispatch.core.exceptions import InvalidTransition, NotFound, StoreError
from qgo_dispatch.models.enums import Collection, DriverStatus, JobStatus
from qgo_dispatch.schemas.base import Location, format_timestamp, utcnow
from qgo_dispatch.schemas.job import Job
from qgo_dispatch.services.store.base import DocumentStore
from qgo_dispatch.services.sync import SyncController

logger = logging.getLogger(__name__)


class JobWorkflow:
    """Status transitions for jobs and their side effects on drivers."""

    def __init__(
        self,
        controller: SyncController,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._controller = controller
        self._clock = clock

    async def advance_job_status(self, job_id: str, new_status: JobStatus) -> Job:
        """
        Move a job to ``new_status`` and update its driver.

        Args:
            job_id: Id of a job present in the live mirror
            new_status: Target status

        Returns:
            The job as written

        Raises:
            NotFound: If the job is not in the mirror
            InvalidTransition: If the lifecycle forbids the move
            StoreError: If the read or either write fails
        """
        store = self._controller.require_store()
        if self._controller.find_job(job_id) is None:
            logger.warning(f"Cannot advance unknown job {job_id}")
            raise NotFound(Collection.JOBS.value, job_id)

        # Guards read the stored record, not the mirror
        try:
            job = Job.model_validate(await store.get(Collection.JOBS.value, job_id))
        except StoreError as e:
            logger.error(f"Reading job {job_id} failed: {e}")
            raise

        if not job.status.can_transition_to(new_status):
            raise InvalidTransition(
                f"Job {job_id} cannot move from {job.status.value} to {new_status.value}"
            )

        updates = await self._job_updates(store, job, new_status)

        try:
            await store.patch(Collection.JOBS.value, job_id, updates)
        except StoreError as e:
            logger.error(f"Updating job {job_id} to {new_status.value} failed: {e}")
            raise

        if job.driver_id:
            driver_status = DriverStatus.for_job_status(new_status)
            try:
                await store.patch(
                    Collection.DRIVERS.value,
                    job.driver_id,
                    {"status": driver_status.value},
                )
            except StoreError as e:
                logger.error(
                    f"Job {job_id} is {new_status.value} but driver {job.driver_id} "
                    f"could not be set to {driver_status.value}; records diverge: {e}"
                )
                raise

        logger.info(f"Job {job_id}: {job.status.value} -> {new_status.value}")
        return Job.model_validate({**job.to_document(), **updates, "id": job_id})

    async def _job_updates(
        self,
        store: DocumentStore,
        job: Job,
        new_status: JobStatus,
    ) -> dict[str, Any]:
        updates: dict[str, Any] = {"status": new_status.value}
        now = self._clock()

        # startTime / endTime are written once and never moved
        if new_status == JobStatus.IN_PROGRESS and job.start_time is None:
            updates["startTime"] = format_timestamp(now)

        if new_status == JobStatus.COMPLETED:
            if job.end_time is None:
                updates["endTime"] = format_timestamp(now)
            location = await self._driver_location(store, job.driver_id)
            if location is not None:
                updates["currentLocation"] = location.to_document()

        return updates

    async def _driver_location(
        self,
        store: DocumentStore,
        driver_id: str,
    ) -> Optional[Location]:
        """Best-effort read of the driver's last reported position."""
        if not driver_id:
            return None
        try:
            record = await store.get(Collection.DRIVERS.value, driver_id)
        except NotFound:
            logger.warning(f"Driver {driver_id} not found, completing job without location")
            return None
        except StoreError as e:
            logger.warning(f"Could not read location of driver {driver_id}: {e}")
            return None

        raw = record.get("lastKnownLocation")
        if raw is None:
            return None
        try:
            return Location.model_validate(raw)
        except ValidationError:
            logger.warning(f"Ignoring malformed location on driver {driver_id}: {raw!r}")
            return None
