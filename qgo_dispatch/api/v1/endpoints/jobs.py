"""
Job API endpoints.
"""
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException

from qgo_dispatch.core.dependencies import (
    ensure_admin_or_driver,
    get_controller,
    get_current_session,
    get_workflow,
    require_admin,
)
from qgo_dispatch.models.enums import JobStatus
from qgo_dispatch.schemas.job import Job, JobCreate, JobListResponse, JobStatusUpdate
from qgo_dispatch.schemas.session import AdminSession, DriverSession, Session
from qgo_dispatch.services.sync import SyncController
from qgo_dispatch.services.workflow import JobWorkflow

router = APIRouter()


@router.get("", response_model=JobListResponse)
async def list_jobs(
    session: Annotated[Session, Depends(get_current_session)],
    controller: Annotated[SyncController, Depends(get_controller)],
    status: Optional[JobStatus] = None,
    driver_id: Optional[str] = None,
):
    """
    List jobs, newest assignment first.

    Drivers only ever see their own jobs.

    - **status**: Filter by job status
    - **driver_id**: Filter by assigned driver (admin only)
    """
    if isinstance(session, DriverSession):
        driver_id = session.id

    jobs = list(controller.state.jobs)
    if driver_id:
        jobs = [j for j in jobs if j.driver_id == driver_id]
    if status:
        jobs = [j for j in jobs if j.status == status]

    return JobListResponse(items=jobs, total=len(jobs))


@router.get("/{job_id}", response_model=Job)
async def get_job(
    job_id: str,
    session: Annotated[Session, Depends(get_current_session)],
    controller: Annotated[SyncController, Depends(get_controller)],
):
    """Get a specific job by ID."""
    job = controller.find_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    ensure_admin_or_driver(session, job.driver_id)
    return job


@router.post("", response_model=Job, status_code=201)
async def create_job(
    data: JobCreate,
    _: Annotated[AdminSession, Depends(require_admin)],
    controller: Annotated[SyncController, Depends(get_controller)],
):
    """Assign a new job to a driver. The job starts as PENDING."""
    if controller.find_driver(data.driver_id) is None:
        raise HTTPException(
            status_code=400,
            detail=f"Driver {data.driver_id} does not exist",
        )
    return await controller.add_job(data)


@router.post("/{job_id}/status", response_model=Job)
async def advance_job_status(
    job_id: str,
    data: JobStatusUpdate,
    session: Annotated[Session, Depends(get_current_session)],
    controller: Annotated[SyncController, Depends(get_controller)],
    workflow: Annotated[JobWorkflow, Depends(get_workflow)],
):
    """
    Advance a job through its lifecycle.

    - **IN_PROGRESS**: stamps startTime, driver becomes ON_JOB
    - **COMPLETED**: stamps endTime, snapshots the driver's last location,
      driver becomes ONLINE
    - **CANCELLED**: driver becomes ONLINE
    """
    job = controller.find_job(job_id)
    if job is not None:
        ensure_admin_or_driver(session, job.driver_id)
    return await workflow.advance_job_status(job_id, data.status)
