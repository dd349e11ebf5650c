"""
Job Pydantic schemas.
"""
from typing import Optional

from pydantic import Field

from qgo_dispatch.models.enums import JobStatus
from qgo_dispatch.schemas.base import BaseSchema, Location, Timestamp, utcnow


class JobBase(BaseSchema):
    """Base job schema with the fields the admin fills in."""
    driver_id: str = Field(..., min_length=1, max_length=50)
    origin: str = Field(..., min_length=1, max_length=200)
    destination: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=1000)


class JobCreate(JobBase):
    """Schema for creating a job. Without an id the store generates one."""
    id: Optional[str] = Field(None, min_length=1, max_length=50, pattern=r"^[A-Za-z0-9_-]+$")


class Job(JobBase):
    """
    Job document as stored in the ``jobs`` collection.

    ``start_time``, ``end_time`` and ``current_location`` are only ever
    written by the lifecycle workflow.
    """
    id: str
    status: JobStatus = JobStatus.PENDING
    assigned_at: Timestamp = Field(default_factory=utcnow)
    start_time: Optional[Timestamp] = None
    end_time: Optional[Timestamp] = None
    current_location: Optional[Location] = None


class JobStatusUpdate(BaseSchema):
    """Request body for advancing a job."""
    status: JobStatus


class JobListResponse(BaseSchema):
    """Schema for list of jobs."""
    items: list[Job]
    total: int
