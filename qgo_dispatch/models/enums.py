"""
Enum type definitions for QGO Fleet Dispatch.

Values are the literal strings stored in the remote documents.
"""
from enum import Enum


class Role(str, Enum):
    """Logged-in role selected on the login screen."""
    ADMIN = "ADMIN"
    DRIVER = "DRIVER"


class DriverStatus(str, Enum):
    """Driver availability."""
    ONLINE = "ONLINE"      # Available for dispatch
    OFFLINE = "OFFLINE"    # Not working
    ON_JOB = "ON_JOB"      # Executing a job

    @classmethod
    def for_job_status(cls, job_status: "JobStatus") -> "DriverStatus":
        """Driver availability implied by a job entering ``job_status``.

        Only IN_PROGRESS keeps the driver busy; every other status
        (COMPLETED and CANCELLED included) releases them.
        """
        if job_status == JobStatus.IN_PROGRESS:
            return cls.ON_JOB
        return cls.ONLINE


class JobStatus(str, Enum):
    """
    Job lifecycle status.

    PENDING -> IN_PROGRESS -> COMPLETED, with CANCELLED reachable from
    either of the first two.
    """
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.CANCELLED)

    def can_transition_to(self, target: "JobStatus") -> bool:
        """Check whether a job in this status may move to ``target``."""
        return target in _JOB_TRANSITIONS[self]


_JOB_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.IN_PROGRESS, JobStatus.CANCELLED}),
    # Re-applying IN_PROGRESS is allowed and leaves startTime untouched
    JobStatus.IN_PROGRESS: frozenset(
        {JobStatus.IN_PROGRESS, JobStatus.COMPLETED, JobStatus.CANCELLED}
    ),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}


class ReceiptType(str, Enum):
    """Expense category of a receipt."""
    FUEL = "FUEL"
    MAINTENANCE = "MAINTENANCE"
    TOLL = "TOLL"
    OTHER = "OTHER"


class ReceiptStatus(str, Enum):
    """Admin approval state of a receipt."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Collection(str, Enum):
    """Remote collection names."""
    DRIVERS = "drivers"
    JOBS = "jobs"
    RECEIPTS = "receipts"
