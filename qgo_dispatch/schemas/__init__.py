"""
Pydantic schemas for documents and API request/response validation.
"""

from qgo_dispatch.schemas.base import BaseSchema, Location, Timestamp, utcnow
from qgo_dispatch.schemas.driver import (
    Driver,
    DriverCreate,
    DriverUpdate,
    DriverResponse,
    DriverListResponse,
    LocationUpdate,
)
from qgo_dispatch.schemas.job import (
    Job,
    JobCreate,
    JobStatusUpdate,
    JobListResponse,
)
from qgo_dispatch.schemas.receipt import (
    ReceiptEntry,
    ReceiptCreate,
    ReceiptReview,
    ReceiptListResponse,
)
from qgo_dispatch.schemas.session import (
    AdminSession,
    DriverSession,
    Session,
    LoginRequest,
    SessionResponse,
)
from qgo_dispatch.schemas.sync import (
    SyncStatusResponse,
    RemediationResponse,
    AdminDashboardView,
    DriverPortalView,
)

__all__ = [
    # Base
    "BaseSchema",
    "Location",
    "Timestamp",
    "utcnow",
    # Driver
    "Driver",
    "DriverCreate",
    "DriverUpdate",
    "DriverResponse",
    "DriverListResponse",
    "LocationUpdate",
    # Job
    "Job",
    "JobCreate",
    "JobStatusUpdate",
    "JobListResponse",
    # Receipt
    "ReceiptEntry",
    "ReceiptCreate",
    "ReceiptReview",
    "ReceiptListResponse",
    # Session
    "AdminSession",
    "DriverSession",
    "Session",
    "LoginRequest",
    "SessionResponse",
    # Sync / views
    "SyncStatusResponse",
    "RemediationResponse",
    "AdminDashboardView",
    "DriverPortalView",
]
