"""
Synchronization status and role-specific view payloads.
"""
from typing import Literal, Optional

from qgo_dispatch.schemas.base import BaseSchema
from qgo_dispatch.schemas.driver import DriverResponse
from qgo_dispatch.schemas.job import Job
from qgo_dispatch.schemas.receipt import ReceiptEntry


class SyncStatusResponse(BaseSchema):
    """State of the live mirror, as shown in the banner."""
    configured: bool
    loading: bool
    error: Optional[str] = None
    show_remediation: bool = False


class RemediationResponse(BaseSchema):
    """Access-rule snippet offered when the store denies access."""
    title: str
    instructions: str
    rules: str
    warning: str


class AdminDashboardView(BaseSchema):
    view: Literal["ADMIN"] = "ADMIN"
    drivers: list[DriverResponse]
    jobs: list[Job]
    receipts: list[ReceiptEntry]
    sync: SyncStatusResponse


class DriverPortalView(BaseSchema):
    view: Literal["DRIVER"] = "DRIVER"
    driver: Optional[DriverResponse] = None
    jobs: list[Job]
    receipts: list[ReceiptEntry]
    sync: SyncStatusResponse
