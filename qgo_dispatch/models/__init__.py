"""
Domain enums and the ORM document model for QGO Fleet Dispatch.
"""

# Enums
from qgo_dispatch.models.enums import (
    Role,
    DriverStatus,
    JobStatus,
    ReceiptType,
    ReceiptStatus,
    Collection,
)

# ORM
from qgo_dispatch.models.document import StoredDocument, TimestampMixin

__all__ = [
    # Enums
    "Role",
    "DriverStatus",
    "JobStatus",
    "ReceiptType",
    "ReceiptStatus",
    "Collection",
    # ORM
    "StoredDocument",
    "TimestampMixin",
]
