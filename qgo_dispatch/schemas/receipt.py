"""
Receipt (expense claim) Pydantic schemas.
"""
from typing import Optional

from pydantic import Field, field_validator

from qgo_dispatch.models.enums import ReceiptStatus, ReceiptType
from qgo_dispatch.schemas.base import BaseSchema, Timestamp, utcnow


class ReceiptCreate(BaseSchema):
    """Expense submitted by the logged-in driver."""
    job_id: Optional[str] = Field(None, min_length=1, max_length=50)
    type: ReceiptType
    amount: float = Field(..., gt=0, le=10_000_000)
    description: str = Field("", max_length=500)
    invoice_url: str = Field("", max_length=500, description="Invoice number or link")
    date: Optional[Timestamp] = None

    @field_validator("amount")
    @classmethod
    def round_to_cents(cls, v: float) -> float:
        return round(v, 2)


class ReceiptEntry(BaseSchema):
    """Receipt document as stored in the ``receipts`` collection."""
    id: str
    driver_id: str
    job_id: Optional[str] = None
    type: ReceiptType
    amount: float
    description: str = ""
    invoice_url: str = ""
    date: Timestamp = Field(default_factory=utcnow)
    status: ReceiptStatus = ReceiptStatus.PENDING


class ReceiptReview(BaseSchema):
    """Admin decision on a pending receipt."""
    status: ReceiptStatus

    @field_validator("status")
    @classmethod
    def must_be_decision(cls, v: ReceiptStatus) -> ReceiptStatus:
        if v == ReceiptStatus.PENDING:
            raise ValueError("Review status must be APPROVED or REJECTED")
        return v


class ReceiptListResponse(BaseSchema):
    """Schema for list of receipts."""
    items: list[ReceiptEntry]
    total: int
