"""
Receipt (expense claim) API endpoints.
"""
from typing import Annotated, Optional

from fastapi import APIRouter, Depends

from qgo_dispatch.core.dependencies import (
    get_controller,
    get_current_session,
    require_admin,
    require_driver,
)
from qgo_dispatch.models.enums import ReceiptStatus
from qgo_dispatch.schemas.receipt import (
    ReceiptCreate,
    ReceiptEntry,
    ReceiptListResponse,
    ReceiptReview,
)
from qgo_dispatch.schemas.session import AdminSession, DriverSession, Session
from qgo_dispatch.services.sync import SyncController

router = APIRouter()


@router.get("", response_model=ReceiptListResponse)
async def list_receipts(
    session: Annotated[Session, Depends(get_current_session)],
    controller: Annotated[SyncController, Depends(get_controller)],
    status: Optional[ReceiptStatus] = None,
):
    """
    List receipts, newest first. Drivers only see their own.

    - **status**: Filter by approval status
    """
    if isinstance(session, DriverSession):
        receipts = controller.receipts_for_driver(session.id)
    else:
        receipts = list(controller.state.receipts)

    if status:
        receipts = [r for r in receipts if r.status == status]

    return ReceiptListResponse(items=receipts, total=len(receipts))


@router.post("", response_model=ReceiptEntry, status_code=201)
async def log_receipt(
    data: ReceiptCreate,
    session: Annotated[DriverSession, Depends(require_driver)],
    controller: Annotated[SyncController, Depends(get_controller)],
):
    """Submit an expense receipt for the logged-in driver."""
    return await controller.log_receipt(session.id, data)


@router.post("/{receipt_id}/review", response_model=ReceiptEntry)
async def review_receipt(
    receipt_id: str,
    data: ReceiptReview,
    _: Annotated[AdminSession, Depends(require_admin)],
    controller: Annotated[SyncController, Depends(get_controller)],
):
    """Approve or reject a pending receipt."""
    return await controller.review_receipt(receipt_id, data.status)
