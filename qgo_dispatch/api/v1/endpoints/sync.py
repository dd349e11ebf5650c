"""
Synchronization status endpoints (error banner and remediation prompt).
"""
from typing import Annotated

from fastapi import APIRouter, Depends

from qgo_dispatch.api.v1.endpoints.dashboard import sync_status
from qgo_dispatch.core.dependencies import get_controller, require_admin
from qgo_dispatch.schemas.session import AdminSession
from qgo_dispatch.schemas.sync import RemediationResponse, SyncStatusResponse
from qgo_dispatch.services.sync import REMEDIATION_RULES, SyncController

router = APIRouter()


@router.get("/status", response_model=SyncStatusResponse)
async def get_sync_status(
    controller: Annotated[SyncController, Depends(get_controller)],
):
    """Loading flag, error banner and whether to show the remediation prompt."""
    return sync_status(controller)


@router.get("/remediation", response_model=RemediationResponse)
async def get_remediation(
    _: Annotated[AdminSession, Depends(require_admin)],
):
    """
    Access rules that unlock the remote store.

    These rules allow unconditional read/write and are meant for
    development setups only.
    """
    return RemediationResponse(
        title="Database Locked",
        instructions="Update the document store access rules to allow the app to sync.",
        rules=REMEDIATION_RULES,
        warning="Grants read/write to everyone. Do not use in production.",
    )


@router.post("/remediation/dismiss", response_model=SyncStatusResponse)
async def dismiss_remediation(
    _: Annotated[AdminSession, Depends(require_admin)],
    controller: Annotated[SyncController, Depends(get_controller)],
):
    """Hide the remediation prompt; the error banner stays until sync recovers."""
    controller.dismiss_remediation()
    return sync_status(controller)
