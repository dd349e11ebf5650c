"""
Role-specific view payloads for the presentation shells.
"""
from typing import Annotated, Union, assert_never

from fastapi import APIRouter, Depends

from qgo_dispatch.core.dependencies import get_controller, get_current_session
from qgo_dispatch.schemas.driver import DriverResponse
from qgo_dispatch.schemas.session import AdminSession, DriverSession, Session
from qgo_dispatch.schemas.sync import AdminDashboardView, DriverPortalView, SyncStatusResponse
from qgo_dispatch.services.sync import SyncController

router = APIRouter()


def sync_status(controller: SyncController) -> SyncStatusResponse:
    state = controller.state
    return SyncStatusResponse(
        configured=controller.configured,
        loading=state.loading,
        error=state.error,
        show_remediation=state.show_remediation,
    )


@router.get("", response_model=Union[AdminDashboardView, DriverPortalView])
async def get_dashboard(
    session: Annotated[Session, Depends(get_current_session)],
    controller: Annotated[SyncController, Depends(get_controller)],
):
    """
    View for the logged-in role.

    - **ADMIN**: every driver, job and receipt
    - **DRIVER**: the driver's own record, jobs and receipts
    """
    state = controller.state

    match session:
        case AdminSession():
            return AdminDashboardView(
                drivers=[DriverResponse.from_driver(d) for d in state.drivers.values()],
                jobs=list(state.jobs),
                receipts=list(state.receipts),
                sync=sync_status(controller),
            )
        case DriverSession(id=driver_id):
            driver = controller.find_driver(driver_id)
            return DriverPortalView(
                driver=DriverResponse.from_driver(driver) if driver else None,
                jobs=controller.jobs_for_driver(driver_id),
                receipts=controller.receipts_for_driver(driver_id),
                sync=sync_status(controller),
            )
        case _:
            assert_never(session)
