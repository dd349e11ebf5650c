"""
Driver API endpoints.
"""
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException

from qgo_dispatch.core.dependencies import (
    ensure_admin_or_driver,
    get_controller,
    get_current_session,
    require_admin,
)
from qgo_dispatch.models.enums import DriverStatus
from qgo_dispatch.schemas.base import Location
from qgo_dispatch.schemas.driver import (
    DriverCreate,
    DriverListResponse,
    DriverResponse,
    DriverUpdate,
    LocationUpdate,
)
from qgo_dispatch.schemas.session import AdminSession, Session
from qgo_dispatch.services.sync import SyncController

router = APIRouter()


@router.get("", response_model=DriverListResponse)
async def list_drivers(
    _: Annotated[AdminSession, Depends(require_admin)],
    controller: Annotated[SyncController, Depends(get_controller)],
    status: Optional[DriverStatus] = None,
):
    """
    List all drivers with optional filtering.

    - **status**: Filter by driver status (ONLINE, OFFLINE, ON_JOB)
    """
    drivers = list(controller.state.drivers.values())
    if status:
        drivers = [d for d in drivers if d.status == status]

    return DriverListResponse(
        items=[DriverResponse.from_driver(d) for d in drivers],
        total=len(drivers),
    )


@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver(
    driver_id: str,
    session: Annotated[Session, Depends(get_current_session)],
    controller: Annotated[SyncController, Depends(get_controller)],
):
    """Get a specific driver by ID."""
    ensure_admin_or_driver(session, driver_id)
    driver = controller.find_driver(driver_id)
    if not driver:
        raise HTTPException(status_code=404, detail="Driver not found")
    return DriverResponse.from_driver(driver)


@router.post("", response_model=DriverResponse, status_code=201)
async def create_driver(
    data: DriverCreate,
    _: Annotated[AdminSession, Depends(require_admin)],
    controller: Annotated[SyncController, Depends(get_controller)],
):
    """
    Create a new driver under the given id.

    The password, when given, is stored as a bcrypt hash.
    """
    driver = await controller.add_driver(data)
    return DriverResponse.from_driver(driver)


@router.patch("/{driver_id}", response_model=DriverResponse)
async def update_driver(
    driver_id: str,
    data: DriverUpdate,
    _: Annotated[AdminSession, Depends(require_admin)],
    controller: Annotated[SyncController, Depends(get_controller)],
):
    """Update a driver."""
    driver = await controller.update_driver(driver_id, data)
    return DriverResponse.from_driver(driver)


@router.delete("/{driver_id}", status_code=204)
async def delete_driver(
    driver_id: str,
    _: Annotated[AdminSession, Depends(require_admin)],
    controller: Annotated[SyncController, Depends(get_controller)],
):
    """Delete a driver."""
    await controller.delete_driver(driver_id)


@router.post("/{driver_id}/location", response_model=Location)
async def report_location(
    driver_id: str,
    data: LocationUpdate,
    session: Annotated[Session, Depends(get_current_session)],
    controller: Annotated[SyncController, Depends(get_controller)],
):
    """Record the driver's current position as lastKnownLocation."""
    ensure_admin_or_driver(session, driver_id)
    return await controller.report_location(driver_id, data.lat, data.lng)
