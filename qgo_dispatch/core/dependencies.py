"""FastAPI dependencies for the live mirror and the login session."""
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from qgo_dispatch.schemas.session import AdminSession, DriverSession, Session
from qgo_dispatch.services.session import SessionStore
from qgo_dispatch.services.sync import SyncController
from qgo_dispatch.services.workflow import JobWorkflow


def get_controller(request: Request) -> SyncController:
    """The application's SyncController, created in the lifespan handler."""
    return request.app.state.controller


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_workflow(
    controller: Annotated[SyncController, Depends(get_controller)],
) -> JobWorkflow:
    return JobWorkflow(controller)


async def get_current_session(
    session_store: Annotated[SessionStore, Depends(get_session_store)],
) -> Session:
    """Dependency returning the logged-in session.

    Raises:
        HTTPException 401: If nobody is logged in
    """
    session = session_store.current
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not logged in",
        )
    return session


async def require_admin(
    session: Annotated[Session, Depends(get_current_session)],
) -> AdminSession:
    if not isinstance(session, AdminSession):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return session


async def require_driver(
    session: Annotated[Session, Depends(get_current_session)],
) -> DriverSession:
    if not isinstance(session, DriverSession):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Driver role required",
        )
    return session


def ensure_admin_or_driver(session: Session, driver_id: str) -> None:
    """Allow admins, or the driver whose id is ``driver_id``.

    Raises:
        HTTPException 403: For any other driver
    """
    match session:
        case AdminSession():
            return
        case DriverSession(id=own_id) if own_id == driver_id:
            return
        case _:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not allowed for this driver",
            )
