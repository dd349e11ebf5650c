"""Login session endpoints."""
import logging
from typing import Annotated, assert_never

from fastapi import APIRouter, Depends

from qgo_dispatch.core.config import get_settings
from qgo_dispatch.core.dependencies import get_controller, get_session_store
from qgo_dispatch.core.exceptions import InvalidCredentials, StoreError
from qgo_dispatch.core.security import check_admin_password, needs_rehash, verify_password
from qgo_dispatch.models.enums import Role
from qgo_dispatch.schemas.driver import DriverUpdate
from qgo_dispatch.schemas.session import AdminSession, DriverSession, LoginRequest, SessionResponse
from qgo_dispatch.services.session import SessionStore
from qgo_dispatch.services.sync import SyncController

router = APIRouter(prefix="/session", tags=["Session"])
logger = logging.getLogger(__name__)


@router.get("", response_model=SessionResponse)
async def get_session(
    session_store: Annotated[SessionStore, Depends(get_session_store)],
) -> SessionResponse:
    """Return the persisted session, or null when logged out."""
    return SessionResponse(session=session_store.current)


@router.post("/login", response_model=SessionResponse)
async def login(
    data: LoginRequest,
    session_store: Annotated[SessionStore, Depends(get_session_store)],
    controller: Annotated[SyncController, Depends(get_controller)],
) -> SessionResponse:
    """Select a role and persist the session.

    - **ADMIN**: requires the configured admin password, if any
    - **DRIVER**: requires an existing driver id and, when the driver has
      a password, the matching password

    Raises:
        401 Unauthorized: If the credentials are rejected
    """
    match data.role:
        case Role.ADMIN:
            if not check_admin_password(get_settings().admin_password, data.password):
                logger.warning("Admin login failed: wrong password")
                raise InvalidCredentials("Incorrect admin password")
            session = AdminSession()

        case Role.DRIVER:
            driver = controller.find_driver(data.id)
            if driver is None:
                logger.warning(f"Login attempt failed: driver '{data.id}' not found")
                raise InvalidCredentials("Unknown driver or wrong password")

            if driver.password:
                if not data.password or not verify_password(data.password, driver.password):
                    logger.warning(f"Login attempt failed: invalid password for driver '{data.id}'")
                    raise InvalidCredentials("Unknown driver or wrong password")
                if needs_rehash(driver.password) and controller.configured:
                    await _upgrade_password(controller, driver.id, data.password)

            session = DriverSession(id=driver.id)

        case _:
            assert_never(data.role)

    session_store.login(session)
    return SessionResponse(session=session)


@router.post("/logout", response_model=SessionResponse)
async def logout(
    session_store: Annotated[SessionStore, Depends(get_session_store)],
) -> SessionResponse:
    """Clear the persisted session."""
    session_store.logout()
    return SessionResponse(session=None)


async def _upgrade_password(controller: SyncController, driver_id: str, password: str) -> None:
    """Replace a legacy plaintext password with a bcrypt hash."""
    try:
        await controller.update_driver(driver_id, DriverUpdate(password=password))
        logger.info(f"Upgraded stored password of driver '{driver_id}' to bcrypt")
    except StoreError as e:
        # Login already succeeded; the upgrade is retried on the next login
        logger.warning(f"Could not upgrade password of driver '{driver_id}': {e}")
