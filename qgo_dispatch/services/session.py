"""
Login session persisted across restarts.

The session object is created once at startup and handed to whoever needs
it (FastAPI dependencies read it from ``app.state``); nothing here is a
module-level global.
"""
import logging
from typing import Optional

from pydantic import ValidationError

from qgo_dispatch.schemas.session import Session, session_adapter
from qgo_dispatch.services.storage import LocalStorage

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "qgo_user"


class SessionStore:
    """
    Holds the logged-in identity in memory and in local storage.

    There is no expiry and no revalidation against the remote store: a
    persisted session stays valid until ``logout()``.
    """

    def __init__(self, storage: LocalStorage, key: str = DEFAULT_STORAGE_KEY):
        self._storage = storage
        self._key = key
        self._current: Optional[Session] = None

    @property
    def current(self) -> Optional[Session]:
        return self._current

    def login(self, session: Session) -> Session:
        """Persist ``session`` and make it current."""
        self._storage.set_item(self._key, session.model_dump(mode="json", exclude_none=True))
        self._current = session
        logger.info(f"Logged in as {_describe(session)}")
        return session

    def logout(self) -> None:
        """Forget the current session everywhere."""
        if self._current is not None:
            logger.info(f"Logged out {_describe(self._current)}")
        self._current = None
        self._storage.remove_item(self._key)

    def restore(self) -> Optional[Session]:
        """Re-establish the persisted session, if any.

        A value that does not parse as a session is logged and discarded.
        """
        raw = self._storage.get_item(self._key)
        if raw is None:
            self._current = None
            return None
        try:
            self._current = session_adapter.validate_python(raw)
        except ValidationError as e:
            logger.warning(f"Discarding malformed persisted session {raw!r}: {e}")
            self._storage.remove_item(self._key)
            self._current = None
            return None
        logger.info(f"Restored session for {_describe(self._current)}")
        return self._current


def _describe(session: Session) -> str:
    driver_id = getattr(session, "id", None)
    return f"{session.role} {driver_id}" if driver_id else session.role
