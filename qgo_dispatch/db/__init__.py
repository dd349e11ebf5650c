"""
Database module for QGO Fleet Dispatch.
"""
from qgo_dispatch.db.database import (
    Base,
    create_engine_from_settings,
    create_session_maker,
    init_db,
)

__all__ = [
    "Base",
    "create_engine_from_settings",
    "create_session_maker",
    "init_db",
]
