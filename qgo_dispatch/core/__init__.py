"""
Core package for QGO Fleet Dispatch.
"""
from qgo_dispatch.core.config import settings, get_settings

__all__ = ["settings", "get_settings"]
