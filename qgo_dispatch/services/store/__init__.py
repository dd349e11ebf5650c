"""Remote document store adapters."""
import logging
from typing import Optional

from qgo_dispatch.core.config import Settings
from qgo_dispatch.services.store.base import (
    DocumentStore,
    OrderBy,
    Snapshot,
    Subscription,
    sort_documents,
)
from qgo_dispatch.services.store.memory import MemoryDocumentStore
from qgo_dispatch.services.store.sql import SqlDocumentStore, map_db_error

logger = logging.getLogger(__name__)

MEMORY_URL = "memory://"


def get_document_store(settings: Settings) -> Optional[DocumentStore]:
    """Build the store selected by ``settings.database_url``.

    Returns None when no store is configured; the caller then runs on
    fixture data.
    """
    if not settings.store_configured:
        logger.warning("DATABASE_URL not set, running on fixture data")
        return None

    url = settings.database_url.strip()
    if url == MEMORY_URL:
        logger.info("DocumentStore: using in-process memory store")
        return MemoryDocumentStore()

    logger.info("DocumentStore: using SQL store")
    return SqlDocumentStore.from_settings(settings)


__all__ = [
    "DocumentStore",
    "OrderBy",
    "Snapshot",
    "Subscription",
    "sort_documents",
    "MemoryDocumentStore",
    "SqlDocumentStore",
    "map_db_error",
    "get_document_store",
    "MEMORY_URL",
]
