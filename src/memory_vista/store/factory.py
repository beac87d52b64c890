"""Build the configured document store adapter."""

from __future__ import annotations

import logging

from memory_vista.db import Database, DatabaseConfig
from memory_vista.settings import Settings

from .base import DocumentStore
from .memory import MemoryDocumentStore
from .sql import SqlDocumentStore

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> DocumentStore:
    """Construct the adapter named by ``settings.store_backend``."""

    if settings.store_backend == "memory":
        store: DocumentStore = MemoryDocumentStore()
    else:
        database = Database()
        database.init(DatabaseConfig.from_settings(settings))
        store = SqlDocumentStore(database)

    logger.info("store.ready", extra={"backend": store.name})
    return store


__all__ = ["build_store"]
