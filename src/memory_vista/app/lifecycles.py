"""FastAPI lifespan helpers for the access service."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.routing import Lifespan

from memory_vista.common.ids import Clock, utc_now
from memory_vista.settings import Settings
from memory_vista.store.base import DocumentStore
from memory_vista.store.factory import build_store

logger = logging.getLogger(__name__)


def create_application_lifespan(
    *,
    settings: Settings,
    store: DocumentStore | None = None,
    clock: Clock | None = None,
) -> Lifespan[FastAPI]:
    """Return the lifespan that owns the document store for the app's lifetime.

    A caller-supplied ``store`` is used as-is and left open on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = store is None
        active = store if store is not None else build_store(settings)
        app.state.store = active
        app.state.clock = clock or utc_now
        logger.info(
            "app.startup",
            extra={"store_backend": active.name, "app_version": settings.app_version},
        )
        try:
            yield
        finally:
            if owned:
                await active.close()
            app.state.store = None
            logger.info("app.shutdown")

    return lifespan


__all__ = ["create_application_lifespan"]
