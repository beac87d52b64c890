"""Service layer for the health module."""

from __future__ import annotations

import logging

from memory_vista.common.ids import utc_now
from memory_vista.common.logging import log_context
from memory_vista.core.access.errors import StoreUnavailableError
from memory_vista.settings import Settings
from memory_vista.store.base import DocumentStore

from .schemas import HealthCheckResponse, HealthComponentStatus

logger = logging.getLogger(__name__)

_HEALTH_CHECK_ID = "__health__"


class HealthService:
    """Compute the liveness response, probing the document store once."""

    def __init__(self, *, settings: Settings, store: DocumentStore) -> None:
        self._settings = settings
        self._store = store

    async def status(self) -> HealthCheckResponse:
        components = [
            HealthComponentStatus(
                name="api",
                status="available",
                detail=f"v{self._settings.app_version}",
            ),
        ]
        try:
            await self._store.get_university(_HEALTH_CHECK_ID)
        except StoreUnavailableError:
            logger.warning("health.store.unavailable", extra=log_context(backend=self._store.name))
            components.append(
                HealthComponentStatus(name="store", status="unavailable", detail=self._store.name)
            )
        else:
            components.append(
                HealthComponentStatus(name="store", status="available", detail=self._store.name)
            )

        overall = "ok" if all(c.status == "available" for c in components) else "degraded"
        return HealthCheckResponse(status=overall, timestamp=utc_now(), components=components)


__all__ = ["HealthService"]
