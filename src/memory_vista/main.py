"""Memory Vista access service FastAPI application entry point."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from .app.lifecycles import create_application_lifespan
from .common.exceptions import register_exception_handlers
from .common.ids import Clock
from .common.logging import setup_logging
from .common.middleware import register_middleware
from .routers import api_router
from .settings import Settings, get_settings
from .store.base import DocumentStore

logger = logging.getLogger(__name__)
API_PREFIX = "/api"


def create_app(
    settings: Settings | None = None,
    *,
    store: DocumentStore | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """Return a configured FastAPI application."""

    settings = settings or get_settings()
    setup_logging(settings)

    docs_url = settings.docs_url if settings.api_docs_enabled else None
    redoc_url = settings.redoc_url if settings.api_docs_enabled else None
    openapi_url = settings.openapi_url if settings.api_docs_enabled else None

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url=docs_url,
        redoc_url=redoc_url,
        openapi_url=openapi_url,
        debug=settings.debug,
        lifespan=create_application_lifespan(settings=settings, store=store, clock=clock),
    )

    app.state.settings = settings
    if settings.jwt_secret is None:
        logger.warning(
            "MV_JWT_SECRET is not set; every authenticated route will answer 401.",
            extra={"jwt_configured": False},
        )

    register_middleware(app, settings)
    register_exception_handlers(app)
    app.include_router(api_router, prefix=API_PREFIX)
    return app


__all__ = [
    "API_PREFIX",
    "create_app",
]
