"""Centralized FastAPI exception handlers with structured logging."""

from __future__ import annotations

import logging
import math

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from memory_vista.common.ids import utc_now
from memory_vista.common.logging import log_context
from memory_vista.core.access.errors import (
    GENERIC_DENIAL,
    AccessDeniedError,
    InvalidInputError,
    InvalidTransitionError,
    RateLimitedError,
    StoreUnavailableError,
)

_UNHANDLED_LOGGER = logging.getLogger("memory_vista.errors")
_HTTP_LOGGER = logging.getLogger("memory_vista.http")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything not mapped below: 500 with an opaque body, full stack in the log."""

    _UNHANDLED_LOGGER.error(
        "request.unhandled_exception",
        extra=log_context(
            method=request.method,
            path=request.url.path,
            exception_type=type(exc).__name__,
        ),
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Pass framework HTTP errors (401 from auth, 404 for unknown routes) through."""

    if exc.status_code >= 500:
        _HTTP_LOGGER.error(
            "request.http_error",
            extra=log_context(
                method=request.method,
                path=request.url.path,
                status_code=exc.status_code,
            ),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


async def access_denied_handler(request: Request, exc: AccessDeniedError) -> JSONResponse:
    """Missing resources and insufficient roles share one response."""

    _HTTP_LOGGER.info(
        "access.denied",
        extra=log_context(
            path=str(request.url.path),
            method=request.method,
            exception_type=type(exc).__name__,
        ),
    )
    return JSONResponse(status_code=403, content={"detail": GENERIC_DENIAL})


async def rate_limited_handler(request: Request, exc: RateLimitedError) -> JSONResponse:
    headers: dict[str, str] = {}
    if exc.retry_at is not None:
        clock = getattr(request.app.state, "clock", None) or utc_now
        seconds = math.ceil((exc.retry_at - clock()).total_seconds())
        headers["Retry-After"] = str(max(0, seconds))

    return JSONResponse(
        status_code=429,
        content={
            "detail": str(exc),
            "reason": exc.reason,
            "retryAt": exc.retry_at.isoformat() if exc.retry_at is not None else None,
            "limit": exc.limit,
        },
        headers=headers or None,
    )


async def invalid_transition_handler(
    request: Request, exc: InvalidTransitionError
) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


async def store_unavailable_handler(
    request: Request, exc: StoreUnavailableError
) -> JSONResponse:
    _HTTP_LOGGER.error(
        "store.unavailable",
        extra=log_context(
            path=str(request.url.path),
            method=request.method,
            detail=str(exc),
        ),
    )
    return JSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable", "retryable": True},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AccessDeniedError, access_denied_handler)
    app.add_exception_handler(RateLimitedError, rate_limited_handler)
    app.add_exception_handler(InvalidTransitionError, invalid_transition_handler)
    app.add_exception_handler(InvalidInputError, invalid_input_handler)
    app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = [
    "access_denied_handler",
    "http_exception_handler",
    "invalid_input_handler",
    "invalid_transition_handler",
    "rate_limited_handler",
    "register_exception_handlers",
    "store_unavailable_handler",
    "unhandled_exception_handler",
]
