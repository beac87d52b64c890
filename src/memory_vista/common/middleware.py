"""HTTP middleware: correlation ids, access logging and CORS."""

from __future__ import annotations

import logging
import re
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from memory_vista.settings import Settings

from .logging import bind_request_context, clear_request_context, log_context

REQUEST_ID_HEADER = "X-Request-ID"

_ACCESS_LOGGER = logging.getLogger("memory_vista.request")
_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _incoming_request_id(request: Request) -> str:
    """Reuse a caller-supplied id when it is safe to echo, otherwise mint one."""

    candidate = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if candidate and _SAFE_REQUEST_ID.match(candidate):
        return candidate
    return uuid4().hex


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a correlation id for the request and log one line when it finishes."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _incoming_request_id(request)
        request.state.correlation_id = request_id
        bind_request_context(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            _ACCESS_LOGGER.error(
                "request.error",
                extra=log_context(
                    method=request.method,
                    path=request.url.path,
                    duration_ms=round((time.perf_counter() - started) * 1000.0, 2),
                ),
            )
            raise
        finally:
            clear_request_context()

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        _ACCESS_LOGGER.log(
            level,
            "request.complete",
            extra=log_context(
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000.0, 2),
                correlation_id=request_id,
            ),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def register_middleware(app: FastAPI, settings: Settings) -> None:
    """CORS for the web front-end (when origins are configured), then request context."""

    if settings.server_cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.server_cors_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
            expose_headers=[REQUEST_ID_HEADER, "Retry-After"],
        )
    app.add_middleware(RequestContextMiddleware)


__all__ = ["REQUEST_ID_HEADER", "RequestContextMiddleware", "register_middleware"]
