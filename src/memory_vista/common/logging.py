"""Process-wide console logging.

Every record renders as one line::

    2026-03-02T10:14:08.117Z INFO  memory_vista.core.access.workflow [cid=4f1c] editor_request.submit.success user_id=u-42 profile_id=p-7

The correlation id comes from the request context bound by
:class:`~memory_vista.common.middleware.RequestContextMiddleware`; anything
passed through ``extra=`` is appended as ``key=value`` pairs. Call sites build
``extra`` with :func:`log_context` so the access-control identifiers always use
the same keys.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from memory_vista.settings import Settings

_request_id: ContextVar[str | None] = ContextVar("memory_vista_request_id", default=None)

# Attributes every LogRecord carries, plus the ones Formatter adds or we render ourselves.
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "correlation_id",
    "taskName",
    "color_message",
}

# Third-party loggers that ship their own handlers; route them through root instead.
_ADOPTED_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "alembic",
    "sqlalchemy",
)

_CONFIGURED_ATTR = "_memory_vista_configured"


def _render(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple, set, frozenset)):
        return ",".join(str(item) for item in value)
    return str(value)


class ConsoleLogFormatter(logging.Formatter):
    """Single-line formatter with UTC millisecond timestamps and trailing extras."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-5s %(name)s [cid=%(correlation_id)s] %(message)s"
        )

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=UTC)
        return stamp.strftime("%Y-%m-%dT%H:%M:%S") + f".{int(record.msecs):03d}Z"

    def format(self, record: logging.LogRecord) -> str:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = _request_id.get() or "-"
        line = super().format(record)
        pairs = [
            f"{key}={_render(value)}"
            for key, value in record.__dict__.items()
            if key not in _RESERVED and not key.startswith("_")
        ]
        return f"{line} {' '.join(pairs)}" if pairs else line


def setup_logging(settings: Settings) -> None:
    """Install the console handler on the root logger (once) and apply ``MV_LOGGING_LEVEL``."""

    root = logging.getLogger()
    level = logging.getLevelName(settings.logging_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    if not getattr(root, _CONFIGURED_ATTR, False):
        handler = logging.StreamHandler()
        handler.setFormatter(ConsoleLogFormatter())
        root.handlers = [handler]
        for name in _ADOPTED_LOGGERS:
            adopted = logging.getLogger(name)
            adopted.handlers.clear()
            adopted.propagate = True
        setattr(root, _CONFIGURED_ATTR, True)

    root.setLevel(level)


def bind_request_context(correlation_id: str | None) -> None:
    _request_id.set(correlation_id)


def clear_request_context() -> None:
    _request_id.set(None)


def log_context(
    *,
    user_id: str | None = None,
    university_id: str | None = None,
    profile_id: str | None = None,
    editor_request_id: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build an ``extra`` mapping; unset identifiers are left out.

    >>> log_context(user_id="u-42", profile_id="p-7", reason="cooldown")
    {'user_id': 'u-42', 'profile_id': 'p-7', 'reason': 'cooldown'}
    """

    identifiers = {
        "user_id": user_id,
        "university_id": university_id,
        "profile_id": profile_id,
        "editor_request_id": editor_request_id,
    }
    context = {key: value for key, value in identifiers.items() if value is not None}
    context.update(extra)
    return context


__all__ = [
    "ConsoleLogFormatter",
    "bind_request_context",
    "clear_request_context",
    "log_context",
    "setup_logging",
]
