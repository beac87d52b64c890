from __future__ import annotations

import logging

from memory_vista.common.logging import (
    ConsoleLogFormatter,
    bind_request_context,
    clear_request_context,
    log_context,
)


def _record(message: str, **extra: object) -> logging.LogRecord:
    logger = logging.getLogger("memory_vista.tests")
    return logger.makeRecord(
        logger.name, logging.INFO, __file__, 1, message, None, None, extra=extra or None
    )


def test_log_context_drops_unset_identifiers() -> None:
    context = log_context(user_id="u-1", profile_id=None, reason="cooldown")

    assert context == {"user_id": "u-1", "reason": "cooldown"}


def test_formatter_appends_extras_and_placeholder_cid() -> None:
    clear_request_context()
    line = ConsoleLogFormatter().format(
        _record("editor_request.submit.success", **log_context(user_id="u-1", profile_id="p-1"))
    )

    assert "INFO" in line
    assert "[cid=-]" in line
    assert line.endswith("editor_request.submit.success user_id=u-1 profile_id=p-1")


def test_formatter_uses_bound_request_id() -> None:
    bind_request_context("req-123")
    try:
        line = ConsoleLogFormatter().format(_record("request.complete"))
    finally:
        clear_request_context()

    assert "[cid=req-123]" in line
    assert line.endswith("request.complete")


def test_timestamps_are_utc_with_milliseconds() -> None:
    record = _record("tick")
    record.created = 0.25
    record.msecs = 250.0

    stamp = ConsoleLogFormatter().formatTime(record)

    assert stamp == "1970-01-01T00:00:00.250Z"
