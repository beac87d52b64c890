"""Identifier and clock helpers."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import UTC, datetime

__all__ = ["Clock", "IdFactory", "generate_id", "utc_now"]

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


def _resolve_uuid7() -> Callable[[], uuid.UUID]:
    """Return a callable that produces a UUIDv7, falling back to uuid4 when absent."""

    maybe_uuid7 = getattr(uuid, "uuid7", None)
    if callable(maybe_uuid7):
        return maybe_uuid7
    return uuid.uuid4


_uuid7_factory = _resolve_uuid7()


def generate_id() -> str:
    """Return a sortable document identifier (32 hex chars)."""

    return _uuid7_factory().hex


def utc_now() -> datetime:
    return datetime.now(UTC)
