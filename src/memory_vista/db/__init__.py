"""Database layer: engine holder, declarative base and Alembic runner."""

from .base import NAMING_CONVENTION, Base, TimestampMixin, metadata, utc_now, value_enum
from .database import Database, DatabaseConfig, build_async_url, build_sync_url
from .types import UTCDateTime

__all__ = [
    "Base",
    "Database",
    "DatabaseConfig",
    "NAMING_CONVENTION",
    "TimestampMixin",
    "UTCDateTime",
    "build_async_url",
    "build_sync_url",
    "metadata",
    "utc_now",
    "value_enum",
]
