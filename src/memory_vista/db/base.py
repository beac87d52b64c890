"""Declarative base, constraint naming and column helpers for the access tables."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import Enum as SAEnum
from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from memory_vista.common.ids import utc_now

from .types import UTCDateTime

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "TimestampMixin",
    "metadata",
    "utc_now",
    "value_enum",
]

# Must match the constraint names spelled out in migrations/versions.
NAMING_CONVENTION: dict[str, str] = {
    "ix": "%(table_name)s_%(column_0_name)s_idx",
    "uq": "%(table_name)s_%(column_0_name)s_key",
    "ck": "%(table_name)s_%(constraint_name)s_check",
    "fk": "%(table_name)s_%(column_0_name)s_fkey",
    "pk": "%(table_name)s_pkey",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)


class Base(DeclarativeBase):
    metadata = metadata


def value_enum(enum_cls: type[Enum], *, name: str, length: int = 20) -> SAEnum:
    """VARCHAR-backed enum column storing member values (``"pending"``), not names."""

    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=length,
        values_callable=lambda cls: [member.value for member in cls],
    )


class TimestampMixin:
    """``created_at``/``updated_at`` set by the application in UTC."""

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utc_now, onupdate=utc_now
    )
