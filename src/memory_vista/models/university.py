"""University and administrator grant tables."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from memory_vista.db import Base, TimestampMixin, UTCDateTime, utc_now


class UniversityRecord(TimestampMixin, Base):
    """Row backing the ``universities/{id}`` document."""

    __tablename__ = "universities"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)


class UniversityAdmin(Base):
    """One entry of a university's ``adminIds`` set."""

    __tablename__ = "university_admins"

    university_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("universities.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)


__all__ = ["UniversityAdmin", "UniversityRecord"]
