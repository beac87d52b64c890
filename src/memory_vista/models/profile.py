"""Profile and collaborator tables."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from memory_vista.core.access.types import ProfileKind, ProfileStatus
from memory_vista.db import Base, TimestampMixin, UTCDateTime, utc_now, value_enum


class ProfileRecord(TimestampMixin, Base):
    """Row backing the ``profiles/{id}`` document."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    kind: Mapped[ProfileKind] = mapped_column(
        value_enum(ProfileKind, name="profile_kind"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_by: Mapped[str] = mapped_column(String(128), nullable=False)
    university_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("universities.id", ondelete="NO ACTION"), nullable=True
    )
    status: Mapped[ProfileStatus] = mapped_column(
        value_enum(ProfileStatus, name="profile_status"),
        nullable=False,
        default=ProfileStatus.DRAFT,
        server_default=ProfileStatus.DRAFT.value,
    )

    __table_args__ = (Index("ix_profiles_university", "university_id"),)


class ProfileCollaborator(Base):
    """One entry of a profile's ``collaboratorIds`` set."""

    __tablename__ = "profile_collaborators"

    profile_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)


__all__ = ["ProfileCollaborator", "ProfileRecord"]
