"""Editor request documents and per-user request counters."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from memory_vista.core.access.types import EditorRequestStatus
from memory_vista.db import Base, UTCDateTime, value_enum


class EditorRequestRecord(Base):
    """Row backing ``profiles/{profileId}/editorRequests/{id}``."""

    __tablename__ = "editor_requests"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    profile_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    user_email: Mapped[str] = mapped_column(String(320), nullable=False, default="")
    status: Mapped[EditorRequestStatus] = mapped_column(
        value_enum(EditorRequestStatus, name="editor_request_status"),
        nullable=False,
        default=EditorRequestStatus.PENDING,
        server_default=EditorRequestStatus.PENDING.value,
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    requested_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    reviewed_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_editor_requests_profile_status", "profile_id", "status"),
        Index("ix_editor_requests_user_status", "user_id", "status"),
        Index("ix_editor_requests_user_requested", "user_id", "requested_at"),
    )


class EditorRequestStatsRecord(Base):
    """Row backing ``users/{userId}/editorRequestStats/stats``."""

    __tablename__ = "editor_request_stats"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    total_requests: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pending_requests: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_request_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    cooldown_until: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    __table_args__ = (
        CheckConstraint("pending_requests >= 0", name="pending_requests_non_negative"),
        CheckConstraint("total_requests >= 0", name="total_requests_non_negative"),
    )


__all__ = ["EditorRequestRecord", "EditorRequestStatsRecord"]
