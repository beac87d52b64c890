"""Append-only audit trail of role and request changes."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from memory_vista.core.access.types import AuditAction, ResourceRole
from memory_vista.db import Base, UTCDateTime, utc_now, value_enum


class AuditLogEntry(Base):
    __tablename__ = "audit_log"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    action: Mapped[AuditAction] = mapped_column(
        value_enum(AuditAction, name="audit_action", length=40),
        nullable=False,
    )
    actor_id: Mapped[str] = mapped_column(String(128), nullable=False)
    target_user_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    university_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    profile_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    role: Mapped[ResourceRole | None] = mapped_column(
        value_enum(ResourceRole, name="resource_role"),
        nullable=True,
    )
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)

    __table_args__ = (
        Index("ix_audit_log_university", "university_id"),
        Index("ix_audit_log_profile", "profile_id"),
        Index("ix_audit_log_created", "created_at"),
    )


__all__ = ["AuditLogEntry"]
