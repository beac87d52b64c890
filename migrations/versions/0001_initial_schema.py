"""Initial Memory Vista access schema.

Identifiers are opaque strings generated in the application layer
(:func:`memory_vista.common.ids.generate_id`); user ids come from the
external auth provider and are never foreign keys.
"""

from __future__ import annotations

from typing import Optional

import sqlalchemy as sa
from alembic import op

# Revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision: Optional[str] = None
branch_labels: Optional[str] = None
depends_on: Optional[str] = None


# ---------------------------------------------------------------------------
# Types / enums
# ---------------------------------------------------------------------------


def _timestamps() -> tuple[sa.Column, sa.Column]:
    """Common created_at / updated_at pair."""
    return (
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )


PROFILE_KIND = sa.Enum(
    "personal",
    "memorial",
    name="profile_kind",
    native_enum=False,
    create_constraint=True,
    length=20,
)

PROFILE_STATUS = sa.Enum(
    "draft",
    "published",
    name="profile_status",
    native_enum=False,
    create_constraint=True,
    length=20,
)

EDITOR_REQUEST_STATUS = sa.Enum(
    "pending",
    "approved",
    "rejected",
    name="editor_request_status",
    native_enum=False,
    create_constraint=True,
    length=20,
)

AUDIT_ACTION = sa.Enum(
    "role_granted",
    "role_revoked",
    "collaborator_added",
    "collaborator_removed",
    "editor_request_submitted",
    "editor_request_approved",
    "editor_request_rejected",
    name="audit_action",
    native_enum=False,
    create_constraint=True,
    length=40,
)

RESOURCE_ROLE = sa.Enum(
    "none",
    "viewer",
    "contributor",
    "editor",
    "admin",
    name="resource_role",
    native_enum=False,
    create_constraint=True,
    length=20,
)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def upgrade() -> None:
    _create_universities()
    _create_university_admins()
    _create_profiles()
    _create_profile_collaborators()
    _create_editor_requests()
    _create_editor_request_stats()
    _create_audit_log()


def downgrade() -> None:
    op.drop_index("ix_audit_log_created", table_name="audit_log")
    op.drop_index("ix_audit_log_profile", table_name="audit_log")
    op.drop_index("ix_audit_log_university", table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_table("editor_request_stats")
    op.drop_index("ix_editor_requests_user_requested", table_name="editor_requests")
    op.drop_index("ix_editor_requests_user_status", table_name="editor_requests")
    op.drop_index("ix_editor_requests_profile_status", table_name="editor_requests")
    op.drop_table("editor_requests")
    op.drop_table("profile_collaborators")
    op.drop_index("ix_profiles_university", table_name="profiles")
    op.drop_table("profiles")
    op.drop_table("university_admins")
    op.drop_table("universities")


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def _create_universities() -> None:
    op.create_table(
        "universities",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="universities_pkey"),
    )


def _create_university_admins() -> None:
    op.create_table(
        "university_admins",
        sa.Column("university_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(
            ["university_id"],
            ["universities.id"],
            name="university_admins_university_id_fkey",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("university_id", "user_id", name="university_admins_pkey"),
    )


def _create_profiles() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("kind", PROFILE_KIND, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("created_by", sa.String(length=128), nullable=False),
        sa.Column("university_id", sa.String(length=64), nullable=True),
        sa.Column("status", PROFILE_STATUS, nullable=False, server_default="draft"),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["university_id"],
            ["universities.id"],
            name="profiles_university_id_fkey",
            ondelete="NO ACTION",
        ),
        sa.PrimaryKeyConstraint("id", name="profiles_pkey"),
    )
    op.create_index("ix_profiles_university", "profiles", ["university_id"], unique=False)


def _create_profile_collaborators() -> None:
    op.create_table(
        "profile_collaborators",
        sa.Column("profile_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(
            ["profile_id"],
            ["profiles.id"],
            name="profile_collaborators_profile_id_fkey",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("profile_id", "user_id", name="profile_collaborators_pkey"),
    )


def _create_editor_requests() -> None:
    op.create_table(
        "editor_requests",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("profile_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("user_email", sa.String(length=320), nullable=False, server_default=""),
        sa.Column(
            "status", EDITOR_REQUEST_STATUS, nullable=False, server_default="pending"
        ),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reviewed_by", sa.String(length=128), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["profile_id"],
            ["profiles.id"],
            name="editor_requests_profile_id_fkey",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="editor_requests_pkey"),
    )
    op.create_index(
        "ix_editor_requests_profile_status",
        "editor_requests",
        ["profile_id", "status"],
        unique=False,
    )
    op.create_index(
        "ix_editor_requests_user_status",
        "editor_requests",
        ["user_id", "status"],
        unique=False,
    )
    op.create_index(
        "ix_editor_requests_user_requested",
        "editor_requests",
        ["user_id", "requested_at"],
        unique=False,
    )


def _create_editor_request_stats() -> None:
    op.create_table(
        "editor_request_stats",
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("total_requests", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("pending_requests", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_request_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cooldown_until", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "pending_requests >= 0",
            name=op.f("editor_request_stats_pending_requests_non_negative_check"),
        ),
        sa.CheckConstraint(
            "total_requests >= 0",
            name=op.f("editor_request_stats_total_requests_non_negative_check"),
        ),
        sa.PrimaryKeyConstraint("user_id", name="editor_request_stats_pkey"),
    )


def _create_audit_log() -> None:
    op.create_table(
        "audit_log",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("action", AUDIT_ACTION, nullable=False),
        sa.Column("actor_id", sa.String(length=128), nullable=False),
        sa.Column("target_user_id", sa.String(length=128), nullable=True),
        sa.Column("university_id", sa.String(length=64), nullable=True),
        sa.Column("profile_id", sa.String(length=64), nullable=True),
        sa.Column("role", RESOURCE_ROLE, nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="audit_log_pkey"),
    )
    op.create_index("ix_audit_log_university", "audit_log", ["university_id"], unique=False)
    op.create_index("ix_audit_log_profile", "audit_log", ["profile_id"], unique=False)
    op.create_index("ix_audit_log_created", "audit_log", ["created_at"], unique=False)
