"""Let requesters withdraw a pending editor request."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# Revision identifiers, used by Alembic.
revision = "0002_editor_request_withdrawn"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None


def _status(*values: str) -> sa.Enum:
    return sa.Enum(
        *values,
        name="editor_request_status",
        native_enum=False,
        create_constraint=True,
        length=20,
    )


def _action(*values: str) -> sa.Enum:
    return sa.Enum(
        *values,
        name="audit_action",
        native_enum=False,
        create_constraint=True,
        length=40,
    )


_OLD_STATUSES = ("pending", "approved", "rejected")
_OLD_ACTIONS = (
    "role_granted",
    "role_revoked",
    "collaborator_added",
    "collaborator_removed",
    "editor_request_submitted",
    "editor_request_approved",
    "editor_request_rejected",
)


def upgrade() -> None:
    with op.batch_alter_table("editor_requests") as batch_op:
        batch_op.alter_column(
            "status",
            existing_type=_status(*_OLD_STATUSES),
            type_=_status(*_OLD_STATUSES, "withdrawn"),
            existing_nullable=False,
            existing_server_default="pending",
        )

    with op.batch_alter_table("audit_log") as batch_op:
        batch_op.alter_column(
            "action",
            existing_type=_action(*_OLD_ACTIONS),
            type_=_action(*_OLD_ACTIONS, "editor_request_withdrawn"),
            existing_nullable=False,
        )


def downgrade() -> None:  # pragma: no cover
    raise NotImplementedError("Downgrade is not supported for this revision.")
