"""Edit permission policy.

One place decides whether a resolved role may mutate a resource, so route
handlers never re-derive it.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

from .types import ResourceRole

ResourceAction = Literal["create", "read", "update", "delete"]

# Lowest role that may mutate a resource.
MIN_EDIT_ROLE = ResourceRole.EDITOR

ROLE_ACTIONS: Mapping[ResourceRole, frozenset[str]] = {
    ResourceRole.ADMIN: frozenset({"create", "read", "update", "delete"}),
    ResourceRole.EDITOR: frozenset({"read", "update"}),
    ResourceRole.CONTRIBUTOR: frozenset({"read"}),
    ResourceRole.VIEWER: frozenset({"read"}),
    ResourceRole.NONE: frozenset(),
}


def _coerce_role(role: object) -> ResourceRole | None:
    if isinstance(role, ResourceRole):
        return role
    if isinstance(role, str):
        try:
            return ResourceRole(role.strip().lower())
        except ValueError:
            return None
    return None


def can_edit(role: object) -> bool:
    """True iff ``role`` is editor or admin. Unknown values are denied."""

    resolved = _coerce_role(role)
    return resolved is not None and resolved.at_least(MIN_EDIT_ROLE)


def can_perform(role: object, action: str) -> bool:
    """Check ``action`` against the role/action matrix. Unknown values are denied."""

    resolved = _coerce_role(role)
    if resolved is None:
        return False
    return action in ROLE_ACTIONS[resolved]


def allowed_actions(role: object) -> tuple[str, ...]:
    resolved = _coerce_role(role)
    if resolved is None:
        return ()
    return tuple(
        action
        for action in ("create", "read", "update", "delete")
        if action in ROLE_ACTIONS[resolved]
    )


__all__ = [
    "MIN_EDIT_ROLE",
    "ROLE_ACTIONS",
    "ResourceAction",
    "allowed_actions",
    "can_edit",
    "can_perform",
]
