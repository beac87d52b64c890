"""Access-control records shared by the resolver, the gate and the workflow."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from memory_vista.settings import Settings


class ResourceRole(str, enum.Enum):
    """Effective role a user holds on a university or profile."""

    NONE = "none"
    VIEWER = "viewer"
    CONTRIBUTOR = "contributor"
    EDITOR = "editor"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def at_least(self, other: ResourceRole) -> bool:
        return self.rank >= other.rank


_ROLE_RANK: dict[ResourceRole, int] = {
    ResourceRole.NONE: 0,
    ResourceRole.VIEWER: 1,
    ResourceRole.CONTRIBUTOR: 2,
    ResourceRole.EDITOR: 3,
    ResourceRole.ADMIN: 4,
}


class ResourceKind(str, enum.Enum):
    UNIVERSITY = "university"
    PROFILE = "profile"


class ProfileKind(str, enum.Enum):
    PERSONAL = "personal"
    MEMORIAL = "memorial"


class ProfileStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class EditorRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class AuditAction(str, enum.Enum):
    ROLE_GRANTED = "role_granted"
    ROLE_REVOKED = "role_revoked"
    COLLABORATOR_ADDED = "collaborator_added"
    COLLABORATOR_REMOVED = "collaborator_removed"
    EDITOR_REQUEST_SUBMITTED = "editor_request_submitted"
    EDITOR_REQUEST_APPROVED = "editor_request_approved"
    EDITOR_REQUEST_REJECTED = "editor_request_rejected"
    EDITOR_REQUEST_WITHDRAWN = "editor_request_withdrawn"


@dataclass(frozen=True, slots=True)
class ResourceRef:
    """Pointer to the resource a role is resolved against."""

    kind: ResourceKind
    id: str

    @classmethod
    def university(cls, university_id: str) -> ResourceRef:
        return cls(kind=ResourceKind.UNIVERSITY, id=university_id)

    @classmethod
    def profile(cls, profile_id: str) -> ResourceRef:
        return cls(kind=ResourceKind.PROFILE, id=profile_id)


@dataclass(frozen=True, slots=True)
class UserIdentity:
    """Identity issued by the external auth provider."""

    id: str
    email: str
    display_name: str | None = None
    email_verified: bool = False


@dataclass(slots=True)
class University:
    id: str
    name: str
    admin_ids: set[str] = field(default_factory=set)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(slots=True)
class Profile:
    id: str
    kind: ProfileKind
    name: str
    created_by: str
    university_id: str | None = None
    status: ProfileStatus = ProfileStatus.DRAFT
    collaborator_ids: set[str] = field(default_factory=set)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(slots=True)
class EditorRequest:
    id: str
    user_id: str
    profile_id: str
    status: EditorRequestStatus
    reason: str
    requested_at: datetime
    updated_at: datetime
    user_email: str = ""
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    review_notes: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is EditorRequestStatus.PENDING


@dataclass(slots=True)
class EditorRequestStats:
    """Per-user request counters (``users/{id}/editorRequestStats/stats``)."""

    user_id: str
    total_requests: int = 0
    pending_requests: int = 0
    last_request_at: datetime | None = None
    cooldown_until: datetime | None = None

    def in_cooldown(self, now: datetime) -> bool:
        return self.cooldown_until is not None and now < self.cooldown_until


@dataclass(slots=True)
class AuditEntry:
    id: str
    action: AuditAction
    actor_id: str
    created_at: datetime
    target_user_id: str | None = None
    university_id: str | None = None
    profile_id: str | None = None
    role: ResourceRole | None = None
    details: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RequestLimits:
    """Configured editor-request limits."""

    max_pending_requests: int = 3
    cooldown_period: timedelta = timedelta(days=7)
    max_requests_per_month: int = 5
    monthly_window: timedelta = timedelta(days=30)

    @classmethod
    def from_settings(cls, settings: Settings) -> RequestLimits:
        return cls(
            max_pending_requests=settings.max_pending_requests,
            cooldown_period=timedelta(days=settings.cooldown_period_days),
            max_requests_per_month=settings.max_requests_per_month,
        )


__all__ = [
    "AuditAction",
    "AuditEntry",
    "EditorRequest",
    "EditorRequestStats",
    "EditorRequestStatus",
    "Profile",
    "ProfileKind",
    "ProfileStatus",
    "RequestLimits",
    "ResourceKind",
    "ResourceRef",
    "ResourceRole",
    "University",
    "UserIdentity",
]
