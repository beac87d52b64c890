"""Pydantic schemas for profile endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from memory_vista.common.schema import BaseSchema
from memory_vista.core.access.types import (
    Profile,
    ProfileKind,
    ProfileStatus,
    ResourceRole,
)


class ProfileCreate(BaseSchema):
    kind: ProfileKind
    name: str = Field(..., min_length=1, max_length=200)
    university_id: str | None = None


class ProfileUpdate(BaseSchema):
    """Partial update; omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    status: ProfileStatus | None = None


class ProfileOut(BaseSchema):
    id: str
    kind: ProfileKind
    name: str
    created_by: str
    university_id: str | None = None
    status: ProfileStatus
    collaborator_ids: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    role: ResourceRole | None = Field(
        default=None, description="Caller's resolved role on the profile."
    )

    @classmethod
    def from_profile(cls, profile: Profile, *, role: ResourceRole | None = None) -> ProfileOut:
        return cls(
            id=profile.id,
            kind=profile.kind,
            name=profile.name,
            created_by=profile.created_by,
            university_id=profile.university_id,
            status=profile.status,
            collaborator_ids=sorted(profile.collaborator_ids),
            created_at=profile.created_at,
            updated_at=profile.updated_at,
            role=role,
        )


__all__ = ["ProfileCreate", "ProfileOut", "ProfileUpdate"]
