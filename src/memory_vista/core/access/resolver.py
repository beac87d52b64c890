"""Resolve a user's effective role on a university or profile."""

from __future__ import annotations

import logging

from memory_vista.common.logging import log_context
from memory_vista.store.base import DocumentReader

from .types import Profile, ResourceKind, ResourceRef, ResourceRole

logger = logging.getLogger(__name__)


class RoleResolver:
    """Read-only role lookup against a document store.

    Missing documents resolve to ``ResourceRole.NONE`` rather than raising, so
    "not found" and "no permission" look the same to every caller.
    """

    def __init__(self, reader: DocumentReader) -> None:
        self._reader = reader

    async def resolve_role(self, user_id: str, resource: ResourceRef) -> ResourceRole:
        if not user_id:
            return ResourceRole.NONE
        if resource.kind is ResourceKind.UNIVERSITY:
            return await self.resolve_university_role(user_id, resource.id)
        if resource.kind is ResourceKind.PROFILE:
            return await self.resolve_profile_role(user_id, resource.id)
        return ResourceRole.NONE

    async def resolve_university_role(
        self, user_id: str, university_id: str
    ) -> ResourceRole:
        university = await self._reader.get_university(university_id)
        if university is None:
            logger.debug(
                "role.resolve.university_missing",
                extra=log_context(user_id=user_id, university_id=university_id),
            )
            return ResourceRole.NONE
        if user_id in university.admin_ids:
            return ResourceRole.ADMIN
        return ResourceRole.NONE

    async def resolve_profile_role(self, user_id: str, profile_id: str) -> ResourceRole:
        profile = await self._reader.get_profile(profile_id)
        if profile is None:
            logger.debug(
                "role.resolve.profile_missing",
                extra=log_context(user_id=user_id, profile_id=profile_id),
            )
            return ResourceRole.NONE
        return await self.role_for_profile(user_id, profile)

    async def role_for_profile(self, user_id: str, profile: Profile) -> ResourceRole:
        """Resolve against an already loaded profile document."""

        if profile.university_id:
            university_role = await self.resolve_university_role(
                user_id, profile.university_id
            )
            if university_role is ResourceRole.ADMIN:
                return ResourceRole.ADMIN
        if user_id == profile.created_by or user_id in profile.collaborator_ids:
            return ResourceRole.EDITOR
        return ResourceRole.NONE


__all__ = ["RoleResolver"]
