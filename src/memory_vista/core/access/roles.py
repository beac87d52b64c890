"""University admin grants, profile lifecycle and collaborator management."""

from __future__ import annotations

import logging

from memory_vista.common.ids import Clock, IdFactory, generate_id, utc_now
from memory_vista.common.logging import log_context
from memory_vista.store.base import DocumentReader, DocumentStore

from .errors import (
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    UnauthorizedError,
)
from .gate import can_edit, can_perform
from .resolver import RoleResolver
from .types import (
    AuditAction,
    AuditEntry,
    Profile,
    ProfileKind,
    ProfileStatus,
    ResourceRole,
    University,
    UserIdentity,
)

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 200


def _clean_name(name: str | None, *, field: str = "name") -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidInputError(f"{field} must not be blank")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise InvalidInputError(f"{field} must be at most {MAX_NAME_LENGTH} characters")
    return cleaned


class RoleManager:
    """Role grants and profile mutations gated by the resolver."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        clock: Clock = utc_now,
        id_factory: IdFactory = generate_id,
    ) -> None:
        self._store = store
        self._clock = clock
        self._id_factory = id_factory

    # ------------------------------------------------------------------
    # Universities
    # ------------------------------------------------------------------

    async def create_university(self, name: str, *, admin_id: str) -> University:
        """Bootstrap a university with its first administrator (operator only)."""

        if not admin_id:
            raise InvalidInputError("An initial administrator is required")
        now = self._clock()
        university = University(
            id=self._id_factory(),
            name=_clean_name(name),
            admin_ids={admin_id},
            created_at=now,
            updated_at=now,
        )
        async with self._store.transaction() as tx:
            await tx.put_university(university)
            await tx.append_audit_entry(
                AuditEntry(
                    id=self._id_factory(),
                    action=AuditAction.ROLE_GRANTED,
                    actor_id="system",
                    target_user_id=admin_id,
                    university_id=university.id,
                    role=ResourceRole.ADMIN,
                    created_at=now,
                )
            )
        logger.info(
            "university.create.success",
            extra=log_context(university_id=university.id, user_id=admin_id),
        )
        return university

    async def grant_university_admin(
        self,
        actor_id: str,
        university_id: str,
        user_id: str,
        *,
        operator: bool = False,
    ) -> bool:
        """Make ``user_id`` an admin. Returns False when they already were one.

        ``operator=True`` skips the actor check; only the CLI passes it.
        """

        if not user_id:
            raise InvalidInputError("user_id must not be blank")
        async with self._store.transaction() as tx:
            if operator:
                university = await tx.get_university(university_id)
                if university is None:
                    raise NotFoundError()
            else:
                university = await self._require_university_admin(
                    tx, actor_id, university_id
                )
            if user_id in university.admin_ids:
                return False
            now = self._clock()
            university.admin_ids.add(user_id)
            university.updated_at = now
            await tx.put_university(university)
            await tx.append_audit_entry(
                AuditEntry(
                    id=self._id_factory(),
                    action=AuditAction.ROLE_GRANTED,
                    actor_id=actor_id,
                    target_user_id=user_id,
                    university_id=university_id,
                    role=ResourceRole.ADMIN,
                    created_at=now,
                )
            )
        logger.info(
            "university.admin.granted",
            extra=log_context(university_id=university_id, user_id=user_id, actor_id=actor_id),
        )
        return True

    async def revoke_university_admin(
        self, actor_id: str, university_id: str, user_id: str
    ) -> bool:
        """Remove ``user_id`` from the admins. Returns False when they were not one."""

        async with self._store.transaction() as tx:
            university = await self._require_university_admin(tx, actor_id, university_id)
            if user_id not in university.admin_ids:
                return False
            if university.admin_ids == {user_id}:
                raise InvalidTransitionError("Cannot remove the last university administrator")
            now = self._clock()
            university.admin_ids.discard(user_id)
            university.updated_at = now
            await tx.put_university(university)
            await tx.append_audit_entry(
                AuditEntry(
                    id=self._id_factory(),
                    action=AuditAction.ROLE_REVOKED,
                    actor_id=actor_id,
                    target_user_id=user_id,
                    university_id=university_id,
                    role=ResourceRole.ADMIN,
                    created_at=now,
                )
            )
        logger.info(
            "university.admin.revoked",
            extra=log_context(university_id=university_id, user_id=user_id, actor_id=actor_id),
        )
        return True

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    async def create_profile(
        self,
        actor: UserIdentity,
        *,
        kind: ProfileKind,
        name: str,
        university_id: str | None = None,
    ) -> Profile:
        now = self._clock()
        profile = Profile(
            id=self._id_factory(),
            kind=kind,
            name=_clean_name(name),
            created_by=actor.id,
            university_id=university_id or None,
            status=ProfileStatus.DRAFT,
            created_at=now,
            updated_at=now,
        )
        async with self._store.transaction() as tx:
            if profile.university_id is not None:
                await self._require_university_admin(tx, actor.id, profile.university_id)
            await tx.put_profile(profile)
        logger.info(
            "profile.create.success",
            extra=log_context(
                user_id=actor.id,
                profile_id=profile.id,
                university_id=profile.university_id,
                kind=kind.value,
            ),
        )
        return profile

    async def get_profile(self, actor_id: str, profile_id: str) -> tuple[Profile, ResourceRole]:
        profile = await self._store.get_profile(profile_id)
        if profile is None:
            raise NotFoundError()
        role = await RoleResolver(self._store).role_for_profile(actor_id, profile)
        if not can_perform(role, "read"):
            raise UnauthorizedError()
        return profile, role

    async def update_profile(
        self,
        actor_id: str,
        profile_id: str,
        *,
        name: str | None = None,
        status: ProfileStatus | None = None,
    ) -> tuple[Profile, ResourceRole]:
        """Rename or move between draft/published. Profiles are never hard-deleted.

        Returns the profile together with the caller's resolved role.
        """

        async with self._store.transaction() as tx:
            profile = await tx.get_profile(profile_id)
            if profile is None:
                raise NotFoundError()
            role = await RoleResolver(tx).role_for_profile(actor_id, profile)
            if not can_edit(role):
                raise UnauthorizedError()

            changed = False
            if name is not None:
                cleaned = _clean_name(name)
                changed = changed or cleaned != profile.name
                profile.name = cleaned
            if status is not None and status is not profile.status:
                profile.status = status
                changed = True
            if changed:
                profile.updated_at = self._clock()
                await tx.put_profile(profile)

        if changed:
            logger.info(
                "profile.update.success",
                extra=log_context(
                    user_id=actor_id, profile_id=profile_id, status=profile.status.value
                ),
            )
        return profile, role

    async def remove_collaborator(
        self, actor_id: str, profile_id: str, user_id: str
    ) -> bool:
        """Drop ``user_id`` from the profile's collaborators (admins only)."""

        async with self._store.transaction() as tx:
            profile = await tx.get_profile(profile_id)
            if profile is None:
                raise NotFoundError()
            role = await RoleResolver(tx).role_for_profile(actor_id, profile)
            if role is not ResourceRole.ADMIN:
                raise UnauthorizedError()
            if user_id == profile.created_by:
                raise InvalidTransitionError("The profile creator cannot be removed")
            if user_id not in profile.collaborator_ids:
                return False

            now = self._clock()
            profile.collaborator_ids.discard(user_id)
            profile.updated_at = now
            await tx.put_profile(profile)
            await tx.append_audit_entry(
                AuditEntry(
                    id=self._id_factory(),
                    action=AuditAction.COLLABORATOR_REMOVED,
                    actor_id=actor_id,
                    target_user_id=user_id,
                    university_id=profile.university_id,
                    profile_id=profile_id,
                    role=ResourceRole.EDITOR,
                    created_at=now,
                )
            )
        logger.info(
            "profile.collaborator.removed",
            extra=log_context(profile_id=profile_id, user_id=user_id, actor_id=actor_id),
        )
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _require_university_admin(
        self, reader: DocumentReader, actor_id: str, university_id: str
    ) -> University:
        university = await reader.get_university(university_id)
        if university is None:
            raise NotFoundError()
        if actor_id not in university.admin_ids:
            raise UnauthorizedError()
        return university


__all__ = ["RoleManager"]
