"""Combine the role resolver with the edit permission gate."""

from __future__ import annotations

from memory_vista.core.access.gate import allowed_actions, can_edit
from memory_vista.core.access.resolver import RoleResolver
from memory_vista.core.access.types import ResourceRef

from .schemas import AccessResponse


class AccessService:
    def __init__(self, resolver: RoleResolver) -> None:
        self._resolver = resolver

    async def describe(self, user_id: str, resource: ResourceRef) -> AccessResponse:
        role = await self._resolver.resolve_role(user_id, resource)
        return AccessResponse(
            role=role,
            can_edit=can_edit(role),
            actions=list(allowed_actions(role)),
        )


__all__ = ["AccessService"]
