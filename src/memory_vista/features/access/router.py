"""Role lookups for universities and profiles."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from memory_vista.api.deps import CurrentUser, RoleResolverDep
from memory_vista.core.access.types import ResourceRef

from .schemas import AccessResponse
from .service import AccessService

router = APIRouter(tags=["access"])


def get_access_service(resolver: RoleResolverDep) -> AccessService:
    return AccessService(resolver)


AccessServiceDep = Annotated[AccessService, Depends(get_access_service)]


@router.get(
    "/universities/{universityId}/access",
    response_model=AccessResponse,
    summary="Resolve the caller's role on a university",
)
async def read_university_access(
    university_id: Annotated[str, Path(alias="universityId")],
    user: CurrentUser,
    service: AccessServiceDep,
) -> AccessResponse:
    return await service.describe(user.id, ResourceRef.university(university_id))


@router.get(
    "/profiles/{profileId}/access",
    response_model=AccessResponse,
    summary="Resolve the caller's role on a profile",
)
async def read_profile_access(
    profile_id: Annotated[str, Path(alias="profileId")],
    user: CurrentUser,
    service: AccessServiceDep,
) -> AccessResponse:
    return await service.describe(user.id, ResourceRef.profile(profile_id))


__all__ = ["router"]
