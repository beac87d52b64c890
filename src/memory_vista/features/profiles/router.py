"""Profile creation, reads, soft updates and collaborator removal."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Path, Response, status

from memory_vista.api.deps import CurrentUser, RoleManagerDep
from memory_vista.core.access.types import ProfileKind, ProfileStatus, ResourceRole

from .schemas import ProfileCreate, ProfileOut, ProfileUpdate

router = APIRouter(prefix="/profiles", tags=["profiles"])

ProfileId = Annotated[str, Path(alias="profileId")]


@router.post(
    "",
    response_model=ProfileOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a profile",
)
async def create_profile(
    payload: Annotated[ProfileCreate, Body(...)],
    user: CurrentUser,
    manager: RoleManagerDep,
) -> ProfileOut:
    profile = await manager.create_profile(
        user,
        kind=ProfileKind(payload.kind),
        name=payload.name,
        university_id=payload.university_id,
    )
    # University profiles require admin to create; personal ones start with the creator as editor.
    role = ResourceRole.ADMIN if profile.university_id else ResourceRole.EDITOR
    return ProfileOut.from_profile(profile, role=role)


@router.get(
    "/{profileId}",
    response_model=ProfileOut,
    summary="Read a profile",
)
async def read_profile(
    profile_id: ProfileId,
    user: CurrentUser,
    manager: RoleManagerDep,
) -> ProfileOut:
    profile, role = await manager.get_profile(user.id, profile_id)
    return ProfileOut.from_profile(profile, role=role)


@router.patch(
    "/{profileId}",
    response_model=ProfileOut,
    summary="Rename a profile or change its status",
)
async def update_profile(
    profile_id: ProfileId,
    payload: Annotated[ProfileUpdate, Body(...)],
    user: CurrentUser,
    manager: RoleManagerDep,
) -> ProfileOut:
    profile, role = await manager.update_profile(
        user.id,
        profile_id,
        name=payload.name,
        status=ProfileStatus(payload.status) if payload.status is not None else None,
    )
    return ProfileOut.from_profile(profile, role=role)


@router.delete(
    "/{profileId}/collaborators/{userId}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a collaborator from a profile",
    response_class=Response,
)
async def remove_collaborator(
    profile_id: ProfileId,
    user_id: Annotated[str, Path(alias="userId")],
    user: CurrentUser,
    manager: RoleManagerDep,
) -> Response:
    await manager.remove_collaborator(user.id, profile_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
