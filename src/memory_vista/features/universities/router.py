"""University administrator grants."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Path, Response, status

from memory_vista.api.deps import CurrentUser, RoleManagerDep

router = APIRouter(prefix="/universities", tags=["universities"])

UniversityId = Annotated[str, Path(alias="universityId")]
UserId = Annotated[str, Path(alias="userId")]


@router.post(
    "/{universityId}/admins/{userId}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Grant university admin",
    response_class=Response,
)
async def grant_admin(
    university_id: UniversityId,
    user_id: UserId,
    user: CurrentUser,
    manager: RoleManagerDep,
) -> Response:
    await manager.grant_university_admin(user.id, university_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{universityId}/admins/{userId}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke university admin",
    response_class=Response,
)
async def revoke_admin(
    university_id: UniversityId,
    user_id: UserId,
    user: CurrentUser,
    manager: RoleManagerDep,
) -> Response:
    await manager.revoke_university_admin(user.id, university_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
