"""Endpoints scoped to the authenticated caller."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from memory_vista.api.deps import ClockDep, CurrentUser, WorkflowDep
from memory_vista.core.access.types import EditorRequestStatus
from memory_vista.features.editor_requests.schemas import (
    EditorRequestOut,
    MyRequestStatsOut,
    RequestLimitsOut,
    RequestStatsOut,
)

router = APIRouter(prefix="/me", tags=["me"])


@router.get(
    "/editor-request-stats",
    response_model=MyRequestStatsOut,
    summary="Read the caller's editor request counters",
)
async def read_my_request_stats(
    user: CurrentUser,
    workflow: WorkflowDep,
    clock: ClockDep,
) -> MyRequestStatsOut:
    stats = await workflow.get_stats(user.id)
    return MyRequestStatsOut(
        stats=RequestStatsOut.from_stats(stats),
        limits=RequestLimitsOut.from_limits(workflow.limits),
        in_cooldown=stats.in_cooldown(clock()),
    )


@router.get(
    "/editor-requests",
    response_model=list[EditorRequestOut],
    summary="List the caller's own editor requests across profiles",
)
async def list_my_editor_requests(
    user: CurrentUser,
    workflow: WorkflowDep,
    status_filter: Annotated[EditorRequestStatus | None, Query(alias="status")] = None,
) -> list[EditorRequestOut]:
    requests = await workflow.list_my_requests(user.id, status=status_filter)
    return [EditorRequestOut.from_request(request) for request in requests]


__all__ = ["router"]
