"""Editor request submission and review."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Path, Query, status

from memory_vista.api.deps import CurrentUser, WorkflowDep
from memory_vista.core.access.types import EditorRequestStatus

from .schemas import (
    EditorRequestCreate,
    EditorRequestOut,
    EligibilityOut,
    RequestLimitsOut,
    RequestStatsOut,
    ReviewDecision,
)

router = APIRouter(prefix="/profiles/{profileId}/editor-requests", tags=["editor-requests"])

ProfileId = Annotated[str, Path(alias="profileId")]
RequestId = Annotated[str, Path(alias="requestId")]


@router.get(
    "/eligibility",
    response_model=EligibilityOut,
    summary="Check whether the caller may request editor access",
)
async def read_eligibility(
    profile_id: ProfileId,
    user: CurrentUser,
    workflow: WorkflowDep,
) -> EligibilityOut:
    decision = await workflow.check_eligibility(user.id, profile_id)
    return EligibilityOut(
        allowed=decision.allowed,
        reason=decision.reason,
        role=decision.role,
        retry_at=decision.retry_at,
        stats=RequestStatsOut.from_stats(decision.stats),
        limits=RequestLimitsOut.from_limits(workflow.limits),
    )


@router.post(
    "",
    response_model=EditorRequestOut,
    status_code=status.HTTP_201_CREATED,
    summary="Request editor access to a profile",
)
async def submit_editor_request(
    profile_id: ProfileId,
    payload: Annotated[EditorRequestCreate, Body(...)],
    user: CurrentUser,
    workflow: WorkflowDep,
) -> EditorRequestOut:
    request = await workflow.submit_request(user, profile_id, payload.reason)
    return EditorRequestOut.from_request(request)


@router.get(
    "",
    response_model=list[EditorRequestOut],
    summary="List a profile's editor requests (reviewers only)",
)
async def list_editor_requests(
    profile_id: ProfileId,
    user: CurrentUser,
    workflow: WorkflowDep,
    status_filter: Annotated[EditorRequestStatus | None, Query(alias="status")] = None,
) -> list[EditorRequestOut]:
    requests = await workflow.list_requests(user.id, profile_id, status=status_filter)
    return [EditorRequestOut.from_request(request) for request in requests]


@router.post(
    "/{requestId}/approve",
    response_model=EditorRequestOut,
    summary="Approve an editor request",
)
async def approve_editor_request(
    profile_id: ProfileId,
    request_id: RequestId,
    user: CurrentUser,
    workflow: WorkflowDep,
    payload: Annotated[ReviewDecision | None, Body()] = None,
) -> EditorRequestOut:
    notes = payload.notes if payload is not None else None
    request = await workflow.approve_request(user.id, profile_id, request_id, notes=notes)
    return EditorRequestOut.from_request(request)


@router.post(
    "/{requestId}/reject",
    response_model=EditorRequestOut,
    summary="Reject an editor request",
)
async def reject_editor_request(
    profile_id: ProfileId,
    request_id: RequestId,
    user: CurrentUser,
    workflow: WorkflowDep,
    payload: Annotated[ReviewDecision | None, Body()] = None,
) -> EditorRequestOut:
    notes = payload.notes if payload is not None else None
    request = await workflow.reject_request(user.id, profile_id, request_id, notes=notes)
    return EditorRequestOut.from_request(request)


@router.post(
    "/{requestId}/withdraw",
    response_model=EditorRequestOut,
    summary="Withdraw the caller's pending editor request",
)
async def withdraw_editor_request(
    profile_id: ProfileId,
    request_id: RequestId,
    user: CurrentUser,
    workflow: WorkflowDep,
) -> EditorRequestOut:
    request = await workflow.withdraw_request(user.id, profile_id, request_id)
    return EditorRequestOut.from_request(request)


__all__ = ["router"]
