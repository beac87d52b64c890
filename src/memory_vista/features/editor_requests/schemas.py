"""Pydantic schemas for editor request endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from memory_vista.common.schema import BaseSchema
from memory_vista.core.access.types import (
    EditorRequest,
    EditorRequestStats,
    EditorRequestStatus,
    RequestLimits,
    ResourceRole,
)


class EditorRequestCreate(BaseSchema):
    reason: str = Field(..., max_length=2000, description="Why the caller needs edit access.")


class ReviewDecision(BaseSchema):
    notes: str | None = Field(default=None, max_length=2000)


class EditorRequestOut(BaseSchema):
    id: str
    user_id: str
    user_email: str = ""
    profile_id: str
    status: EditorRequestStatus
    reason: str
    requested_at: datetime
    updated_at: datetime
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    review_notes: str | None = None

    @classmethod
    def from_request(cls, request: EditorRequest) -> EditorRequestOut:
        return cls(
            id=request.id,
            user_id=request.user_id,
            user_email=request.user_email,
            profile_id=request.profile_id,
            status=request.status,
            reason=request.reason,
            requested_at=request.requested_at,
            updated_at=request.updated_at,
            reviewed_by=request.reviewed_by,
            reviewed_at=request.reviewed_at,
            review_notes=request.review_notes,
        )


class RequestStatsOut(BaseSchema):
    user_id: str
    total_requests: int = 0
    pending_requests: int = 0
    last_request_at: datetime | None = None
    cooldown_until: datetime | None = None

    @classmethod
    def from_stats(cls, stats: EditorRequestStats) -> RequestStatsOut:
        return cls(
            user_id=stats.user_id,
            total_requests=stats.total_requests,
            pending_requests=stats.pending_requests,
            last_request_at=stats.last_request_at,
            cooldown_until=stats.cooldown_until,
        )


class RequestLimitsOut(BaseSchema):
    max_pending_requests: int
    cooldown_period_days: int
    max_requests_per_month: int

    @classmethod
    def from_limits(cls, limits: RequestLimits) -> RequestLimitsOut:
        return cls(
            max_pending_requests=limits.max_pending_requests,
            cooldown_period_days=limits.cooldown_period.days,
            max_requests_per_month=limits.max_requests_per_month,
        )


class EligibilityOut(BaseSchema):
    """State of the "request editor access" action for one profile."""

    allowed: bool
    reason: Literal[
        "ok",
        "already_editor",
        "pending_exists",
        "cooldown",
        "pending_limit",
        "monthly_limit",
    ]
    role: ResourceRole
    retry_at: datetime | None = None
    stats: RequestStatsOut
    limits: RequestLimitsOut


class MyRequestStatsOut(BaseSchema):
    stats: RequestStatsOut
    limits: RequestLimitsOut
    in_cooldown: bool


__all__ = [
    "EditorRequestCreate",
    "EditorRequestOut",
    "EligibilityOut",
    "MyRequestStatsOut",
    "RequestLimitsOut",
    "RequestStatsOut",
    "ReviewDecision",
]
