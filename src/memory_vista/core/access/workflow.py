"""Editor request workflow.

Per (user, profile) pair a request moves ``NoRequest -> Pending`` and then to
``Approved`` or ``Rejected`` (decided by a reviewer) or ``Withdrawn`` (by the
requester). Reviewers are the admins of the profile's university; a profile
outside any university is reviewed by its creator. Every transition reads and
writes inside one store transaction, so the request document, the requester's
stats and the audit trail commit together or not at all.

Stats invariants:

* ``pending_requests`` counts the user's pending requests across all profiles
  and never drops below zero.
* ``pending_requests`` never exceeds ``RequestLimits.max_pending_requests``.
* every accepted submission moves ``cooldown_until`` forward.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from memory_vista.common.ids import Clock, IdFactory, generate_id, utc_now
from memory_vista.common.logging import log_context
from memory_vista.store.base import DocumentReader, DocumentStore, DocumentWriter

from .errors import (
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
)
from .resolver import RoleResolver
from .types import (
    AuditAction,
    AuditEntry,
    EditorRequest,
    EditorRequestStats,
    EditorRequestStatus,
    Profile,
    RequestLimits,
    ResourceRole,
    UserIdentity,
)

logger = logging.getLogger(__name__)

EligibilityReason = Literal[
    "ok",
    "already_editor",
    "pending_exists",
    "cooldown",
    "pending_limit",
    "monthly_limit",
]

MAX_REASON_LENGTH = 2000
MAX_NOTES_LENGTH = 2000


@dataclass(frozen=True, slots=True)
class EligibilityDecision:
    """Whether ``user_id`` may open a new editor request right now."""

    allowed: bool
    reason: EligibilityReason
    role: ResourceRole
    stats: EditorRequestStats
    retry_at: datetime | None = None


async def load_stats(reader: DocumentReader, user_id: str) -> EditorRequestStats:
    """Return stored stats, or fresh zeroed stats for a first-time requester."""

    stats = await reader.get_request_stats(user_id)
    if stats is None:
        return EditorRequestStats(user_id=user_id)
    return stats


def is_reviewer(user_id: str, profile: Profile, role: ResourceRole) -> bool:
    """University admins review; the creator reviews a profile with no university."""

    if role is ResourceRole.ADMIN:
        return True
    return profile.university_id is None and bool(user_id) and user_id == profile.created_by


class EditorRequestWorkflow:
    """Submit, review and withdraw editor requests against a document store."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        limits: RequestLimits | None = None,
        clock: Clock = utc_now,
        id_factory: IdFactory = generate_id,
    ) -> None:
        self._store = store
        self._limits = limits or RequestLimits()
        self._clock = clock
        self._id_factory = id_factory

    @property
    def limits(self) -> RequestLimits:
        return self._limits

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_stats(self, user_id: str) -> EditorRequestStats:
        return await load_stats(self._store, user_id)

    async def check_eligibility(self, user_id: str, profile_id: str) -> EligibilityDecision:
        return await self._evaluate(self._store, user_id, profile_id, now=self._clock())

    async def list_requests(
        self,
        reviewer_id: str,
        profile_id: str,
        status: EditorRequestStatus | None = None,
    ) -> list[EditorRequest]:
        """List a profile's requests. Only the profile's reviewers may see them."""

        await self._require_reviewer(self._store, reviewer_id, profile_id)
        return await self._store.list_editor_requests(profile_id, status=status)

    async def list_my_requests(
        self, user_id: str, status: EditorRequestStatus | None = None
    ) -> list[EditorRequest]:
        return await self._store.list_user_requests(user_id, status=status)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def submit_request(
        self,
        user: UserIdentity,
        profile_id: str,
        reason: str,
    ) -> EditorRequest:
        """Open a pending request (``NoRequest -> Pending``)."""

        cleaned = (reason or "").strip()
        if not cleaned:
            raise InvalidInputError("A reason is required to request editor access")
        if len(cleaned) > MAX_REASON_LENGTH:
            raise InvalidInputError(
                f"Reason must be at most {MAX_REASON_LENGTH} characters"
            )

        async with self._store.transaction() as tx:
            now = self._clock()
            decision = await self._evaluate(tx, user.id, profile_id, now=now)
            if not decision.allowed:
                self._log_refusal(decision, user_id=user.id, profile_id=profile_id)
                raise self._refusal_error(decision)

            request = EditorRequest(
                id=self._id_factory(),
                user_id=user.id,
                user_email=user.email,
                profile_id=profile_id,
                status=EditorRequestStatus.PENDING,
                reason=cleaned,
                requested_at=now,
                updated_at=now,
            )

            stats = decision.stats
            stats.total_requests += 1
            stats.pending_requests += 1
            stats.last_request_at = now
            stats.cooldown_until = now + self._limits.cooldown_period

            await tx.put_editor_request(request)
            await tx.put_request_stats(stats)
            await tx.append_audit_entry(
                AuditEntry(
                    id=self._id_factory(),
                    action=AuditAction.EDITOR_REQUEST_SUBMITTED,
                    actor_id=user.id,
                    target_user_id=user.id,
                    profile_id=profile_id,
                    created_at=now,
                )
            )

        logger.info(
            "editor_request.submit.success",
            extra=log_context(
                user_id=user.id,
                profile_id=profile_id,
                editor_request_id=request.id,
                pending_requests=stats.pending_requests,
                cooldown_until=stats.cooldown_until,
            ),
        )
        return request

    async def approve_request(
        self,
        reviewer_id: str,
        profile_id: str,
        request_id: str,
        *,
        notes: str | None = None,
    ) -> EditorRequest:
        """``Pending -> Approved``: the requester joins the profile's collaborators."""

        return await self._decide(
            reviewer_id,
            profile_id,
            request_id,
            status=EditorRequestStatus.APPROVED,
            notes=notes,
        )

    async def reject_request(
        self,
        reviewer_id: str,
        profile_id: str,
        request_id: str,
        *,
        notes: str | None = None,
    ) -> EditorRequest:
        """``Pending -> Rejected``."""

        return await self._decide(
            reviewer_id,
            profile_id,
            request_id,
            status=EditorRequestStatus.REJECTED,
            notes=notes,
        )

    async def withdraw_request(
        self, user_id: str, profile_id: str, request_id: str
    ) -> EditorRequest:
        """``Pending -> Withdrawn``, by the requester only.

        Frees a pending slot; the cooldown set at submission stays in place.
        """

        async with self._store.transaction() as tx:
            request = await tx.get_editor_request(profile_id, request_id)
            if request is None or not user_id or request.user_id != user_id:
                raise NotFoundError()
            if not request.is_pending:
                raise InvalidTransitionError(
                    f"Editor request is already {request.status.value}"
                )

            now = self._clock()
            request.status = EditorRequestStatus.WITHDRAWN
            request.updated_at = now

            stats = await load_stats(tx, user_id)
            stats.pending_requests = max(0, stats.pending_requests - 1)

            profile = await tx.get_profile(profile_id)
            await tx.put_editor_request(request)
            await tx.put_request_stats(stats)
            await tx.append_audit_entry(
                AuditEntry(
                    id=self._id_factory(),
                    action=AuditAction.EDITOR_REQUEST_WITHDRAWN,
                    actor_id=user_id,
                    target_user_id=user_id,
                    university_id=profile.university_id if profile is not None else None,
                    profile_id=profile_id,
                    created_at=now,
                    details={"editor_request_id": request.id},
                )
            )

        logger.info(
            "editor_request.withdrawn",
            extra=log_context(
                user_id=user_id,
                profile_id=profile_id,
                editor_request_id=request.id,
                pending_requests=stats.pending_requests,
            ),
        )
        return request

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _decide(
        self,
        reviewer_id: str,
        profile_id: str,
        request_id: str,
        *,
        status: EditorRequestStatus,
        notes: str | None,
    ) -> EditorRequest:
        cleaned_notes = (notes or "").strip() or None
        if cleaned_notes is not None and len(cleaned_notes) > MAX_NOTES_LENGTH:
            raise InvalidInputError(
                f"Review notes must be at most {MAX_NOTES_LENGTH} characters"
            )

        async with self._store.transaction() as tx:
            profile = await self._require_reviewer(tx, reviewer_id, profile_id)

            request = await tx.get_editor_request(profile_id, request_id)
            if request is None:
                raise NotFoundError()
            if not request.is_pending:
                raise InvalidTransitionError(
                    f"Editor request is already {request.status.value}"
                )

            now = self._clock()
            request.status = status
            request.updated_at = now
            request.reviewed_by = reviewer_id
            request.reviewed_at = now
            request.review_notes = cleaned_notes

            stats = await load_stats(tx, request.user_id)
            stats.pending_requests = max(0, stats.pending_requests - 1)

            await tx.put_editor_request(request)
            await tx.put_request_stats(stats)

            if status is EditorRequestStatus.APPROVED:
                await self._add_collaborator(tx, profile, request, reviewer_id, now)
                action = AuditAction.EDITOR_REQUEST_APPROVED
            else:
                action = AuditAction.EDITOR_REQUEST_REJECTED

            await tx.append_audit_entry(
                AuditEntry(
                    id=self._id_factory(),
                    action=action,
                    actor_id=reviewer_id,
                    target_user_id=request.user_id,
                    university_id=profile.university_id,
                    profile_id=profile_id,
                    created_at=now,
                    details={"editor_request_id": request.id},
                )
            )

        logger.info(
            f"editor_request.{status.value}",
            extra=log_context(
                user_id=request.user_id,
                profile_id=profile_id,
                editor_request_id=request.id,
                reviewer_id=reviewer_id,
                pending_requests=stats.pending_requests,
            ),
        )
        return request

    async def _add_collaborator(
        self,
        tx: DocumentWriter,
        profile: Profile,
        request: EditorRequest,
        reviewer_id: str,
        now: datetime,
    ) -> None:
        if request.user_id in profile.collaborator_ids:
            return
        profile.collaborator_ids.add(request.user_id)
        profile.updated_at = now
        await tx.put_profile(profile)
        await tx.append_audit_entry(
            AuditEntry(
                id=self._id_factory(),
                action=AuditAction.COLLABORATOR_ADDED,
                actor_id=reviewer_id,
                target_user_id=request.user_id,
                university_id=profile.university_id,
                profile_id=profile.id,
                role=ResourceRole.EDITOR,
                created_at=now,
            )
        )

    async def _require_reviewer(
        self, reader: DocumentReader, user_id: str, profile_id: str
    ) -> Profile:
        profile = await reader.get_profile(profile_id)
        if profile is None:
            raise NotFoundError()
        role = await RoleResolver(reader).role_for_profile(user_id, profile)
        if not is_reviewer(user_id, profile, role):
            raise UnauthorizedError()
        return profile

    async def _evaluate(
        self,
        reader: DocumentReader,
        user_id: str,
        profile_id: str,
        *,
        now: datetime,
    ) -> EligibilityDecision:
        profile = await reader.get_profile(profile_id)
        if profile is None:
            raise NotFoundError()

        role = await RoleResolver(reader).role_for_profile(user_id, profile)
        stats = await load_stats(reader, user_id)

        def decide(
            reason: EligibilityReason, retry_at: datetime | None = None
        ) -> EligibilityDecision:
            return EligibilityDecision(
                allowed=reason == "ok",
                reason=reason,
                role=role,
                stats=stats,
                retry_at=retry_at,
            )

        if role.at_least(ResourceRole.CONTRIBUTOR):
            return decide("already_editor")
        if await reader.find_pending_request(user_id, profile_id) is not None:
            return decide("pending_exists")
        if stats.in_cooldown(now):
            return decide("cooldown", stats.cooldown_until)
        if stats.pending_requests >= self._limits.max_pending_requests:
            return decide("pending_limit")
        if self._limits.max_requests_per_month > 0:
            recent = await reader.count_requests_since(
                user_id, now - self._limits.monthly_window
            )
            if recent >= self._limits.max_requests_per_month:
                return decide("monthly_limit")
        return decide("ok")

    def _refusal_error(self, decision: EligibilityDecision) -> Exception:
        if decision.reason == "already_editor":
            return InvalidTransitionError("User can already edit this profile")
        if decision.reason == "pending_exists":
            return InvalidTransitionError(
                "A pending editor request already exists for this profile"
            )
        if decision.reason == "cooldown":
            return RateLimitedError("cooldown", retry_at=decision.retry_at)
        if decision.reason == "pending_limit":
            return RateLimitedError(
                "pending_limit", limit=self._limits.max_pending_requests
            )
        return RateLimitedError(
            "monthly_limit", limit=self._limits.max_requests_per_month
        )

    def _log_refusal(
        self, decision: EligibilityDecision, *, user_id: str, profile_id: str
    ) -> None:
        event = "editor_request.submit.rejected"
        if decision.reason in ("cooldown", "pending_limit", "monthly_limit"):
            event = "editor_request.submit.rate_limited"
        logger.warning(
            event,
            extra=log_context(
                user_id=user_id,
                profile_id=profile_id,
                reason=decision.reason,
                retry_at=decision.retry_at,
                pending_requests=decision.stats.pending_requests,
            ),
        )


__all__ = [
    "EditorRequestWorkflow",
    "EligibilityDecision",
    "EligibilityReason",
    "is_reviewer",
    "load_stats",
]
