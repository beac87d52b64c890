"""Editor request workflow: submission limits, review transitions and atomicity."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Any

import pytest

from memory_vista.core.access.errors import (
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    RateLimitedError,
    StoreUnavailableError,
    UnauthorizedError,
)
from memory_vista.core.access.resolver import RoleResolver
from memory_vista.core.access.types import (
    AuditAction,
    AuditEntry,
    EditorRequest,
    EditorRequestStatus,
    RequestLimits,
    ResourceRole,
    UserIdentity,
)
from memory_vista.core.access.workflow import EditorRequestWorkflow
from memory_vista.store.base import DocumentStore
from memory_vista.store.memory import MemoryDocumentStore

from tests.utils import (
    T0,
    FrozenClock,
    seed_pending_request,
    seed_profile,
    seed_stats,
    seed_university,
)

pytestmark = pytest.mark.asyncio

LIMITS = RequestLimits(
    max_pending_requests=3,
    cooldown_period=timedelta(days=7),
    max_requests_per_month=5,
)


def _user(user_id: str) -> UserIdentity:
    return UserIdentity(id=user_id, email=f"{user_id}@example.com")


def _workflow(
    store: DocumentStore, clock: FrozenClock, limits: RequestLimits = LIMITS
) -> EditorRequestWorkflow:
    return EditorRequestWorkflow(store, limits=limits, clock=clock)


async def _seed_university_profile(store: DocumentStore, profile_id: str = "p-1") -> None:
    await seed_university(store, "uni-1", admins={"admin"})
    await seed_profile(store, profile_id, created_by="creator", university_id="uni-1")


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


async def test_submit_creates_pending_request_and_updates_stats(
    store: DocumentStore, clock: FrozenClock
) -> None:
    await _seed_university_profile(store)
    workflow = _workflow(store, clock)

    request = await workflow.submit_request(_user("bob"), "p-1", "  I knew her well  ")

    assert request.status is EditorRequestStatus.PENDING
    assert request.reason == "I knew her well"
    assert request.user_email == "bob@example.com"
    assert request.requested_at == T0

    stored = await store.get_editor_request("p-1", request.id)
    assert stored is not None and stored.is_pending

    stats = await store.get_request_stats("bob")
    assert stats is not None
    assert stats.total_requests == 1
    assert stats.pending_requests == 1
    assert stats.last_request_at == T0
    assert stats.cooldown_until == T0 + LIMITS.cooldown_period


async def test_submit_requires_existing_profile(store: DocumentStore, clock: FrozenClock) -> None:
    with pytest.raises(NotFoundError):
        await _workflow(store, clock).submit_request(_user("bob"), "missing", "please")

    assert await store.get_request_stats("bob") is None


@pytest.mark.parametrize("reason", ["", "   ", "\n\t"])
async def test_submit_rejects_blank_reason(
    memory_store: MemoryDocumentStore, clock: FrozenClock, reason: str
) -> None:
    await _seed_university_profile(memory_store)

    with pytest.raises(InvalidInputError):
        await _workflow(memory_store, clock).submit_request(_user("bob"), "p-1", reason)

    assert await memory_store.get_request_stats("bob") is None


async def test_submit_rejects_overlong_reason(
    memory_store: MemoryDocumentStore, clock: FrozenClock
) -> None:
    await _seed_university_profile(memory_store)

    with pytest.raises(InvalidInputError):
        await _workflow(memory_store, clock).submit_request(_user("bob"), "p-1", "x" * 2001)


async def test_editor_cannot_request_again(store: DocumentStore, clock: FrozenClock) -> None:
    await _seed_university_profile(store)
    workflow = _workflow(store, clock)

    with pytest.raises(InvalidTransitionError):
        await workflow.submit_request(_user("creator"), "p-1", "let me in")
    with pytest.raises(InvalidTransitionError):
        await workflow.submit_request(_user("admin"), "p-1", "let me in")


async def test_duplicate_pending_request_is_invalid_transition(
    store: DocumentStore, clock: FrozenClock
) -> None:
    """A second request for the same profile conflicts before the cooldown applies."""

    await _seed_university_profile(store)
    workflow = _workflow(store, clock)
    await workflow.submit_request(_user("bob"), "p-1", "first")

    with pytest.raises(InvalidTransitionError):
        await workflow.submit_request(_user("bob"), "p-1", "second")

    stats = await store.get_request_stats("bob")
    assert stats is not None and stats.pending_requests == 1


async def test_pending_limit_boundary(store: DocumentStore, clock: FrozenClock) -> None:
    """One below the cap is accepted; at the cap the request is refused."""

    await _seed_university_profile(store, "p-1")
    await seed_profile(store, "p-2", created_by="creator", university_id="uni-1")
    await seed_stats(
        store, "bob", total_requests=2, pending_requests=LIMITS.max_pending_requests - 1
    )
    workflow = _workflow(store, clock)

    await workflow.submit_request(_user("bob"), "p-1", "one more")
    stats = await store.get_request_stats("bob")
    assert stats is not None and stats.pending_requests == LIMITS.max_pending_requests

    # Clear the cooldown so only the pending cap applies.
    stats.cooldown_until = None
    async with store.transaction() as tx:
        await tx.put_request_stats(stats)

    with pytest.raises(RateLimitedError) as excinfo:
        await workflow.submit_request(_user("bob"), "p-2", "and another")

    assert excinfo.value.reason == "pending_limit"
    assert excinfo.value.limit == LIMITS.max_pending_requests
    after = await store.get_request_stats("bob")
    assert after is not None and after.pending_requests == LIMITS.max_pending_requests
    assert await store.find_pending_request("bob", "p-2") is None


async def test_cooldown_boundary(store: DocumentStore, clock: FrozenClock) -> None:
    await _seed_university_profile(store)
    cooldown_until = T0 + timedelta(days=2)
    await seed_stats(store, "bob", total_requests=1, cooldown_until=cooldown_until)
    workflow = _workflow(store, clock)

    clock.set(cooldown_until - timedelta(milliseconds=1))
    with pytest.raises(RateLimitedError) as excinfo:
        await workflow.submit_request(_user("bob"), "p-1", "too early")
    assert excinfo.value.reason == "cooldown"
    assert excinfo.value.retry_at == cooldown_until

    clock.set(cooldown_until + timedelta(milliseconds=1))
    request = await workflow.submit_request(_user("bob"), "p-1", "now then")
    assert request.is_pending


async def test_cooldown_ends_exactly_at_cooldown_until(
    memory_store: MemoryDocumentStore, clock: FrozenClock
) -> None:
    await _seed_university_profile(memory_store)
    await seed_stats(memory_store, "bob", cooldown_until=T0)

    request = await _workflow(memory_store, clock).submit_request(_user("bob"), "p-1", "on time")

    assert request.is_pending


async def test_monthly_limit_uses_trailing_window(
    store: DocumentStore, clock: FrozenClock
) -> None:
    limits = RequestLimits(
        max_pending_requests=10,
        cooldown_period=timedelta(0),
        max_requests_per_month=2,
    )
    await seed_university(store, "uni-1", admins={"admin"})
    for profile_id in ("p-1", "p-2", "p-3"):
        await seed_profile(store, profile_id, created_by="creator", university_id="uni-1")
    workflow = _workflow(store, clock, limits)

    await workflow.submit_request(_user("bob"), "p-1", "one")
    clock.advance(timedelta(days=1))
    await workflow.submit_request(_user("bob"), "p-2", "two")

    with pytest.raises(RateLimitedError) as excinfo:
        await workflow.submit_request(_user("bob"), "p-3", "three")
    assert excinfo.value.reason == "monthly_limit"
    assert excinfo.value.limit == 2

    clock.advance(timedelta(days=30))
    request = await workflow.submit_request(_user("bob"), "p-3", "three again")
    assert request.is_pending


async def test_monthly_limit_of_zero_disables_the_check(
    memory_store: MemoryDocumentStore, clock: FrozenClock
) -> None:
    limits = RequestLimits(
        max_pending_requests=10,
        cooldown_period=timedelta(0),
        max_requests_per_month=0,
    )
    await seed_university(memory_store, "uni-1", admins={"admin"})
    workflow = _workflow(memory_store, clock, limits)
    for index in range(6):
        await seed_profile(memory_store, f"p-{index}", created_by="creator", university_id="uni-1")
        await workflow.submit_request(_user("bob"), f"p-{index}", "again")

    stats = await memory_store.get_request_stats("bob")
    assert stats is not None and stats.total_requests == 6


async def test_rate_limited_submission_is_logged(
    memory_store: MemoryDocumentStore,
    clock: FrozenClock,
    caplog: pytest.LogCaptureFixture,
) -> None:
    await _seed_university_profile(memory_store)
    await seed_stats(memory_store, "bob", cooldown_until=T0 + timedelta(hours=1))

    with caplog.at_level(logging.WARNING, logger="memory_vista.core.access.workflow"):
        with pytest.raises(RateLimitedError):
            await _workflow(memory_store, clock).submit_request(_user("bob"), "p-1", "hi")

    records = [r for r in caplog.records if r.getMessage() == "editor_request.submit.rate_limited"]
    assert records
    assert records[0].reason == "cooldown"
    assert records[0].user_id == "bob"


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------


async def test_eligibility_reports_each_reason(store: DocumentStore, clock: FrozenClock) -> None:
    await _seed_university_profile(store)
    workflow = _workflow(store, clock)

    decision = await workflow.check_eligibility("bob", "p-1")
    assert decision.allowed is True
    assert decision.reason == "ok"
    assert decision.role is ResourceRole.NONE

    creator = await workflow.check_eligibility("creator", "p-1")
    assert creator.allowed is False and creator.reason == "already_editor"

    await workflow.submit_request(_user("bob"), "p-1", "please")
    pending = await workflow.check_eligibility("bob", "p-1")
    assert pending.reason == "pending_exists"

    await seed_profile(store, "p-2", created_by="creator", university_id="uni-1")
    cooldown = await workflow.check_eligibility("bob", "p-2")
    assert cooldown.reason == "cooldown"
    assert cooldown.retry_at == T0 + LIMITS.cooldown_period


async def test_eligibility_does_not_write(
    memory_store: MemoryDocumentStore, clock: FrozenClock
) -> None:
    await _seed_university_profile(memory_store)

    await _workflow(memory_store, clock).check_eligibility("bob", "p-1")

    assert await memory_store.get_request_stats("bob") is None


# ---------------------------------------------------------------------------
# Review
# ---------------------------------------------------------------------------


async def test_approve_grants_editor_role(store: DocumentStore, clock: FrozenClock) -> None:
    """A creates P, B asks for access, admin C approves; B can then edit P."""

    await seed_university(store, "uni-1", admins={"C"})
    await seed_profile(store, "P", created_by="A", university_id="uni-1")
    workflow = _workflow(store, clock)
    resolver = RoleResolver(store)
    assert await resolver.resolve_profile_role("A", "P") is ResourceRole.EDITOR
    assert await resolver.resolve_profile_role("B", "P") is ResourceRole.NONE

    request = await workflow.submit_request(_user("B"), "P", "family member")
    assert request.is_pending
    pending_stats = await store.get_request_stats("B")
    assert pending_stats is not None and pending_stats.pending_requests == 1

    clock.advance(timedelta(hours=3))
    approved = await workflow.approve_request("C", "P", request.id, notes="welcome")

    assert approved.status is EditorRequestStatus.APPROVED
    assert approved.reviewed_by == "C"
    assert approved.reviewed_at == clock.now
    assert approved.review_notes == "welcome"

    assert await resolver.resolve_profile_role("B", "P") is ResourceRole.EDITOR
    assert await resolver.resolve_profile_role("D", "P") is ResourceRole.NONE

    profile = await store.get_profile("P")
    assert profile is not None and "B" in profile.collaborator_ids

    stats = await store.get_request_stats("B")
    assert stats is not None
    assert stats.pending_requests == 0
    assert stats.total_requests == 1

    actions = [entry.action for entry in await store.list_audit_entries(profile_id="P")]
    assert set(actions) == {
        AuditAction.EDITOR_REQUEST_SUBMITTED,
        AuditAction.EDITOR_REQUEST_APPROVED,
        AuditAction.COLLABORATOR_ADDED,
    }


async def test_reject_keeps_cooldown(store: DocumentStore, clock: FrozenClock) -> None:
    """A rejected requester still waits out the cooldown before asking again."""

    await _seed_university_profile(store)
    workflow = _workflow(store, clock)
    request = await workflow.submit_request(_user("bob"), "p-1", "please")

    rejected = await workflow.reject_request("admin", "p-1", request.id)
    assert rejected.status is EditorRequestStatus.REJECTED
    assert rejected.review_notes is None

    stats = await store.get_request_stats("bob")
    assert stats is not None and stats.pending_requests == 0

    clock.advance(timedelta(days=1))
    with pytest.raises(RateLimitedError) as excinfo:
        await workflow.submit_request(_user("bob"), "p-1", "please again")
    assert excinfo.value.reason == "cooldown"

    profile = await store.get_profile("p-1")
    assert profile is not None and "bob" not in profile.collaborator_ids


async def test_pending_counter_never_goes_negative(
    store: DocumentStore, clock: FrozenClock
) -> None:
    await _seed_university_profile(store)
    await seed_stats(store, "bob", pending_requests=0)
    await seed_pending_request(store, request_id="req-1", user_id="bob", profile_id="p-1")

    await _workflow(store, clock).reject_request("admin", "p-1", "req-1")

    stats = await store.get_request_stats("bob")
    assert stats is not None and stats.pending_requests == 0


async def test_decided_request_cannot_be_decided_again(
    store: DocumentStore, clock: FrozenClock
) -> None:
    await _seed_university_profile(store)
    workflow = _workflow(store, clock)
    request = await workflow.submit_request(_user("bob"), "p-1", "please")
    await workflow.approve_request("admin", "p-1", request.id)

    with pytest.raises(InvalidTransitionError):
        await workflow.reject_request("admin", "p-1", request.id)
    with pytest.raises(InvalidTransitionError):
        await workflow.approve_request("admin", "p-1", request.id)

    stored = await store.get_editor_request("p-1", request.id)
    assert stored is not None and stored.status is EditorRequestStatus.APPROVED


async def test_only_admins_review(store: DocumentStore, clock: FrozenClock) -> None:
    """Editors and outsiders get the same refusal; the request stays pending."""

    await _seed_university_profile(store)
    workflow = _workflow(store, clock)
    request = await workflow.submit_request(_user("bob"), "p-1", "please")

    for reviewer in ("creator", "bob", "outsider"):
        with pytest.raises(UnauthorizedError):
            await workflow.approve_request(reviewer, "p-1", request.id)

    with pytest.raises(UnauthorizedError):
        await workflow.list_requests("creator", "p-1")

    stored = await store.get_editor_request("p-1", request.id)
    assert stored is not None and stored.is_pending


async def test_review_unknown_request_is_not_found(
    store: DocumentStore, clock: FrozenClock
) -> None:
    await _seed_university_profile(store)
    workflow = _workflow(store, clock)

    with pytest.raises(NotFoundError):
        await workflow.approve_request("admin", "p-1", "missing")
    with pytest.raises(NotFoundError):
        await workflow.approve_request("admin", "missing", "missing")


async def test_creator_reviews_profile_without_university(
    store: DocumentStore, clock: FrozenClock
) -> None:
    """Without a university the creator decides; nobody else may."""

    await seed_profile(store, "p-1", created_by="owner")
    workflow = _workflow(store, clock)
    request = await workflow.submit_request(_user("bob"), "p-1", "please")

    for reviewer in ("bob", "outsider", ""):
        with pytest.raises(UnauthorizedError):
            await workflow.approve_request(reviewer, "p-1", request.id)

    assert [r.id for r in await workflow.list_requests("owner", "p-1")] == [request.id]
    approved = await workflow.approve_request("owner", "p-1", request.id)

    assert approved.status is EditorRequestStatus.APPROVED
    assert approved.reviewed_by == "owner"
    assert await RoleResolver(store).resolve_profile_role("bob", "p-1") is ResourceRole.EDITOR
    stats = await store.get_request_stats("bob")
    assert stats is not None and stats.pending_requests == 0


async def test_requests_on_personal_profiles_do_not_exhaust_pending_slots(
    store: DocumentStore, clock: FrozenClock
) -> None:
    """Owners can clear requests on their profiles, so the requester is never stuck."""

    await _seed_university_profile(store, "uni-profile")
    workflow = _workflow(store, clock)
    requests = []
    for index in range(LIMITS.max_pending_requests):
        await seed_profile(store, f"personal-{index}", created_by=f"owner-{index}")
        requests.append(
            await workflow.submit_request(_user("bob"), f"personal-{index}", "family")
        )
        clock.advance(LIMITS.cooldown_period + timedelta(days=1))

    blocked = await workflow.check_eligibility("bob", "uni-profile")
    assert blocked.reason == "pending_limit"

    for index, request in enumerate(requests):
        await workflow.reject_request(f"owner-{index}", f"personal-{index}", request.id)

    clock.advance(timedelta(days=365))
    request = await workflow.submit_request(_user("bob"), "uni-profile", "please")
    assert request.is_pending


async def test_list_requests_filters_by_status(store: DocumentStore, clock: FrozenClock) -> None:
    await _seed_university_profile(store)
    workflow = _workflow(store, clock)
    first = await workflow.submit_request(_user("bob"), "p-1", "one")
    clock.advance(timedelta(minutes=5))
    second = await workflow.submit_request(_user("carol"), "p-1", "two")
    await workflow.reject_request("admin", "p-1", first.id)

    everything = await workflow.list_requests("admin", "p-1")
    pending = await workflow.list_requests("admin", "p-1", EditorRequestStatus.PENDING)

    assert [r.id for r in everything] == [first.id, second.id]
    assert [r.id for r in pending] == [second.id]


# ---------------------------------------------------------------------------
# Atomicity
# ---------------------------------------------------------------------------


class _FailingCommitStore(MemoryDocumentStore):
    """Memory store whose commits fail after the transaction body finishes."""

    def __init__(self) -> None:
        super().__init__()
        self.fail = False

    def _commit(self, staged: dict[str, Any], audit: list[AuditEntry]) -> None:
        if self.fail:
            raise StoreUnavailableError()
        super()._commit(staged, audit)


async def test_failed_submit_commits_nothing(clock: FrozenClock) -> None:
    store = _FailingCommitStore()
    await _seed_university_profile(store)
    store.fail = True

    with pytest.raises(StoreUnavailableError):
        await _workflow(store, clock).submit_request(_user("bob"), "p-1", "please")

    assert await store.get_request_stats("bob") is None
    assert await store.list_editor_requests("p-1") == []
    assert await store.list_audit_entries(profile_id="p-1") == []


async def test_failed_approve_leaves_request_pending(clock: FrozenClock) -> None:
    store = _FailingCommitStore()
    await _seed_university_profile(store)
    workflow = _workflow(store, clock)
    request = await workflow.submit_request(_user("bob"), "p-1", "please")
    store.fail = True

    with pytest.raises(StoreUnavailableError):
        await workflow.approve_request("admin", "p-1", request.id)

    stored = await store.get_editor_request("p-1", request.id)
    assert stored is not None and stored.is_pending
    stats = await store.get_request_stats("bob")
    assert stats is not None and stats.pending_requests == 1
    profile = await store.get_profile("p-1")
    assert profile is not None and "bob" not in profile.collaborator_ids


# ---------------------------------------------------------------------------
# Withdrawal and the requester's own view
# ---------------------------------------------------------------------------


async def test_requester_withdraws_pending_request(
    store: DocumentStore, clock: FrozenClock
) -> None:
    await _seed_university_profile(store)
    workflow = _workflow(store, clock)
    request = await workflow.submit_request(_user("bob"), "p-1", "please")
    clock.advance(timedelta(hours=2))

    withdrawn = await workflow.withdraw_request("bob", "p-1", request.id)

    assert withdrawn.status is EditorRequestStatus.WITHDRAWN
    assert withdrawn.updated_at == clock.now
    assert withdrawn.reviewed_by is None

    stored = await store.get_editor_request("p-1", request.id)
    assert stored is not None and stored.status is EditorRequestStatus.WITHDRAWN

    stats = await store.get_request_stats("bob")
    assert stats is not None
    assert stats.pending_requests == 0
    assert stats.total_requests == 1
    assert stats.cooldown_until == T0 + LIMITS.cooldown_period

    entries = await store.list_audit_entries(profile_id="p-1")
    withdrawals = [e for e in entries if e.action is AuditAction.EDITOR_REQUEST_WITHDRAWN]
    assert len(withdrawals) == 1
    assert withdrawals[0].actor_id == "bob"
    assert withdrawals[0].university_id == "uni-1"
    assert withdrawals[0].details == {"editor_request_id": request.id}


async def test_withdrawn_request_frees_profile_after_cooldown(
    store: DocumentStore, clock: FrozenClock
) -> None:
    await _seed_university_profile(store)
    workflow = _workflow(store, clock)
    request = await workflow.submit_request(_user("bob"), "p-1", "please")
    await workflow.withdraw_request("bob", "p-1", request.id)

    decision = await workflow.check_eligibility("bob", "p-1")
    assert decision.reason == "cooldown"

    clock.advance(LIMITS.cooldown_period)
    again = await workflow.submit_request(_user("bob"), "p-1", "second try")
    assert again.is_pending


async def test_only_requester_may_withdraw(store: DocumentStore, clock: FrozenClock) -> None:
    """Anyone else, admins included, gets the same not-found refusal."""

    await _seed_university_profile(store)
    workflow = _workflow(store, clock)
    request = await workflow.submit_request(_user("bob"), "p-1", "please")

    for caller in ("admin", "creator", "outsider", ""):
        with pytest.raises(NotFoundError):
            await workflow.withdraw_request(caller, "p-1", request.id)
    with pytest.raises(NotFoundError):
        await workflow.withdraw_request("bob", "other-profile", request.id)

    stored = await store.get_editor_request("p-1", request.id)
    assert stored is not None and stored.is_pending


async def test_decided_request_cannot_be_withdrawn(
    store: DocumentStore, clock: FrozenClock
) -> None:
    await _seed_university_profile(store)
    workflow = _workflow(store, clock)
    request = await workflow.submit_request(_user("bob"), "p-1", "please")
    await workflow.reject_request("admin", "p-1", request.id)

    with pytest.raises(InvalidTransitionError):
        await workflow.withdraw_request("bob", "p-1", request.id)

    stored = await store.get_editor_request("p-1", request.id)
    assert stored is not None and stored.status is EditorRequestStatus.REJECTED


async def test_withdrawn_request_cannot_be_reviewed(
    store: DocumentStore, clock: FrozenClock
) -> None:
    await _seed_university_profile(store)
    workflow = _workflow(store, clock)
    request = await workflow.submit_request(_user("bob"), "p-1", "please")
    await workflow.withdraw_request("bob", "p-1", request.id)

    with pytest.raises(InvalidTransitionError):
        await workflow.approve_request("admin", "p-1", request.id)
    with pytest.raises(InvalidTransitionError):
        await workflow.withdraw_request("bob", "p-1", request.id)


async def test_withdraw_keeps_pending_floor(store: DocumentStore, clock: FrozenClock) -> None:
    await _seed_university_profile(store)
    await seed_stats(store, "bob", pending_requests=0)
    await seed_pending_request(store, request_id="req-1", user_id="bob", profile_id="p-1")

    await _workflow(store, clock).withdraw_request("bob", "p-1", "req-1")

    stats = await store.get_request_stats("bob")
    assert stats is not None and stats.pending_requests == 0


async def test_list_my_requests_spans_profiles(store: DocumentStore, clock: FrozenClock) -> None:
    await seed_university(store, "uni-1", admins={"admin"})
    await seed_profile(store, "p-1", created_by="creator", university_id="uni-1")
    await seed_profile(store, "p-2", created_by="creator", university_id="uni-1")
    workflow = _workflow(store, clock)

    first = await workflow.submit_request(_user("bob"), "p-1", "one")
    clock.advance(LIMITS.cooldown_period)
    second = await workflow.submit_request(_user("bob"), "p-2", "two")
    await workflow.submit_request(_user("carol"), "p-1", "not mine")
    await workflow.withdraw_request("bob", "p-1", first.id)

    mine = await workflow.list_my_requests("bob")
    pending = await workflow.list_my_requests("bob", EditorRequestStatus.PENDING)

    assert [(r.id, r.profile_id) for r in mine] == [(first.id, "p-1"), (second.id, "p-2")]
    assert [r.id for r in pending] == [second.id]
    assert await workflow.list_my_requests("nobody") == []


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


async def test_concurrent_submissions_respect_pending_cap(
    store: DocumentStore, clock: FrozenClock
) -> None:
    """Simultaneous submissions on different profiles never overshoot the cap."""

    limits = RequestLimits(
        max_pending_requests=3,
        cooldown_period=timedelta(0),
        max_requests_per_month=0,
    )
    await seed_university(store, "uni-1", admins={"admin"})
    profile_ids = [f"p-{index}" for index in range(8)]
    for profile_id in profile_ids:
        await seed_profile(store, profile_id, created_by="creator", university_id="uni-1")
    workflow = _workflow(store, clock, limits)

    results = await asyncio.gather(
        *(workflow.submit_request(_user("bob"), pid, "please") for pid in profile_ids),
        return_exceptions=True,
    )

    accepted = [r for r in results if isinstance(r, EditorRequest)]
    refused = [r for r in results if isinstance(r, RateLimitedError)]
    assert len(accepted) == 3
    assert len(refused) == 5
    assert {error.reason for error in refused} == {"pending_limit"}

    stats = await store.get_request_stats("bob")
    assert stats is not None
    assert stats.pending_requests == 3
    assert stats.total_requests == 3
    assert len(await workflow.list_my_requests("bob", EditorRequestStatus.PENDING)) == 3
