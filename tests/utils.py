"""Helper functions shared across tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from memory_vista.core.access.types import (
    EditorRequest,
    EditorRequestStats,
    EditorRequestStatus,
    Profile,
    ProfileKind,
    University,
)
from memory_vista.store.base import DocumentStore

JWT_SECRET = "test-jwt-secret-for-tests-please-change"
T0 = datetime(2026, 3, 2, 10, 0, tzinfo=UTC)


class FrozenClock:
    """Deterministic clock; tests move it with :meth:`advance` or :meth:`set`."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> datetime:
        self.now = self.now + delta
        return self.now

    def set(self, value: datetime) -> datetime:
        self.now = value
        return self.now


async def seed_university(
    store: DocumentStore,
    university_id: str = "uni-1",
    *,
    admins: set[str] | None = None,
    name: str = "Lakeside University",
) -> University:
    university = University(
        id=university_id,
        name=name,
        admin_ids=set(admins or set()),
        created_at=T0,
        updated_at=T0,
    )
    async with store.transaction() as tx:
        await tx.put_university(university)
    return university


async def seed_profile(
    store: DocumentStore,
    profile_id: str = "profile-1",
    *,
    created_by: str = "user-a",
    university_id: str | None = None,
    collaborators: set[str] | None = None,
    kind: ProfileKind = ProfileKind.MEMORIAL,
) -> Profile:
    profile = Profile(
        id=profile_id,
        kind=kind,
        name=f"Profile {profile_id}",
        created_by=created_by,
        university_id=university_id,
        collaborator_ids=set(collaborators or set()),
        created_at=T0,
        updated_at=T0,
    )
    async with store.transaction() as tx:
        await tx.put_profile(profile)
    return profile


async def seed_stats(store: DocumentStore, user_id: str, **fields: Any) -> EditorRequestStats:
    stats = EditorRequestStats(user_id=user_id, **fields)
    async with store.transaction() as tx:
        await tx.put_request_stats(stats)
    return stats


async def seed_pending_request(
    store: DocumentStore,
    *,
    request_id: str,
    user_id: str,
    profile_id: str,
    requested_at: datetime = T0,
) -> EditorRequest:
    request = EditorRequest(
        id=request_id,
        user_id=user_id,
        profile_id=profile_id,
        status=EditorRequestStatus.PENDING,
        reason="seeded",
        requested_at=requested_at,
        updated_at=requested_at,
    )
    async with store.transaction() as tx:
        await tx.put_editor_request(request)
    return request


def make_token(
    user_id: str,
    *,
    email: str | None = None,
    secret: str = JWT_SECRET,
    expires_in: timedelta = timedelta(hours=1),
    **claims: Any,
) -> str:
    """Sign a provider-style access token (``exp`` uses the real wall clock)."""

    payload: dict[str, Any] = {
        "sub": user_id,
        "email": email or f"{user_id}@example.com",
        "email_verified": True,
        "exp": datetime.now(UTC) + expires_in,
        **claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(user_id: str, **kwargs: Any) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, **kwargs)}"}


__all__ = [
    "FrozenClock",
    "JWT_SECRET",
    "T0",
    "auth_headers",
    "make_token",
    "seed_pending_request",
    "seed_profile",
    "seed_stats",
    "seed_university",
]
