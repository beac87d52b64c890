"""In-process document store keyed by Firestore-style document paths."""

from __future__ import annotations

import asyncio
import copy
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, TypeVar

from memory_vista.core.access.types import (
    AuditEntry,
    EditorRequest,
    EditorRequestStats,
    EditorRequestStatus,
    Profile,
    University,
)

from .base import DocumentReader, DocumentStore, DocumentWriter

T = TypeVar("T")


def university_path(university_id: str) -> str:
    return f"universities/{university_id}"


def profile_path(profile_id: str) -> str:
    return f"profiles/{profile_id}"


def editor_request_path(profile_id: str, request_id: str) -> str:
    return f"profiles/{profile_id}/editorRequests/{request_id}"


def request_stats_path(user_id: str) -> str:
    return f"users/{user_id}/editorRequestStats/stats"


def _is_editor_request_path(path: str) -> bool:
    parts = path.split("/")
    return len(parts) == 4 and parts[0] == "profiles" and parts[2] == "editorRequests"


class _MemoryReader(DocumentReader):
    """Query helpers over a ``path -> record`` mapping."""

    def _documents(self) -> dict[str, Any]:  # pragma: no cover - interface only
        raise NotImplementedError

    def _audit(self) -> Iterable[AuditEntry]:  # pragma: no cover - interface only
        raise NotImplementedError

    def _get(self, path: str, kind: type[T]) -> T | None:
        record = self._documents().get(path)
        if record is None:
            return None
        if not isinstance(record, kind):
            raise TypeError(f"Document at {path!r} is not a {kind.__name__}")
        return copy.deepcopy(record)

    def _editor_requests(self) -> list[EditorRequest]:
        return [
            copy.deepcopy(record)
            for path, record in self._documents().items()
            if _is_editor_request_path(path)
        ]

    async def get_university(self, university_id: str) -> University | None:
        return self._get(university_path(university_id), University)

    async def get_profile(self, profile_id: str) -> Profile | None:
        return self._get(profile_path(profile_id), Profile)

    async def get_editor_request(
        self, profile_id: str, request_id: str
    ) -> EditorRequest | None:
        return self._get(editor_request_path(profile_id, request_id), EditorRequest)

    async def find_pending_request(
        self, user_id: str, profile_id: str
    ) -> EditorRequest | None:
        for request in await self.list_editor_requests(
            profile_id, status=EditorRequestStatus.PENDING
        ):
            if request.user_id == user_id:
                return request
        return None

    async def list_editor_requests(
        self,
        profile_id: str,
        status: EditorRequestStatus | None = None,
    ) -> list[EditorRequest]:
        requests = [
            request
            for request in self._editor_requests()
            if request.profile_id == profile_id
            and (status is None or request.status is status)
        ]
        return sorted(requests, key=lambda request: request.requested_at)

    async def list_user_requests(
        self,
        user_id: str,
        status: EditorRequestStatus | None = None,
    ) -> list[EditorRequest]:
        requests = [
            request
            for request in self._editor_requests()
            if request.user_id == user_id and (status is None or request.status is status)
        ]
        return sorted(requests, key=lambda request: request.requested_at)

    async def get_request_stats(self, user_id: str) -> EditorRequestStats | None:
        return self._get(request_stats_path(user_id), EditorRequestStats)

    async def count_requests_since(self, user_id: str, since: datetime) -> int:
        return sum(
            1
            for request in self._editor_requests()
            if request.user_id == user_id and request.requested_at >= since
        )

    async def list_audit_entries(
        self,
        *,
        university_id: str | None = None,
        profile_id: str | None = None,
    ) -> list[AuditEntry]:
        return [
            copy.deepcopy(entry)
            for entry in self._audit()
            if (university_id is None or entry.university_id == university_id)
            and (profile_id is None or entry.profile_id == profile_id)
        ]


class _MemoryTransaction(_MemoryReader, DocumentWriter):
    """Staged writes layered over the committed documents."""

    def __init__(self, store: MemoryDocumentStore) -> None:
        self._store = store
        self.staged: dict[str, Any] = {}
        self.staged_audit: list[AuditEntry] = []

    def _documents(self) -> dict[str, Any]:
        merged = dict(self._store.documents)
        merged.update(self.staged)
        return merged

    def _audit(self) -> Iterable[AuditEntry]:
        return [*self._store.audit_log, *self.staged_audit]

    async def put_university(self, university: University) -> None:
        self.staged[university_path(university.id)] = copy.deepcopy(university)

    async def put_profile(self, profile: Profile) -> None:
        self.staged[profile_path(profile.id)] = copy.deepcopy(profile)

    async def put_editor_request(self, request: EditorRequest) -> None:
        path = editor_request_path(request.profile_id, request.id)
        self.staged[path] = copy.deepcopy(request)

    async def put_request_stats(self, stats: EditorRequestStats) -> None:
        if stats.pending_requests < 0:
            raise ValueError("pending_requests cannot be negative")
        self.staged[request_stats_path(stats.user_id)] = copy.deepcopy(stats)

    async def append_audit_entry(self, entry: AuditEntry) -> None:
        self.staged_audit.append(copy.deepcopy(entry))


class MemoryDocumentStore(_MemoryReader, DocumentStore):
    """Dictionary-backed store used for tests and single-process runs."""

    name = "memory"

    def __init__(self) -> None:
        self.documents: dict[str, Any] = {}
        self.audit_log: list[AuditEntry] = []
        self._lock = asyncio.Lock()

    def _documents(self) -> dict[str, Any]:
        return self.documents

    def _audit(self) -> Iterable[AuditEntry]:
        return self.audit_log

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[DocumentWriter]:
        async with self._lock:
            tx = _MemoryTransaction(self)
            yield tx
            self._commit(tx.staged, tx.staged_audit)

    def _commit(self, staged: dict[str, Any], audit: list[AuditEntry]) -> None:
        self.documents.update(staged)
        self.audit_log.extend(audit)


__all__ = [
    "MemoryDocumentStore",
    "editor_request_path",
    "profile_path",
    "request_stats_path",
    "university_path",
]
