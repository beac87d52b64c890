"""Relational document store backed by async SQLAlchemy.

Each document path maps to a row: ``universities/{id}`` and its ``adminIds``
to ``universities`` + ``university_admins``, ``profiles/{id}`` and its
``collaboratorIds`` to ``profiles`` + ``profile_collaborators``, editor requests
to ``editor_requests`` and the per-user counters to ``editor_request_stats``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from memory_vista.core.access.errors import StoreUnavailableError
from memory_vista.core.access.types import (
    AuditEntry,
    EditorRequest,
    EditorRequestStats,
    EditorRequestStatus,
    Profile,
    University,
)
from memory_vista.db import Database, metadata
from memory_vista.models import (
    AuditLogEntry,
    EditorRequestRecord,
    EditorRequestStatsRecord,
    ProfileCollaborator,
    ProfileRecord,
    UniversityAdmin,
    UniversityRecord,
)

from .base import DocumentReader, DocumentStore, DocumentWriter

logger = logging.getLogger(__name__)

_BACKEND_ERRORS = (SQLAlchemyError, OSError)


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except _BACKEND_ERRORS as exc:
        logger.error(
            "store.sql.failure",
            extra={"operation": operation, "error": type(exc).__name__},
            exc_info=exc,
        )
        raise StoreUnavailableError() from exc


# ---- Row <-> document mapping -----------------------------------------------

def _to_request(row: EditorRequestRecord) -> EditorRequest:
    return EditorRequest(
        id=row.id,
        user_id=row.user_id,
        user_email=row.user_email,
        profile_id=row.profile_id,
        status=row.status,
        reason=row.reason,
        requested_at=row.requested_at,
        updated_at=row.updated_at,
        reviewed_by=row.reviewed_by,
        reviewed_at=row.reviewed_at,
        review_notes=row.review_notes,
    )


def _to_stats(row: EditorRequestStatsRecord) -> EditorRequestStats:
    return EditorRequestStats(
        user_id=row.user_id,
        total_requests=row.total_requests,
        pending_requests=row.pending_requests,
        last_request_at=row.last_request_at,
        cooldown_until=row.cooldown_until,
    )


def _to_audit(row: AuditLogEntry) -> AuditEntry:
    return AuditEntry(
        id=row.id,
        action=row.action,
        actor_id=row.actor_id,
        created_at=row.created_at,
        target_user_id=row.target_user_id,
        university_id=row.university_id,
        profile_id=row.profile_id,
        role=row.role,
        details=dict(row.details or {}),
    )


class _SqlReader(DocumentReader):
    """Queries over a single ``AsyncSession``."""

    def __init__(self, session: AsyncSession, *, lock_rows: bool = False) -> None:
        self._session = session
        self._lock_rows = lock_rows

    async def get_university(self, university_id: str) -> University | None:
        row = await self._session.get(UniversityRecord, university_id)
        if row is None:
            return None
        admin_ids = await self._session.scalars(
            select(UniversityAdmin.user_id).where(UniversityAdmin.university_id == university_id)
        )
        return University(
            id=row.id,
            name=row.name,
            admin_ids=set(admin_ids),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    async def get_profile(self, profile_id: str) -> Profile | None:
        row = await self._session.get(ProfileRecord, profile_id)
        if row is None:
            return None
        collaborator_ids = await self._session.scalars(
            select(ProfileCollaborator.user_id).where(
                ProfileCollaborator.profile_id == profile_id
            )
        )
        return Profile(
            id=row.id,
            kind=row.kind,
            name=row.name,
            created_by=row.created_by,
            university_id=row.university_id,
            status=row.status,
            collaborator_ids=set(collaborator_ids),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    async def get_editor_request(
        self, profile_id: str, request_id: str
    ) -> EditorRequest | None:
        row = await self._session.get(EditorRequestRecord, request_id)
        if row is None or row.profile_id != profile_id:
            return None
        return _to_request(row)

    async def find_pending_request(
        self, user_id: str, profile_id: str
    ) -> EditorRequest | None:
        stmt = (
            select(EditorRequestRecord)
            .where(
                EditorRequestRecord.user_id == user_id,
                EditorRequestRecord.profile_id == profile_id,
                EditorRequestRecord.status == EditorRequestStatus.PENDING,
            )
            .order_by(EditorRequestRecord.requested_at)
            .limit(1)
        )
        row = await self._session.scalar(stmt)
        return _to_request(row) if row is not None else None

    async def list_editor_requests(
        self,
        profile_id: str,
        status: EditorRequestStatus | None = None,
    ) -> list[EditorRequest]:
        stmt = select(EditorRequestRecord).where(EditorRequestRecord.profile_id == profile_id)
        if status is not None:
            stmt = stmt.where(EditorRequestRecord.status == status)
        stmt = stmt.order_by(EditorRequestRecord.requested_at, EditorRequestRecord.id)
        rows = await self._session.scalars(stmt)
        return [_to_request(row) for row in rows]

    async def list_user_requests(
        self,
        user_id: str,
        status: EditorRequestStatus | None = None,
    ) -> list[EditorRequest]:
        stmt = select(EditorRequestRecord).where(EditorRequestRecord.user_id == user_id)
        if status is not None:
            stmt = stmt.where(EditorRequestRecord.status == status)
        stmt = stmt.order_by(EditorRequestRecord.requested_at, EditorRequestRecord.id)
        rows = await self._session.scalars(stmt)
        return [_to_request(row) for row in rows]

    async def get_request_stats(self, user_id: str) -> EditorRequestStats | None:
        stmt = select(EditorRequestStatsRecord).where(
            EditorRequestStatsRecord.user_id == user_id
        )
        if self._lock_rows:
            stmt = stmt.with_for_update()
        row = await self._session.scalar(stmt)
        return _to_stats(row) if row is not None else None

    async def count_requests_since(self, user_id: str, since: datetime) -> int:
        stmt = select(func.count()).select_from(EditorRequestRecord).where(
            EditorRequestRecord.user_id == user_id,
            EditorRequestRecord.requested_at >= since,
        )
        return int(await self._session.scalar(stmt) or 0)

    async def list_audit_entries(
        self,
        *,
        university_id: str | None = None,
        profile_id: str | None = None,
    ) -> list[AuditEntry]:
        stmt = select(AuditLogEntry)
        if university_id is not None:
            stmt = stmt.where(AuditLogEntry.university_id == university_id)
        if profile_id is not None:
            stmt = stmt.where(AuditLogEntry.profile_id == profile_id)
        stmt = stmt.order_by(AuditLogEntry.created_at, AuditLogEntry.id)
        rows = await self._session.scalars(stmt)
        return [_to_audit(row) for row in rows]


class _SqlTransaction(_SqlReader, DocumentWriter):
    """Writes are flushed immediately so later reads in the block observe them."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, lock_rows=True)

    async def put_university(self, university: University) -> None:
        session = self._session
        row = await session.get(UniversityRecord, university.id)
        if row is None:
            row = UniversityRecord(id=university.id)
            session.add(row)
        row.name = university.name
        if university.created_at is not None:
            row.created_at = university.created_at
        if university.updated_at is not None:
            row.updated_at = university.updated_at
        await session.flush()

        existing = set(
            await session.scalars(
                select(UniversityAdmin.user_id).where(
                    UniversityAdmin.university_id == university.id
                )
            )
        )
        removed = existing - university.admin_ids
        if removed:
            await session.execute(
                delete(UniversityAdmin).where(
                    UniversityAdmin.university_id == university.id,
                    UniversityAdmin.user_id.in_(removed),
                )
            )
        for user_id in sorted(university.admin_ids - existing):
            session.add(UniversityAdmin(university_id=university.id, user_id=user_id))
        await session.flush()

    async def put_profile(self, profile: Profile) -> None:
        session = self._session
        row = await session.get(ProfileRecord, profile.id)
        if row is None:
            row = ProfileRecord(id=profile.id)
            session.add(row)
        row.kind = profile.kind
        row.name = profile.name
        row.created_by = profile.created_by
        row.university_id = profile.university_id
        row.status = profile.status
        if profile.created_at is not None:
            row.created_at = profile.created_at
        if profile.updated_at is not None:
            row.updated_at = profile.updated_at
        await session.flush()

        existing = set(
            await session.scalars(
                select(ProfileCollaborator.user_id).where(
                    ProfileCollaborator.profile_id == profile.id
                )
            )
        )
        removed = existing - profile.collaborator_ids
        if removed:
            await session.execute(
                delete(ProfileCollaborator).where(
                    ProfileCollaborator.profile_id == profile.id,
                    ProfileCollaborator.user_id.in_(removed),
                )
            )
        for user_id in sorted(profile.collaborator_ids - existing):
            session.add(ProfileCollaborator(profile_id=profile.id, user_id=user_id))
        await session.flush()

    async def put_editor_request(self, request: EditorRequest) -> None:
        session = self._session
        row = await session.get(EditorRequestRecord, request.id)
        if row is None:
            row = EditorRequestRecord(id=request.id)
            session.add(row)
        row.profile_id = request.profile_id
        row.user_id = request.user_id
        row.user_email = request.user_email
        row.status = request.status
        row.reason = request.reason
        row.requested_at = request.requested_at
        row.updated_at = request.updated_at
        row.reviewed_by = request.reviewed_by
        row.reviewed_at = request.reviewed_at
        row.review_notes = request.review_notes
        await session.flush()

    async def put_request_stats(self, stats: EditorRequestStats) -> None:
        if stats.pending_requests < 0:
            raise ValueError("pending_requests cannot be negative")
        session = self._session
        row = await session.get(EditorRequestStatsRecord, stats.user_id)
        if row is None:
            row = EditorRequestStatsRecord(user_id=stats.user_id)
            session.add(row)
        row.total_requests = stats.total_requests
        row.pending_requests = stats.pending_requests
        row.last_request_at = stats.last_request_at
        row.cooldown_until = stats.cooldown_until
        await session.flush()

    async def append_audit_entry(self, entry: AuditEntry) -> None:
        self._session.add(
            AuditLogEntry(
                id=entry.id,
                action=entry.action,
                actor_id=entry.actor_id,
                target_user_id=entry.target_user_id,
                university_id=entry.university_id,
                profile_id=entry.profile_id,
                role=entry.role,
                details=dict(entry.details),
                created_at=entry.created_at,
            )
        )
        await self._session.flush()


class SqlDocumentStore(DocumentStore):
    """Document store over a :class:`~memory_vista.db.Database`.

    Transactions are serialized within the process; stats rows are read
    ``FOR UPDATE`` where the backend supports it.
    """

    name = "sql"

    def __init__(self, database: Database) -> None:
        self._database = database
        self._lock = asyncio.Lock()

    @property
    def database(self) -> Database:
        return self._database

    async def create_schema(self) -> None:
        """Create all tables directly (tests and throwaway SQLite files)."""

        with _translate_errors("create_schema"):
            async with self._database.engine.begin() as conn:
                await conn.run_sync(metadata.create_all)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[DocumentWriter]:
        async with self._lock:
            with _translate_errors("transaction"):
                async with self._database.session_scope() as session:
                    yield _SqlTransaction(session)

    @asynccontextmanager
    async def _reader(self, operation: str) -> AsyncIterator[_SqlReader]:
        with _translate_errors(operation):
            async with self._database.session_scope() as session:
                yield _SqlReader(session)

    async def get_university(self, university_id: str) -> University | None:
        async with self._reader("get_university") as reader:
            return await reader.get_university(university_id)

    async def get_profile(self, profile_id: str) -> Profile | None:
        async with self._reader("get_profile") as reader:
            return await reader.get_profile(profile_id)

    async def get_editor_request(
        self, profile_id: str, request_id: str
    ) -> EditorRequest | None:
        async with self._reader("get_editor_request") as reader:
            return await reader.get_editor_request(profile_id, request_id)

    async def find_pending_request(
        self, user_id: str, profile_id: str
    ) -> EditorRequest | None:
        async with self._reader("find_pending_request") as reader:
            return await reader.find_pending_request(user_id, profile_id)

    async def list_editor_requests(
        self,
        profile_id: str,
        status: EditorRequestStatus | None = None,
    ) -> list[EditorRequest]:
        async with self._reader("list_editor_requests") as reader:
            return await reader.list_editor_requests(profile_id, status=status)

    async def list_user_requests(
        self,
        user_id: str,
        status: EditorRequestStatus | None = None,
    ) -> list[EditorRequest]:
        async with self._reader("list_user_requests") as reader:
            return await reader.list_user_requests(user_id, status=status)

    async def get_request_stats(self, user_id: str) -> EditorRequestStats | None:
        async with self._reader("get_request_stats") as reader:
            return await reader.get_request_stats(user_id)

    async def count_requests_since(self, user_id: str, since: datetime) -> int:
        async with self._reader("count_requests_since") as reader:
            return await reader.count_requests_since(user_id, since)

    async def list_audit_entries(
        self,
        *,
        university_id: str | None = None,
        profile_id: str | None = None,
    ) -> list[AuditEntry]:
        async with self._reader("list_audit_entries") as reader:
            return await reader.list_audit_entries(
                university_id=university_id, profile_id=profile_id
            )

    async def close(self) -> None:
        await self._database.dispose()


__all__ = ["SqlDocumentStore"]
