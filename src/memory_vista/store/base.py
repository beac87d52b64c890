"""Document store port consumed by the access-control core.

Adapters live beside this module (``memory.py``, ``sql.py``). The core only
ever talks to these interfaces, so a backend swap never touches business logic.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from memory_vista.core.access.types import (
    AuditEntry,
    EditorRequest,
    EditorRequestStats,
    EditorRequestStatus,
    Profile,
    University,
)


class DocumentReader:
    """Read capabilities shared by stores and open transactions."""

    async def get_university(  # pragma: no cover - interface only
        self, university_id: str
    ) -> University | None:
        raise NotImplementedError

    async def get_profile(  # pragma: no cover - interface only
        self, profile_id: str
    ) -> Profile | None:
        raise NotImplementedError

    async def get_editor_request(  # pragma: no cover - interface only
        self, profile_id: str, request_id: str
    ) -> EditorRequest | None:
        raise NotImplementedError

    async def find_pending_request(  # pragma: no cover - interface only
        self, user_id: str, profile_id: str
    ) -> EditorRequest | None:
        raise NotImplementedError

    async def list_editor_requests(  # pragma: no cover - interface only
        self,
        profile_id: str,
        status: EditorRequestStatus | None = None,
    ) -> list[EditorRequest]:
        raise NotImplementedError

    async def list_user_requests(  # pragma: no cover - interface only
        self,
        user_id: str,
        status: EditorRequestStatus | None = None,
    ) -> list[EditorRequest]:
        raise NotImplementedError

    async def get_request_stats(  # pragma: no cover - interface only
        self, user_id: str
    ) -> EditorRequestStats | None:
        raise NotImplementedError

    async def count_requests_since(  # pragma: no cover - interface only
        self, user_id: str, since: datetime
    ) -> int:
        raise NotImplementedError

    async def list_audit_entries(  # pragma: no cover - interface only
        self,
        *,
        university_id: str | None = None,
        profile_id: str | None = None,
    ) -> list[AuditEntry]:
        raise NotImplementedError


class DocumentWriter(DocumentReader):
    """Read/write view handed out by :meth:`DocumentStore.transaction`.

    Writes become visible to other readers only once the transaction commits.
    """

    async def put_university(self, university: University) -> None:  # pragma: no cover
        raise NotImplementedError

    async def put_profile(self, profile: Profile) -> None:  # pragma: no cover
        raise NotImplementedError

    async def put_editor_request(self, request: EditorRequest) -> None:  # pragma: no cover
        raise NotImplementedError

    async def put_request_stats(self, stats: EditorRequestStats) -> None:  # pragma: no cover
        raise NotImplementedError

    async def append_audit_entry(self, entry: AuditEntry) -> None:  # pragma: no cover
        raise NotImplementedError


class DocumentStore(DocumentReader):
    """A document store reachable by university/profile/request paths.

    Implementations must serialize :meth:`transaction` blocks and raise
    :class:`~memory_vista.core.access.errors.StoreUnavailableError` for any
    backend failure.
    """

    name: str = "abstract"

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[DocumentWriter]:  # pragma: no cover
        raise NotImplementedError
        yield  # type: ignore[unreachable]

    async def close(self) -> None:
        """Release backend resources. Default: nothing to release."""


__all__ = ["DocumentReader", "DocumentStore", "DocumentWriter"]
