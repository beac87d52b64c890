"""Shared pytest fixtures for the access service tests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio

from memory_vista.db import Database, DatabaseConfig
from memory_vista.store.base import DocumentStore
from memory_vista.store.memory import MemoryDocumentStore
from memory_vista.store.sql import SqlDocumentStore

from tests.utils import FrozenClock


def pytest_collection_modifyitems(config, items) -> None:
    for item in items:
        path_str = str(Path(str(item.fspath)))
        if "/tests/integration/" in path_str:
            item.add_marker(pytest.mark.integration)
        elif "/tests/unit/" in path_str:
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest_asyncio.fixture
async def sql_store(tmp_path: Path) -> AsyncIterator[SqlDocumentStore]:
    """SQL adapter over a throwaway SQLite file with the schema created."""

    database = Database()
    database.init(DatabaseConfig(url=f"sqlite:///{tmp_path / 'store.sqlite'}"))
    store = SqlDocumentStore(database)
    await store.create_schema()
    try:
        yield store
    finally:
        await store.close()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request: pytest.FixtureRequest, tmp_path: Path) -> AsyncIterator[DocumentStore]:
    """Run the test once per document store adapter."""

    if request.param == "memory":
        yield MemoryDocumentStore()
        return

    database = Database()
    database.init(DatabaseConfig(url=f"sqlite:///{tmp_path / 'param-store.sqlite'}"))
    sql = SqlDocumentStore(database)
    await sql.create_schema()
    try:
        yield sql
    finally:
        await sql.close()
