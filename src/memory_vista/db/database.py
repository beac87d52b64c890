"""Async engine and session factory for the SQL document store.

One :class:`Database` per process, owned by the store adapter. Configuration
takes a *sync* URL (what operators write in ``MV_DATABASE_URL`` and what
Alembic uses); the runtime engine swaps in the async driver:

==============  =============================  ============================
backend         sync (Alembic)                  async (runtime)
==============  =============================  ============================
SQLite          ``sqlite``                      ``sqlite+aiosqlite``
PostgreSQL      ``postgresql+psycopg``          ``postgresql+asyncpg``
==============  =============================  ============================

SQLite connections get foreign keys, a busy timeout and WAL; a file database
uses a single pooled connection so writers queue instead of failing with
``database is locked``.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from memory_vista.settings import DEFAULT_DATABASE_URL, Settings

__all__ = [
    "Database",
    "DatabaseConfig",
    "build_async_url",
    "build_sync_url",
]

_SYNC_DRIVERS = {"sqlite": "sqlite", "postgresql": "postgresql+psycopg"}
_ASYNC_DRIVERS = {"sqlite": "sqlite+aiosqlite", "postgresql": "postgresql+asyncpg"}


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    url: str
    echo: bool = False

    # PostgreSQL pool
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800

    # SQLite pragmas
    sqlite_journal_mode: str = "WAL"
    sqlite_synchronous: str = "NORMAL"
    sqlite_busy_timeout_ms: int = 30_000

    @classmethod
    def from_settings(cls, settings: Settings) -> DatabaseConfig:
        return cls(
            url=settings.database_url or DEFAULT_DATABASE_URL,
            echo=bool(settings.database_echo),
            sqlite_busy_timeout_ms=int(settings.database_sqlite_busy_timeout_ms),
        )


def _backend(url: URL) -> str:
    name = url.get_backend_name()
    if name not in _SYNC_DRIVERS:
        raise ValueError(f"Unsupported database backend {name!r}; use SQLite or PostgreSQL.")
    return name


def _with_driver(raw_url: str, drivers: dict[str, str]) -> str:
    url = make_url(raw_url)
    return url.set(drivername=drivers[_backend(url)]).render_as_string(hide_password=False)


def build_sync_url(cfg: DatabaseConfig) -> str:
    return _with_driver(cfg.url, _SYNC_DRIVERS)


def build_async_url(cfg: DatabaseConfig) -> str:
    return _with_driver(cfg.url, _ASYNC_DRIVERS)


def _is_sqlite_memory(url: URL) -> bool:
    database = (url.database or "").strip()
    if database in ("", ":memory:"):
        return True
    return database.startswith("file:") and url.query.get("mode") == "memory"


def _ensure_sqlite_parent_dir(url: URL) -> None:
    """Create the directory holding a SQLite file so the first connect succeeds."""

    database = (url.database or "").strip()
    if database in ("", ":memory:") or database.startswith("file:"):
        return
    path = Path(database)
    if not path.is_absolute():
        path = Path.cwd() / path
    path.parent.mkdir(parents=True, exist_ok=True)


def _engine_options(url: URL, cfg: DatabaseConfig) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": cfg.echo, "pool_pre_ping": True}
    if _backend(url) != "sqlite":
        options.update(
            pool_size=cfg.pool_size,
            max_overflow=cfg.max_overflow,
            pool_timeout=cfg.pool_timeout,
            pool_recycle=cfg.pool_recycle,
        )
        return options

    options["connect_args"] = {
        "check_same_thread": False,
        "timeout": cfg.sqlite_busy_timeout_ms / 1000.0,
    }
    if _is_sqlite_memory(url):
        options["poolclass"] = StaticPool
    else:
        options.update(pool_size=1, max_overflow=0, pool_timeout=max(1, cfg.pool_timeout))
    return options


def _install_sqlite_pragmas(engine: AsyncEngine, cfg: DatabaseConfig, *, memory: bool) -> None:
    pragmas = [
        "PRAGMA foreign_keys=ON",
        f"PRAGMA busy_timeout={int(cfg.sqlite_busy_timeout_ms)}",
        f"PRAGMA synchronous={cfg.sqlite_synchronous}",
    ]
    if not memory:
        pragmas.append(f"PRAGMA journal_mode={cfg.sqlite_journal_mode}")

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        try:
            for pragma in pragmas:
                cursor.execute(pragma)
        finally:
            cursor.close()


class Database:
    """Engine + sessionmaker holder; ``init`` on start-up, ``dispose`` on shutdown."""

    def __init__(self) -> None:
        self._cfg: DatabaseConfig | None = None
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized; call init() first.")
        return self._engine

    @property
    def sessionmaker(self) -> async_sessionmaker[AsyncSession]:
        if self._sessionmaker is None:
            raise RuntimeError("Database not initialized; call init() first.")
        return self._sessionmaker

    @property
    def config(self) -> DatabaseConfig:
        if self._cfg is None:
            raise RuntimeError("Database not initialized; call init() first.")
        return self._cfg

    def init(self, cfg: DatabaseConfig) -> None:
        """Create the engine. Calling again with the same config is a no-op."""

        if self._engine is not None and self._cfg == cfg:
            return

        url = make_url(build_async_url(cfg))
        if _backend(url) == "sqlite":
            _ensure_sqlite_parent_dir(url)

        engine = create_async_engine(url, **_engine_options(url, cfg))
        if _backend(url) == "sqlite":
            _install_sqlite_pragmas(engine, cfg, memory=_is_sqlite_memory(url))

        self._cfg = cfg
        self._engine = engine
        self._sessionmaker = async_sessionmaker(
            bind=engine,
            expire_on_commit=False,
            autoflush=False,
        )

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._cfg = None
        self._engine = None
        self._sessionmaker = None

    @asynccontextmanager
    async def session_scope(self) -> AsyncIterator[AsyncSession]:
        """Yield one session; commit when the block exits cleanly, roll back otherwise."""

        session = self.sessionmaker()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await asyncio.shield(session.close())
