"""Alembic environment for the access schema.

The URL comes from ``sqlalchemy.url`` when :mod:`memory_vista.db.migrations`
injected one, otherwise from ``MV_DATABASE_URL``. SQLite runs in batch mode so
``ALTER TABLE`` style operations work.
"""

from __future__ import annotations

from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import make_url

import memory_vista.models  # noqa: F401  (registers tables on metadata)
from memory_vista.db.base import metadata
from memory_vista.db.database import DatabaseConfig, build_sync_url
from memory_vista.settings import get_settings

config = context.config

if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)


def _database_url() -> str:
    injected = config.get_main_option("sqlalchemy.url")
    return injected or build_sync_url(DatabaseConfig.from_settings(get_settings()))


def _configure(url: str, **options: Any) -> None:
    context.configure(
        target_metadata=metadata,
        render_as_batch=make_url(url).get_backend_name() == "sqlite",
        compare_type=True,
        **options,
    )
    with context.begin_transaction():
        context.run_migrations()


def _upgrade_offline(url: str) -> None:
    _configure(url, url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})


def _upgrade_online(url: str) -> None:
    engine = create_engine(url, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _configure(url, connection=connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    _upgrade_offline(_database_url())
else:
    _upgrade_online(_database_url())
