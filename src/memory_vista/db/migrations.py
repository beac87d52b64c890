"""Programmatic Alembic runner used by ``memory-vista migrate``."""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy.engine import make_url

from memory_vista.settings import Settings

from .database import DatabaseConfig, _ensure_sqlite_parent_dir, build_sync_url

__all__ = ["alembic_config", "run_migrations"]


def alembic_config(settings: Settings) -> Config:
    alembic_ini = Path(settings.alembic_ini_path)
    if not alembic_ini.exists():
        raise FileNotFoundError(f"Alembic config not found at {alembic_ini}")

    cfg = Config(str(alembic_ini))
    cfg.set_main_option("script_location", str(alembic_ini.parent / "migrations"))
    sync_url = build_sync_url(DatabaseConfig.from_settings(settings))
    # ConfigParser interpolation treats "%" specially.
    cfg.set_main_option("sqlalchemy.url", sync_url.replace("%", "%%"))
    # Keep the host's logging when it already has handlers installed.
    cfg.attributes["configure_logger"] = not logging.getLogger().handlers
    return cfg


def run_migrations(settings: Settings, *, revision: str = "head") -> None:
    cfg = alembic_config(settings)
    url = make_url(build_sync_url(DatabaseConfig.from_settings(settings)))
    if url.get_backend_name() == "sqlite":
        _ensure_sqlite_parent_dir(url)
    command.upgrade(cfg, revision)
