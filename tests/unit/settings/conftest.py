from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from pydantic import ValidationError

from memory_vista.settings import reload_settings

_ENV_VARS = (
    "MV_APP_NAME",
    "MV_API_DOCS_ENABLED",
    "MV_LOGGING_LEVEL",
    "MV_SERVER_HOST",
    "MV_SERVER_PORT",
    "MV_SERVER_CORS_ORIGINS",
    "MV_STORE_BACKEND",
    "MV_DATABASE_URL",
    "MV_JWT_SECRET",
    "MV_JWT_ALGORITHMS",
    "MV_JWT_AUDIENCE",
    "MV_JWT_ISSUER",
    "MV_MAX_PENDING_REQUESTS",
    "MV_COOLDOWN_PERIOD_DAYS",
    "MV_MAX_REQUESTS_PER_MONTH",
)


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Ensure settings cache and env overrides are cleared between tests."""

    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    try:
        reload_settings()
    except ValidationError:
        pass
    yield
    try:
        monkeypatch.undo()
        reload_settings()
    except ValidationError:
        pass
