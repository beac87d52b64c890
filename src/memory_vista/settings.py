"""Memory Vista settings (conventional Pydantic v2)."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, ClassVar, Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import DotEnvSettingsSource, EnvSettingsSource

# ---- Defaults ---------------------------------------------------------------

MODULE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = MODULE_DIR.parent.parent

DEFAULT_DATABASE_URL = "sqlite:///./data/db/memory-vista.sqlite"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000"]
DEFAULT_ALEMBIC_INI = PROJECT_ROOT / "alembic.ini"

DEFAULT_MAX_PENDING_REQUESTS = 3
DEFAULT_COOLDOWN_PERIOD_DAYS = 7
DEFAULT_MAX_REQUESTS_PER_MONTH = 5

StoreBackend = Literal["sql", "memory"]

_LIST_FIELDS = frozenset({"server_cors_origins", "jwt_algorithms"})


# ---- Helpers ----------------------------------------------------------------

def _list_from_env(value: Any, *, default: list[str]) -> list[str]:
    """Accept a JSON array, a comma-separated string or a sequence.

    Blank entries are dropped and duplicates removed (first occurrence wins);
    an empty value falls back to ``default``.
    """
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                value = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ValueError("Expected a JSON array") from exc
            if not isinstance(value, list):
                raise ValueError("Expected a JSON array")
        else:
            value = text.split(",")
    elif value is None:
        value = []
    elif not isinstance(value, (list, tuple, set)):
        raise TypeError("Expected string or list")

    items = [str(item).strip() for item in value]
    unique = list(dict.fromkeys(item for item in items if item))
    return unique or list(default)


# ---- Settings ---------------------------------------------------------------

class _RawListFields:
    """Hand comma-separated list values to the field validators unparsed.

    pydantic-settings would otherwise demand JSON for ``list[str]`` fields, so
    ``MV_SERVER_CORS_ORIGINS=http://a,http://b`` would fail before validation.
    """

    raw_fields: ClassVar[frozenset[str]] = _LIST_FIELDS

    def prepare_field_value(self, field_name, field, value, value_is_complex):
        if field_name in self.raw_fields and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)


class _EnvSource(_RawListFields, EnvSettingsSource):
    pass


class _DotEnvSource(_RawListFields, DotEnvSettingsSource):
    pass


class Settings(BaseSettings):
    """Service settings loaded from MV_* environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="MV_",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            _EnvSource(
                settings_cls,
                case_sensitive=env_settings.case_sensitive,
                env_prefix=env_settings.env_prefix,
                env_ignore_empty=env_settings.env_ignore_empty,
            ),
            _DotEnvSource(
                settings_cls,
                env_file=dotenv_settings.env_file,
                env_file_encoding=dotenv_settings.env_file_encoding,
                case_sensitive=dotenv_settings.case_sensitive,
                env_prefix=dotenv_settings.env_prefix,
                env_ignore_empty=dotenv_settings.env_ignore_empty,
            ),
            file_secret_settings,
        )

    # Core
    app_name: str = "Memory Vista Access API"
    app_version: str = "0.4.0"
    api_docs_enabled: bool = False
    docs_url: str = "/docs"
    redoc_url: str = "/redoc"
    openapi_url: str = "/openapi.json"
    logging_level: str = "INFO"
    debug: bool = False

    # Server
    server_host: str = "127.0.0.1"
    server_port: int = Field(8000, ge=1, le=65535)
    server_cors_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    # Document store
    store_backend: StoreBackend = "sql"
    database_url: str = DEFAULT_DATABASE_URL
    database_echo: bool = False
    database_sqlite_busy_timeout_ms: int = Field(30_000, ge=0)
    alembic_ini_path: Path = Field(default=DEFAULT_ALEMBIC_INI)

    # Auth provider token verification
    jwt_secret: SecretStr | None = None
    jwt_algorithms: list[str] = Field(default_factory=lambda: ["HS256"])
    jwt_audience: str | None = None
    jwt_issuer: str | None = None

    # Editor request limits
    max_pending_requests: int = Field(DEFAULT_MAX_PENDING_REQUESTS, ge=1)
    cooldown_period_days: int = Field(DEFAULT_COOLDOWN_PERIOD_DAYS, ge=0)
    max_requests_per_month: int = Field(DEFAULT_MAX_REQUESTS_PER_MONTH, ge=0)

    @field_validator("logging_level", mode="before")
    @classmethod
    def _v_log_level(cls, v: Any) -> str:
        s = ("" if v is None else str(v).strip()).upper()
        return s or "INFO"

    @field_validator("server_cors_origins", mode="before")
    @classmethod
    def _v_cors(cls, v: Any) -> list[str]:
        return _list_from_env(v, default=DEFAULT_CORS_ORIGINS)

    @field_validator("jwt_algorithms", mode="before")
    @classmethod
    def _v_algorithms(cls, v: Any) -> list[str]:
        return [item.upper() for item in _list_from_env(v, default=["HS256"])]

    @field_validator("store_backend", mode="before")
    @classmethod
    def _v_store_backend(cls, v: Any) -> str:
        if v in (None, ""):
            return "sql"
        return str(v).strip().lower()

    @field_validator("jwt_secret", mode="before")
    @classmethod
    def _v_jwt_secret(cls, v: Any) -> SecretStr | None:
        if v is None:
            return None
        raw = v.get_secret_value() if isinstance(v, SecretStr) else str(v or "").strip()
        if raw and len(raw) < 32:
            raise ValueError(
                "MV_JWT_SECRET must be at least 32 characters. Use the signing secret "
                "shared with the auth provider."
            )
        return SecretStr(raw) if raw else None

    @field_validator("jwt_audience", "jwt_issuer", mode="before")
    @classmethod
    def _v_optional_str(cls, v: Any) -> str | None:
        if v in (None, ""):
            return None
        return str(v).strip() or None

    @model_validator(mode="after")
    def _finalize(self) -> Settings:
        if self.store_backend == "sql" and not self.database_url.strip():
            raise ValueError("MV_DATABASE_URL is required when MV_STORE_BACKEND=sql")
        return self

    @property
    def jwt_secret_value(self) -> str | None:
        if self.jwt_secret is None:
            return None
        return self.jwt_secret.get_secret_value()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings (constructed from the environment once)."""

    return Settings()


def reload_settings() -> Settings:
    """Clear the settings cache and rebuild from the current environment."""

    get_settings.cache_clear()
    return get_settings()


__all__ = [
    "DEFAULT_COOLDOWN_PERIOD_DAYS",
    "DEFAULT_MAX_PENDING_REQUESTS",
    "DEFAULT_MAX_REQUESTS_PER_MONTH",
    "PROJECT_ROOT",
    "Settings",
    "StoreBackend",
    "get_settings",
    "reload_settings",
]
