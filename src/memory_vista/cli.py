"""Operator CLI for the Memory Vista access service."""

from __future__ import annotations

import asyncio
import json
from typing import Annotated

import typer

from memory_vista.core.access.errors import AccessError, NotFoundError
from memory_vista.core.access.roles import RoleManager
from memory_vista.settings import Settings, get_settings
from memory_vista.store.factory import build_store

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Memory Vista access service CLI (start/migrate/create-university/grant-admin/settings).",
)

_SECRET_FIELDS = {"jwt_secret"}


def _require_sql_backend(settings: Settings) -> None:
    if settings.store_backend != "sql":
        typer.echo(
            "error: this command writes to the database; set MV_STORE_BACKEND=sql.",
            err=True,
        )
        raise typer.Exit(code=1)


@app.command(help="Run the API with uvicorn.")
def start(
    host: Annotated[str | None, typer.Option("--host", help="Bind address.")] = None,
    port: Annotated[int | None, typer.Option("--port", help="Bind port.")] = None,
    reload: Annotated[bool, typer.Option("--reload/--no-reload", help="Auto-reload.")] = False,
) -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "memory_vista.main:create_app",
        factory=True,
        host=host or settings.server_host,
        port=port or settings.server_port,
        reload=reload,
        log_config=None,
    )


@app.command(help="Apply Alembic migrations.")
def migrate(
    revision: Annotated[str, typer.Argument(help="Target revision.")] = "head",
) -> None:
    from memory_vista.db.migrations import run_migrations

    settings = get_settings()
    _require_sql_backend(settings)
    run_migrations(settings, revision=revision)
    typer.echo(f"Database upgraded to {revision}.")


@app.command(name="create-university", help="Create a university with its first admin.")
def create_university(
    name: Annotated[str, typer.Argument(help="University display name.")],
    admin: Annotated[str, typer.Option("--admin", help="User id of the first admin.")],
) -> None:
    settings = get_settings()
    _require_sql_backend(settings)

    async def _run() -> str:
        store = build_store(settings)
        try:
            university = await RoleManager(store).create_university(name, admin_id=admin)
        finally:
            await store.close()
        return university.id

    try:
        university_id = asyncio.run(_run())
    except AccessError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(university_id)


@app.command(name="grant-admin", help="Grant university admin to a user.")
def grant_admin(
    university_id: Annotated[str, typer.Argument(help="University id.")],
    user_id: Annotated[str, typer.Argument(help="User id to promote.")],
) -> None:
    settings = get_settings()
    _require_sql_backend(settings)

    async def _run() -> bool:
        store = build_store(settings)
        try:
            return await RoleManager(store).grant_university_admin(
                "system", university_id, user_id, operator=True
            )
        finally:
            await store.close()

    try:
        granted = asyncio.run(_run())
    except NotFoundError as exc:
        typer.echo(f"error: university {university_id} not found.", err=True)
        raise typer.Exit(code=1) from exc
    except AccessError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    if granted:
        typer.echo(f"{user_id} is now an admin of {university_id}.")
    else:
        typer.echo(f"{user_id} was already an admin of {university_id}.")


@app.command(name="settings", help="Print effective settings (secrets masked).")
def show_settings() -> None:
    settings = get_settings()
    data = settings.model_dump(mode="json")
    for key in _SECRET_FIELDS:
        if data.get(key):
            data[key] = "********"
    typer.echo(json.dumps(data, indent=2, sort_keys=True))


def main() -> None:
    app()


__all__ = ["app", "main"]
