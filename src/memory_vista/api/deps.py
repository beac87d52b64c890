"""Per-request dependencies shared by the API routers.

The document store, clock and settings live on ``app.state`` (set up by the
application lifespan); routers only reach them through these factories.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from memory_vista.common.ids import Clock
from memory_vista.common.logging import log_context
from memory_vista.core.access.resolver import RoleResolver
from memory_vista.core.access.roles import RoleManager
from memory_vista.core.access.types import RequestLimits, UserIdentity
from memory_vista.core.access.workflow import EditorRequestWorkflow
from memory_vista.core.auth import AuthenticationError, verify_bearer_token
from memory_vista.settings import Settings
from memory_vista.store.base import DocumentStore

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("Document store not initialized; is the lifespan running?")
    return store


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
StoreDep = Annotated[DocumentStore, Depends(get_store)]
ClockDep = Annotated[Clock, Depends(get_clock)]


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    settings: SettingsDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> UserIdentity:
    """Resolve the caller from the ``Authorization: Bearer`` header."""

    if credentials is None or not credentials.credentials:
        raise _unauthenticated("Authentication required")
    try:
        return verify_bearer_token(credentials.credentials, settings)
    except AuthenticationError as exc:
        logger.info("auth.token.rejected", extra=log_context(reason=str(exc)))
        raise _unauthenticated("Invalid or expired token") from exc


CurrentUser = Annotated[UserIdentity, Depends(get_current_user)]


def get_role_resolver(store: StoreDep) -> RoleResolver:
    return RoleResolver(store)


def get_role_manager(store: StoreDep, clock: ClockDep) -> RoleManager:
    return RoleManager(store, clock=clock)


def get_workflow(
    store: StoreDep, settings: SettingsDep, clock: ClockDep
) -> EditorRequestWorkflow:
    return EditorRequestWorkflow(
        store,
        limits=RequestLimits.from_settings(settings),
        clock=clock,
    )


RoleResolverDep = Annotated[RoleResolver, Depends(get_role_resolver)]
RoleManagerDep = Annotated[RoleManager, Depends(get_role_manager)]
WorkflowDep = Annotated[EditorRequestWorkflow, Depends(get_workflow)]


__all__ = [
    "ClockDep",
    "CurrentUser",
    "RoleManagerDep",
    "RoleResolverDep",
    "SettingsDep",
    "StoreDep",
    "WorkflowDep",
    "get_app_settings",
    "get_clock",
    "get_current_user",
    "get_role_manager",
    "get_role_resolver",
    "get_store",
    "get_workflow",
]
