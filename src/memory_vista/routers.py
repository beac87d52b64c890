"""API router composition for the access service."""

from __future__ import annotations

from fastapi import APIRouter

from .features.access.router import router as access_router
from .features.editor_requests.router import router as editor_requests_router
from .features.health.router import router as health_router
from .features.me.router import router as me_router
from .features.profiles.router import router as profiles_router
from .features.universities.router import router as universities_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(access_router)
api_router.include_router(universities_router)
api_router.include_router(profiles_router)
api_router.include_router(editor_requests_router)
api_router.include_router(me_router)

__all__ = ["api_router"]
