"""API routes for the health module."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from memory_vista.api.deps import SettingsDep, StoreDep

from .schemas import HealthCheckResponse
from .service import HealthService

router = APIRouter(tags=["health"])


def get_health_service(settings: SettingsDep, store: StoreDep) -> HealthService:
    return HealthService(settings=settings, store=store)


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    status_code=status.HTTP_200_OK,
    summary="Service health status",
    response_model_exclude_none=True,
)
async def read_health(
    service: Annotated[HealthService, Depends(get_health_service)],
) -> HealthCheckResponse:
    """Return the current health of the API and its document store."""
    return await service.status()


__all__ = ["router"]
