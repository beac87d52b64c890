"""Pydantic schemas for the health module."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from memory_vista.common.schema import BaseSchema


class HealthComponentStatus(BaseSchema):
    """Represents the health of an individual system component."""

    name: str = Field(..., description="Component identifier.")
    status: Literal["available", "degraded", "unavailable"] = Field(
        ..., description="High-level component status flag."
    )
    detail: str | None = Field(default=None, description="Optional human-readable detail.")


class HealthCheckResponse(BaseSchema):
    status: Literal["ok", "degraded"]
    timestamp: datetime
    components: list[HealthComponentStatus] = Field(default_factory=list)


__all__ = ["HealthCheckResponse", "HealthComponentStatus"]
