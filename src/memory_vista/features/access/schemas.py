"""Pydantic schemas for role and permission lookups."""

from __future__ import annotations

from pydantic import Field

from memory_vista.common.schema import BaseSchema
from memory_vista.core.access.types import ResourceRole


class AccessResponse(BaseSchema):
    """Effective role of the caller on one resource."""

    role: ResourceRole = Field(..., description="Resolved role; `none` when absent.")
    can_edit: bool = Field(..., description="Whether the role may mutate the resource.")
    actions: list[str] = Field(
        default_factory=list,
        description="Actions (`create`, `read`, `update`, `delete`) the role permits.",
    )


__all__ = ["AccessResponse"]
