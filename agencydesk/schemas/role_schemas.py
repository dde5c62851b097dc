from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field


class RoleCreate(BaseModel):
    """Schema for creating a role"""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    permissions: dict[str, Any] = Field(default_factory=dict)
    # Declared owner; defaults to the caller's tenant
    created_by: int | None = None
    is_system_role: bool = False
    locked: bool = False


class RoleUpdate(BaseModel):
    """Schema for updating a role"""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    permissions: dict[str, Any] | None = None
    created_by: int | None = None
    is_system_role: bool | None = None
    locked: bool | None = None


class RoleResponse(BaseModel):
    """Schema for role response"""

    model_config = {"from_attributes": True}

    id: int
    name: str
    description: str | None
    permissions: dict[str, Any]
    created_by: int | None
    is_system_role: bool
    locked: bool
    source_template_id: int | None
    created_at: datetime
    updated_at: datetime


class RoleListResponse(BaseModel):
    """Schema for list of roles"""

    roles: list[RoleResponse]
    total: int
