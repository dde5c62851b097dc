from datetime import datetime
from pydantic import BaseModel, Field
from agencydesk.models.permission_group import GroupVisibility


class PermissionItem(BaseModel):
    """One action key declared by a group"""

    key: str = Field(..., min_length=1, max_length=100)
    label: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    default: bool = False


class PermissionGroupCreate(BaseModel):
    """Schema for adding a permission group to the catalog"""

    group: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    permissions: list[PermissionItem] = Field(default_factory=list)
    visibility: GroupVisibility = GroupVisibility.PRIVATE


class PermissionGroupResponse(BaseModel):
    """Schema for permission group response"""

    id: int
    group: str
    name: str
    description: str | None
    permissions: list[PermissionItem]
    visibility: GroupVisibility
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SeedDefaultsResponse(BaseModel):
    """Catalog entries and system roles created by a seeding run"""

    permission_groups_created: int
    system_roles_created: int
