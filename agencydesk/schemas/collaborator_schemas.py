from datetime import datetime
from pydantic import BaseModel, Field


class CollaboratorCreate(BaseModel):
    """Schema for creating a collaborator"""

    name: str = Field(..., min_length=1, max_length=255)
    # Collaborator's own login account, if any
    user_id: int | None = None
    # Managing owner; defaults to the caller's tenant
    managed_by: int | None = None


class CollaboratorUpdate(BaseModel):
    """Schema for updating a collaborator"""

    name: str | None = Field(None, min_length=1, max_length=255)
    user_id: int | None = None
    managed_by: int | None = None


class CollaboratorResponse(BaseModel):
    """Schema for collaborator response"""

    id: int
    name: str
    user_id: int | None
    managed_by: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CollaboratorListResponse(BaseModel):
    """Schema for list of collaborators"""

    collaborators: list[CollaboratorResponse]
    total: int
