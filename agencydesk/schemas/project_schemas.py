from datetime import datetime
from pydantic import BaseModel, Field
from agencydesk.models.project import ProjectStatus


class ProjectCreate(BaseModel):
    """Schema for creating a project"""

    name: str = Field(..., min_length=1, max_length=255)
    client_id: int
    status: ProjectStatus = ProjectStatus.DRAFT
    project_budget: float = Field(default=0.00, ge=0)
    notes: str | None = None


class ProjectUpdate(BaseModel):
    """Schema for updating a project"""

    name: str | None = Field(None, min_length=1, max_length=255)
    client_id: int | None = None
    status: ProjectStatus | None = None
    project_budget: float | None = Field(None, ge=0)
    notes: str | None = None


class ProjectResponse(BaseModel):
    """Schema for project response"""

    id: int
    name: str
    client_id: int
    status: ProjectStatus
    project_budget: float
    notes: str | None
    deliverable_ids: list[int]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectListResponse(BaseModel):
    """Schema for list of projects"""

    projects: list[ProjectResponse]
    total: int
