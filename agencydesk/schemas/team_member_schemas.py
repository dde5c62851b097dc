from datetime import datetime
from pydantic import BaseModel, Field
from agencydesk.models.team_member import TeamMemberStatus


class TeamMemberCreate(BaseModel):
    """Schema for adding a team member"""

    name: str = Field(..., min_length=1, max_length=255)
    email: str | None = Field(None, max_length=255)
    # Declared owner; defaults to the caller's tenant
    managed_by: int | None = None
    role_id: int | None = None
    status: TeamMemberStatus = TeamMemberStatus.ACTIVE


class TeamMemberUpdate(BaseModel):
    """Schema for updating a team member"""

    name: str | None = Field(None, min_length=1, max_length=255)
    email: str | None = Field(None, max_length=255)
    managed_by: int | None = None
    role_id: int | None = None
    status: TeamMemberStatus | None = None


class TeamMemberResponse(BaseModel):
    """Schema for team member response"""

    id: int
    name: str
    email: str | None
    managed_by: int
    role_id: int | None
    status: TeamMemberStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TeamMemberListResponse(BaseModel):
    """Schema for list of team members"""

    team_members: list[TeamMemberResponse]
    total: int
