from datetime import datetime
from pydantic import BaseModel, Field
from agencydesk.models.lead import LeadStatus


class LeadCreate(BaseModel):
    """Schema for creating a lead"""

    name: str = Field(..., min_length=1, max_length=255)
    email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=32)
    budget: float | None = Field(None, ge=0)
    status: LeadStatus = LeadStatus.NEW_LEAD
    assigned_to: int | None = None
    service_ids: list[int] = Field(default_factory=list)


class LeadUpdate(BaseModel):
    """Schema for updating a lead"""

    name: str | None = Field(None, min_length=1, max_length=255)
    email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=32)
    budget: float | None = Field(None, ge=0)
    status: LeadStatus | None = None
    assigned_to: int | None = None
    service_ids: list[int] | None = None


class LeadResponse(BaseModel):
    """Schema for lead response"""

    id: int
    name: str
    email: str | None
    phone: str | None
    budget: float | None
    status: LeadStatus
    assigned_to: int | None
    service_ids: list[int]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LeadListResponse(BaseModel):
    """Schema for list of leads"""

    leads: list[LeadResponse]
    total: int
