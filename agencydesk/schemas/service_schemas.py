from datetime import datetime
from pydantic import BaseModel, Field


class ServiceCreate(BaseModel):
    """Schema for creating a service"""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    # Declared owner; defaults to the caller's tenant
    user_id: int | None = None


class ServiceUpdate(BaseModel):
    """Schema for updating a service (all fields optional)"""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    user_id: int | None = None


class ServiceResponse(BaseModel):
    """Schema for service response"""

    id: int
    name: str
    description: str | None
    user_id: int | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ServiceListResponse(BaseModel):
    """Schema for list of services"""

    services: list[ServiceResponse]
    total: int
