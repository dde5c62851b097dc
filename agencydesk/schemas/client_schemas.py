from datetime import datetime
from pydantic import BaseModel, Field
from agencydesk.models.client import ClientStatus


class ClientCreate(BaseModel):
    """Schema for creating a client"""

    business_name: str = Field(..., min_length=1, max_length=255)
    status: ClientStatus = ClientStatus.ACTIVE
    # Declared owner; defaults to the caller's tenant
    added_by: int | None = None
    # Client's own login account, if any
    user_id: int | None = None


class ClientUpdate(BaseModel):
    """Schema for updating a client"""

    business_name: str | None = Field(None, min_length=1, max_length=255)
    status: ClientStatus | None = None
    added_by: int | None = None


class ClientResponse(BaseModel):
    """Schema for client response"""

    id: int
    business_name: str
    status: ClientStatus
    added_by: int | None
    user_id: int | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ClientListResponse(BaseModel):
    """Schema for list of clients"""

    clients: list[ClientResponse]
    total: int
