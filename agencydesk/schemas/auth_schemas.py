from pydantic import BaseModel, Field
from agencydesk.schemas.role_schemas import RoleResponse


class PrincipalResponse(BaseModel):
    """Resolved identity of the caller"""

    type: str
    id: int
    tenant_id: int | None
    user_id: int | None = None
    role_id: int | None = None
    status: str | None = None


class OwnerRegister(BaseModel):
    """Schema for registering a new owner (tenant root)"""

    email: str = Field(..., min_length=3, max_length=255)
    name: str | None = Field(None, max_length=255)


class OwnerRegisterResponse(BaseModel):
    """Created owner and the roles seeded for it"""

    id: int
    email: str
    name: str | None
    roles: list[RoleResponse]
