from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from agencydesk.core.principal import Principal
from agencydesk.database import get_db
from agencydesk.dependencies import get_current_principal
from agencydesk.schemas.auth_schemas import (
    OwnerRegister,
    OwnerRegisterResponse,
    PrincipalResponse,
)
from agencydesk.services.auth_service import AuthService

router = APIRouter()


@router.get("/me", response_model=PrincipalResponse)
async def me(principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)):
    """Describe the principal resolved from the bearer token"""
    service = AuthService(db)
    return service.describe_principal(principal)


@router.post("/register-owner", response_model=OwnerRegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_owner(
    data: OwnerRegister,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """
    Register a new owner account (admin only).

    - Seeds the locked owner-admin role and clones of the system templates
    - Adds the owner as an active member of its own team
    """
    service = AuthService(db)
    owner, roles = service.register_owner(data, principal)
    return OwnerRegisterResponse(id=owner.id, email=owner.email, name=owner.name, roles=roles)
