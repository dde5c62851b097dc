from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from agencydesk.core.principal import Principal
from agencydesk.database import get_db
from agencydesk.dependencies import get_current_principal
from agencydesk.schemas.role_schemas import (
    RoleCreate,
    RoleListResponse,
    RoleResponse,
    RoleUpdate,
)
from agencydesk.services.role_service import RoleService

router = APIRouter()


@router.post("/", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    data: RoleCreate, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """
    Create a role.

    - Non-admins create roles for their own owner only
    - Only admins may create system or locked roles
    - The permission matrix must match the catalog
    """
    service = RoleService(db)
    return service.create_role(data, principal)


@router.get("/", response_model=RoleListResponse)
async def list_roles(
    created_by: Optional[int] = Query(None, description="Filter by owner"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """List roles visible to the caller"""
    service = RoleService(db)
    roles = service.list_roles(principal, created_by)
    return RoleListResponse(roles=roles, total=len(roles))


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Get specific role"""
    service = RoleService(db)
    return service.get_role(role_id, principal)


@router.patch("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: int,
    data: RoleUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Update a role; locked and system roles are admin-only"""
    service = RoleService(db)
    return service.update_role(role_id, data, principal)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    role_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Delete a role"""
    service = RoleService(db)
    service.delete_role(role_id, principal)
    return None
