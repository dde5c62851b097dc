from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from agencydesk.core.principal import Principal
from agencydesk.database import get_db
from agencydesk.dependencies import get_current_principal
from agencydesk.schemas.permission_group_schemas import (
    PermissionGroupCreate,
    PermissionGroupResponse,
    SeedDefaultsResponse,
)
from agencydesk.services.permission_group_service import PermissionGroupService

router = APIRouter()


@router.get("/", response_model=list[PermissionGroupResponse])
async def list_permission_groups(
    principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """List the permission catalog; private groups are visible to admins only"""
    service = PermissionGroupService(db)
    return service.list_groups(principal)


@router.post("/", response_model=PermissionGroupResponse, status_code=status.HTTP_201_CREATED)
async def create_permission_group(
    data: PermissionGroupCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Add a permission group (admin only)"""
    service = PermissionGroupService(db)
    return service.create_group(data, principal)


@router.post("/seed-defaults", response_model=SeedDefaultsResponse)
async def seed_defaults(principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)):
    """Install missing default groups and system role templates (admin only)"""
    service = PermissionGroupService(db)
    groups, roles = service.seed_defaults(principal)
    return SeedDefaultsResponse(permission_groups_created=groups, system_roles_created=roles)
