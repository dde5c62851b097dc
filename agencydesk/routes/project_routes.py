from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from agencydesk.core.principal import Principal
from agencydesk.database import get_db
from agencydesk.dependencies import get_current_principal
from agencydesk.models.project import ProjectStatus
from agencydesk.schemas.project_schemas import (
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
    ProjectUpdate,
)
from agencydesk.services.project_service import ProjectService

router = APIRouter()


@router.post("/", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    data: ProjectCreate, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Create a project for a client in the caller's tenant"""
    service = ProjectService(db)
    return service.create_project(data, principal)


@router.get("/", response_model=ProjectListResponse)
async def list_projects(
    client_id: Optional[int] = Query(None, description="Filter by client"),
    project_status: Optional[ProjectStatus] = Query(None, alias="status"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """List projects in the caller's tenant"""
    service = ProjectService(db)
    projects = service.list_projects(principal, client_id, project_status)
    return ProjectListResponse(projects=projects, total=len(projects))


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Get specific project"""
    service = ProjectService(db)
    return service.get_project(project_id, principal)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: int,
    data: ProjectUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Update a project; moving it to another client requires access to that client"""
    service = ProjectService(db)
    return service.update_project(project_id, data, principal)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Delete a project; its invoices are kept without a project"""
    service = ProjectService(db)
    service.delete_project(project_id, principal)
    return None
