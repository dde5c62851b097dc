from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from agencydesk.core.principal import Principal
from agencydesk.database import get_db
from agencydesk.dependencies import get_current_principal
from agencydesk.schemas.collaborator_schemas import (
    CollaboratorCreate,
    CollaboratorListResponse,
    CollaboratorResponse,
    CollaboratorUpdate,
)
from agencydesk.services.collaborator_service import CollaboratorService

router = APIRouter()


@router.post("/", response_model=CollaboratorResponse, status_code=status.HTTP_201_CREATED)
async def create_collaborator(
    data: CollaboratorCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Add a collaborator managed by an owner"""
    service = CollaboratorService(db)
    return service.create_collaborator(data, principal)


@router.get("/", response_model=CollaboratorListResponse)
async def list_collaborators(
    managed_by: Optional[int] = Query(None, description="Filter by managing owner"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """List collaborators in the caller's tenant"""
    service = CollaboratorService(db)
    collaborators = service.list_collaborators(principal, managed_by)
    return CollaboratorListResponse(collaborators=collaborators, total=len(collaborators))


@router.get("/{collaborator_id}", response_model=CollaboratorResponse)
async def get_collaborator(
    collaborator_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Get specific collaborator"""
    service = CollaboratorService(db)
    return service.get_collaborator(collaborator_id, principal)


@router.put("/{collaborator_id}", response_model=CollaboratorResponse)
async def update_collaborator(
    collaborator_id: int,
    data: CollaboratorUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Update a collaborator; changing ``managed_by`` hands it to another owner"""
    service = CollaboratorService(db)
    return service.update_collaborator(collaborator_id, data, principal)


@router.delete("/{collaborator_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_collaborator(
    collaborator_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Delete a collaborator and its rate cards"""
    service = CollaboratorService(db)
    service.delete_collaborator(collaborator_id, principal)
    return None
