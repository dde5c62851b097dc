from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from agencydesk.core.principal import Principal
from agencydesk.database import get_db
from agencydesk.dependencies import get_current_principal
from agencydesk.models.milestone import MilestoneStatus
from agencydesk.schemas.milestone_schemas import (
    AttachInvoiceRequest,
    MilestoneCreate,
    MilestoneListResponse,
    MilestoneResponse,
    MilestoneUpdate,
)
from agencydesk.services.milestone_service import MilestoneService

router = APIRouter()


@router.post("/", response_model=MilestoneResponse, status_code=status.HTTP_201_CREATED)
async def create_milestone(
    data: MilestoneCreate, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Create a milestone attached to an invoice and/or a project"""
    service = MilestoneService(db)
    return service.create_milestone(data, principal)


@router.get("/", response_model=MilestoneListResponse)
async def list_milestones(
    invoice_id: Optional[int] = Query(None, description="Filter by invoice"),
    milestone_status: Optional[MilestoneStatus] = Query(None, alias="status"),
    uploaded_by: Optional[int] = Query(None, description="Filter by uploading owner"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """List milestones in the caller's tenant"""
    service = MilestoneService(db)
    milestones = service.list_milestones(principal, invoice_id, milestone_status, uploaded_by)
    return MilestoneListResponse(milestones=milestones, total=len(milestones))


@router.get("/{milestone_id}", response_model=MilestoneResponse)
async def get_milestone(
    milestone_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Get specific milestone"""
    service = MilestoneService(db)
    return service.get_milestone(milestone_id, principal)


@router.patch("/{milestone_id}", response_model=MilestoneResponse)
async def update_milestone(
    milestone_id: int,
    data: MilestoneUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Update milestone details and append uploads"""
    service = MilestoneService(db)
    return service.update_milestone(milestone_id, data, principal)


@router.post("/{milestone_id}/projects/{project_id}", response_model=MilestoneResponse)
async def attach_to_project(
    milestone_id: int,
    project_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Add the milestone to a project's deliverables"""
    service = MilestoneService(db)
    return service.attach_to_project(milestone_id, project_id, principal)


@router.delete("/{milestone_id}/projects/{project_id}", response_model=MilestoneResponse)
async def detach_from_project(
    milestone_id: int,
    project_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Remove the milestone from a project's deliverables"""
    service = MilestoneService(db)
    return service.detach_from_project(milestone_id, project_id, principal)


@router.put("/{milestone_id}/invoice", response_model=MilestoneResponse)
async def attach_invoice(
    milestone_id: int,
    data: AttachInvoiceRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Attach the milestone to an invoice, or detach it with a null invoice_id"""
    service = MilestoneService(db)
    return service.attach_invoice(milestone_id, data.invoice_id, principal)


@router.delete("/{milestone_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_milestone(
    milestone_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Delete a milestone with its uploads; it is removed from every project"""
    service = MilestoneService(db)
    service.delete_milestone(milestone_id, principal)
    return None
