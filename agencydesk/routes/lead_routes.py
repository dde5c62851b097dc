from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from agencydesk.core.principal import Principal
from agencydesk.database import get_db
from agencydesk.dependencies import get_current_principal
from agencydesk.models.lead import LeadStatus
from agencydesk.schemas.lead_schemas import (
    LeadCreate,
    LeadListResponse,
    LeadResponse,
    LeadUpdate,
)
from agencydesk.services.lead_service import LeadService

router = APIRouter()


@router.post("/", response_model=LeadResponse, status_code=status.HTTP_201_CREATED)
async def create_lead(
    data: LeadCreate, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Create a lead assigned to a team member and/or looking for services"""
    service = LeadService(db)
    return service.create_lead(data, principal)


@router.get("/", response_model=LeadListResponse)
async def list_leads(
    assigned_to: Optional[int] = Query(None, description="Filter by team member"),
    service_id: Optional[int] = Query(None, description="Filter by requested service"),
    lead_status: Optional[LeadStatus] = Query(None, alias="status"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """List leads in the caller's tenant"""
    service = LeadService(db)
    leads = service.list_leads(principal, assigned_to, service_id, lead_status)
    return LeadListResponse(leads=leads, total=len(leads))


@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead(
    lead_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Get specific lead"""
    service = LeadService(db)
    return service.get_lead(lead_id, principal)


@router.patch("/{lead_id}", response_model=LeadResponse)
async def update_lead(
    lead_id: int,
    data: LeadUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Update a lead; new assignees and services must be in scope"""
    service = LeadService(db)
    return service.update_lead(lead_id, data, principal)


@router.delete("/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lead(
    lead_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Delete a lead"""
    service = LeadService(db)
    service.delete_lead(lead_id, principal)
    return None
