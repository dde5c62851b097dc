from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from agencydesk.core.principal import Principal
from agencydesk.database import get_db
from agencydesk.dependencies import get_current_principal
from agencydesk.schemas.service_schemas import (
    ServiceCreate,
    ServiceListResponse,
    ServiceResponse,
    ServiceUpdate,
)
from agencydesk.services.service_service import ServiceService

router = APIRouter()


@router.post("/", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_service(
    data: ServiceCreate, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Add a service to an owner's catalog"""
    service = ServiceService(db)
    return service.create_service(data, principal)


@router.get("/", response_model=ServiceListResponse)
async def list_services(
    user_id: Optional[int] = Query(None, description="Filter by owner"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """List services in the caller's tenant"""
    service = ServiceService(db)
    services = service.list_services(principal, user_id)
    return ServiceListResponse(services=services, total=len(services))


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Get specific service"""
    service = ServiceService(db)
    return service.get_service(service_id, principal)


@router.put("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Update a service; changing ``user_id`` moves it to another owner"""
    service = ServiceService(db)
    return service.update_service(service_id, data, principal)


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """
    Delete a service.

    - Its rate cards are deleted
    - Leads looking for it keep their other services
    """
    service = ServiceService(db)
    service.delete_service(service_id, principal)
    return None
