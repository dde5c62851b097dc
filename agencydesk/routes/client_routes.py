from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from agencydesk.core.principal import Principal
from agencydesk.database import get_db
from agencydesk.dependencies import get_current_principal
from agencydesk.models.client import ClientStatus
from agencydesk.schemas.client_schemas import (
    ClientCreate,
    ClientListResponse,
    ClientResponse,
    ClientUpdate,
)
from agencydesk.services.client_service import ClientService

router = APIRouter()


@router.post("/", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    data: ClientCreate, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Create a client record for an owner"""
    service = ClientService(db)
    return service.create_client(data, principal)


@router.get("/", response_model=ClientListResponse)
async def list_clients(
    added_by: Optional[int] = Query(None, description="Filter by owner"),
    client_status: Optional[ClientStatus] = Query(None, alias="status"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """List clients in the caller's tenant"""
    service = ClientService(db)
    clients = service.list_clients(principal, added_by, client_status)
    return ClientListResponse(clients=clients, total=len(clients))


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Get a client; a client's own login account may read its record"""
    service = ClientService(db)
    return service.get_client(client_id, principal)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Update client details"""
    service = ClientService(db)
    return service.update_client(client_id, data, principal)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
    client_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """
    Delete a client.

    - Clients with projects or invoices cannot be deleted (409)
    """
    service = ClientService(db)
    service.delete_client(client_id, principal)
    return None
