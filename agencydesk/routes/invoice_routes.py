from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from agencydesk.core.principal import Principal
from agencydesk.database import get_db
from agencydesk.dependencies import get_current_principal
from agencydesk.models.invoice import PaymentStatus
from agencydesk.schemas.invoice_schemas import (
    InvoiceCreate,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceUpdate,
)
from agencydesk.services.invoice_service import InvoiceService

router = APIRouter()


@router.post("/", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_invoice(
    data: InvoiceCreate, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """
    Create an invoice.

    - The client (and project, if given) must be in the caller's tenant
    - Total is computed from subtotal and tax percentage
    - Invoice numbers are unique
    """
    service = InvoiceService(db)
    return service.create_invoice(data, principal)


@router.get("/", response_model=InvoiceListResponse)
def list_invoices(
    client_id: Optional[int] = Query(None, description="Filter by client"),
    created_by: Optional[int] = Query(None, description="Filter by owner"),
    project_id: Optional[int] = Query(None, description="Filter by project"),
    payment_status: Optional[PaymentStatus] = Query(None),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """List invoices in the caller's tenant"""
    service = InvoiceService(db)
    invoices = service.list_invoices(principal, client_id, created_by, project_id, payment_status)
    return InvoiceListResponse(invoices=invoices, total=len(invoices))


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Get specific invoice"""
    service = InvoiceService(db)
    return service.get_invoice(invoice_id, principal)


@router.patch("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(
    invoice_id: int,
    data: InvoiceUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """
    Update an invoice.

    - Cancelled invoices cannot be edited
    - Changing owner, client or project is authorized against the new target
    """
    service = InvoiceService(db)
    return service.update_invoice(invoice_id, data, principal)


@router.post("/{invoice_id}/cancel", response_model=InvoiceResponse)
def cancel_invoice(
    invoice_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Mark an invoice as cancelled"""
    service = InvoiceService(db)
    return service.cancel_invoice(invoice_id, principal)
