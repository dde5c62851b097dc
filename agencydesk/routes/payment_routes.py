from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from agencydesk.core.principal import Principal
from agencydesk.database import get_db
from agencydesk.dependencies import get_current_principal
from agencydesk.models.payment import PaymentMode
from agencydesk.schemas.payment_schemas import (
    PaymentCreate,
    PaymentListResponse,
    PaymentResponse,
    PaymentUpdate,
)
from agencydesk.services.payment_service import PaymentService

router = APIRouter()


@router.post("/", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def record_payment(
    data: PaymentCreate, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """
    Record a payment against an invoice.

    - Payer is the invoice's client
    - Updates the invoice payment status automatically
    - Transaction ids are unique
    """
    service = PaymentService(db)
    return service.record_payment(data, principal)


@router.get("/", response_model=PaymentListResponse)
def list_payments(
    invoice_id: Optional[int] = Query(None, description="Filter by invoice"),
    paid_by: Optional[int] = Query(None, description="Filter by paying client"),
    mode: Optional[PaymentMode] = Query(None),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """List payments in the caller's tenant"""
    service = PaymentService(db)
    payments = service.list_payments(principal, invoice_id, paid_by, mode)
    return PaymentListResponse(payments=payments, total=len(payments))


@router.get("/{payment_id}", response_model=PaymentResponse)
def get_payment(
    payment_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Get specific payment"""
    service = PaymentService(db)
    return service.get_payment(payment_id, principal)


@router.patch("/{payment_id}", response_model=PaymentResponse)
def update_payment(
    payment_id: int,
    data: PaymentUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Update a payment or move it to another invoice"""
    service = PaymentService(db)
    return service.update_payment(payment_id, data, principal)


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment(
    payment_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Delete a payment and recompute its invoice's payment status"""
    service = PaymentService(db)
    service.delete_payment(payment_id, principal)
    return None
