from datetime import date, datetime
from pydantic import BaseModel, Field
from agencydesk.models.invoice import PaymentStatus


class InvoiceCreate(BaseModel):
    """Schema for creating an invoice"""

    invoice_number: str = Field(..., min_length=1, max_length=100)
    client_id: int
    project_id: int | None = None
    issue_date: date
    due_date: date | None = None
    subtotal: float = Field(default=0.00, ge=0)
    tax_percentage: float = Field(default=0.00, ge=0, le=100)
    currency: str = Field(default="INR", min_length=3, max_length=3)
    notes: str | None = None
    # Declared owner; defaults to the caller's tenant
    created_by: int | None = None


class InvoiceUpdate(BaseModel):
    """Schema for updating an invoice"""

    client_id: int | None = None
    project_id: int | None = None
    created_by: int | None = None
    issue_date: date | None = None
    due_date: date | None = None
    subtotal: float | None = Field(None, ge=0)
    tax_percentage: float | None = Field(None, ge=0, le=100)
    notes: str | None = None


class InvoiceResponse(BaseModel):
    """Schema for invoice response"""

    id: int
    invoice_number: str
    client_id: int
    project_id: int | None
    created_by: int
    issue_date: date
    due_date: date | None
    subtotal: float
    tax_percentage: float
    total: float
    currency: str
    payment_status: PaymentStatus
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InvoiceListResponse(BaseModel):
    """Schema for list of invoices"""

    invoices: list[InvoiceResponse]
    total: int
