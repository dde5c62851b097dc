from datetime import date, datetime
from pydantic import BaseModel, Field
from agencydesk.models.payment import PaymentMode


class PaymentCreate(BaseModel):
    """Schema for recording a payment"""

    invoice_id: int
    payment_date: date
    amount: float = Field(..., gt=0)
    mode: PaymentMode
    transaction_id: str | None = Field(None, max_length=255)
    remarks: str | None = None


class PaymentResponse(BaseModel):
    """Schema for payment response"""

    id: int
    invoice_id: int
    paid_by: int
    received_by: int
    payment_date: date
    amount: float
    mode: PaymentMode
    transaction_id: str | None
    remarks: str | None
    is_verified: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaymentListResponse(BaseModel):
    """Schema for list of payments"""

    payments: list[PaymentResponse]
    total: int


class PaymentUpdate(BaseModel):
    """Schema for updating a payment"""

    invoice_id: int | None = None
    remarks: str | None = None
    is_verified: bool | None = None
