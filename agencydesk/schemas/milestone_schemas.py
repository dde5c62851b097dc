from datetime import date, datetime
from pydantic import BaseModel, Field
from agencydesk.models.milestone import MilestoneStatus


class MilestoneUploadCreate(BaseModel):
    """File attached to a milestone"""

    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=1024)
    # Declared owner; defaults to the caller's tenant, required for admins
    uploaded_by: int | None = None


class MilestoneCreate(BaseModel):
    """
    Schema for creating a milestone.

    A milestone has no owner column; it must be created attached to an
    invoice or a project so that it lands in a tenant.
    """

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    due_date: date | None = None
    amount: float = Field(default=0.00, ge=0)
    status: MilestoneStatus = MilestoneStatus.YET_TO_START
    invoice_id: int | None = None
    project_id: int | None = None
    uploads: list[MilestoneUploadCreate] = Field(default_factory=list)


class MilestoneUpdate(BaseModel):
    """Schema for updating a milestone"""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    due_date: date | None = None
    amount: float | None = Field(None, ge=0)
    status: MilestoneStatus | None = None
    uploads: list[MilestoneUploadCreate] | None = None


class AttachInvoiceRequest(BaseModel):
    """Attach a milestone to an invoice (or detach with null)"""

    invoice_id: int | None


class MilestoneUploadResponse(BaseModel):
    id: int
    file_name: str
    file_url: str
    uploaded_by: int
    uploaded_on: datetime

    model_config = {"from_attributes": True}


class MilestoneResponse(BaseModel):
    """Schema for milestone response"""

    id: int
    name: str
    description: str | None
    due_date: date | None
    amount: float
    status: MilestoneStatus
    invoice_id: int | None
    invoice_attached_on: datetime | None
    uploads: list[MilestoneUploadResponse]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MilestoneListResponse(BaseModel):
    """Schema for list of milestones"""

    milestones: list[MilestoneResponse]
    total: int
