from datetime import datetime
from pydantic import BaseModel, Field
from agencydesk.models.rate_card import RateCardOwnerType


class RateCardCreate(BaseModel):
    """
    Schema for creating a rate card.

    ``owner_ref`` is an owner's user id for agency rate cards (defaulting
    to the caller's tenant) and a collaborator id for collaborator rate
    cards.
    """

    title: str = Field(..., min_length=1, max_length=255)
    service_id: int
    owner_type: RateCardOwnerType = RateCardOwnerType.AGENCY
    owner_ref: int | None = None
    price: float = Field(0, ge=0)


class RateCardUpdate(BaseModel):
    """Schema for updating a rate card; owner_type and owner_ref change together"""

    title: str | None = Field(None, min_length=1, max_length=255)
    service_id: int | None = None
    owner_type: RateCardOwnerType | None = None
    owner_ref: int | None = None
    price: float | None = Field(None, ge=0)


class RateCardResponse(BaseModel):
    """Schema for rate card response"""

    id: int
    title: str
    service_id: int
    owner_type: RateCardOwnerType
    owner_ref: int
    price: float
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RateCardListResponse(BaseModel):
    """Schema for list of rate cards"""

    rate_cards: list[RateCardResponse]
    total: int
