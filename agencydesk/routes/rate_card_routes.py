from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from agencydesk.core.principal import Principal
from agencydesk.database import get_db
from agencydesk.dependencies import get_current_principal
from agencydesk.models.rate_card import RateCardOwnerType
from agencydesk.schemas.rate_card_schemas import (
    RateCardCreate,
    RateCardListResponse,
    RateCardResponse,
    RateCardUpdate,
)
from agencydesk.services.rate_card_service import RateCardService

router = APIRouter()


@router.post("/", response_model=RateCardResponse, status_code=status.HTTP_201_CREATED)
async def create_rate_card(
    data: RateCardCreate, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """
    Create a rate card.

    - **owner_type**: agency, agency_internal or collaborator
    - **owner_ref**: owner user id, or collaborator id for collaborator cards
    """
    service = RateCardService(db)
    return service.create_rate_card(data, principal)


@router.get("/", response_model=RateCardListResponse)
async def list_rate_cards(
    service_id: Optional[int] = Query(None, description="Filter by service"),
    owner_type: Optional[RateCardOwnerType] = Query(None, description="Filter by owner type"),
    owner_ref: Optional[int] = Query(None, description="Filter by owner or collaborator"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """List rate cards in the caller's tenant"""
    service = RateCardService(db)
    rate_cards = service.list_rate_cards(principal, service_id, owner_type, owner_ref)
    return RateCardListResponse(rate_cards=rate_cards, total=len(rate_cards))


@router.get("/{rate_card_id}", response_model=RateCardResponse)
async def get_rate_card(
    rate_card_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Get specific rate card"""
    service = RateCardService(db)
    return service.get_rate_card(rate_card_id, principal)


@router.put("/{rate_card_id}", response_model=RateCardResponse)
async def update_rate_card(
    rate_card_id: int,
    data: RateCardUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Update a rate card"""
    service = RateCardService(db)
    return service.update_rate_card(rate_card_id, data, principal)


@router.delete("/{rate_card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rate_card(
    rate_card_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Delete a rate card"""
    service = RateCardService(db)
    service.delete_rate_card(rate_card_id, principal)
    return None
