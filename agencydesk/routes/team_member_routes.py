from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from agencydesk.core.principal import Principal
from agencydesk.database import get_db
from agencydesk.dependencies import get_current_principal
from agencydesk.models.team_member import TeamMemberStatus
from agencydesk.schemas.team_member_schemas import (
    TeamMemberCreate,
    TeamMemberListResponse,
    TeamMemberResponse,
    TeamMemberUpdate,
)
from agencydesk.services.team_member_service import TeamMemberService

router = APIRouter()


@router.post("/", response_model=TeamMemberResponse, status_code=status.HTTP_201_CREATED)
async def create_team_member(
    data: TeamMemberCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """
    Add a team member under an owner.

    - The role must belong to the same owner
    - A login account is provisioned for the email if missing
    """
    service = TeamMemberService(db)
    return service.create_team_member(data, principal)


@router.get("/", response_model=TeamMemberListResponse)
async def list_team_members(
    managed_by: Optional[int] = Query(None, description="Filter by owner"),
    role_id: Optional[int] = Query(None, description="Filter by role"),
    member_status: Optional[TeamMemberStatus] = Query(None, alias="status"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """List team members in the caller's tenant"""
    service = TeamMemberService(db)
    members = service.list_team_members(principal, managed_by, role_id, member_status)
    return TeamMemberListResponse(team_members=members, total=len(members))


@router.get("/{member_id}", response_model=TeamMemberResponse)
async def get_team_member(
    member_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Get specific team member"""
    service = TeamMemberService(db)
    return service.get_team_member(member_id, principal)


@router.patch("/{member_id}", response_model=TeamMemberResponse)
async def update_team_member(
    member_id: int,
    data: TeamMemberUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Update team member details, role or status"""
    service = TeamMemberService(db)
    return service.update_team_member(member_id, data, principal)


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team_member(
    member_id: int, principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)
):
    """Remove a team member"""
    service = TeamMemberService(db)
    service.delete_team_member(member_id, principal)
    return None
