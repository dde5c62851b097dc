from sqlalchemy import case
from sqlalchemy.orm import Session
from agencydesk.models.team_member import TeamMember, TeamMemberStatus


class TeamMemberRepository:
    """Repository for TeamMember model operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, member_id: int) -> TeamMember | None:
        """Get team member by ID"""
        return self.db.query(TeamMember).filter(TeamMember.id == member_id).first()

    def get_for_login(self, email: str) -> TeamMember | None:
        """
        Get the team membership a login account acts through.

        A user may have been invited by several owners; active memberships
        win, then the oldest one.

        Args:
            email: Login account email

        Returns:
            TeamMember or None if the account is not a team member anywhere
        """
        return (
            self.db.query(TeamMember)
            .filter(TeamMember.email == email.strip().lower())
            .order_by(
                case((TeamMember.status == TeamMemberStatus.ACTIVE, 0), else_=1),
                TeamMember.id,
            )
            .first()
        )

    def get_by_email_and_owner(self, email: str, owner_id: int) -> TeamMember | None:
        """Get team member by email within one owner's team"""
        return (
            self.db.query(TeamMember)
            .filter(
                TeamMember.email == email.strip().lower(),
                TeamMember.managed_by == owner_id,
            )
            .first()
        )

    def unassign_role(self, role_id: int) -> int:
        """
        Clear a role from every team member holding it. Not committed; the
        caller commits together with the role deletion.

        Returns:
            Number of team members left without a role
        """
        return (
            self.db.query(TeamMember)
            .filter(TeamMember.role_id == role_id)
            .update({TeamMember.role_id: None})
        )

    def create(self, member: TeamMember) -> TeamMember:
        """Create new team member"""
        self.db.add(member)
        self.db.commit()
        self.db.refresh(member)
        return member

    def update(self, member: TeamMember) -> TeamMember:
        """Update team member"""
        self.db.commit()
        self.db.refresh(member)
        return member

    def delete(self, member: TeamMember) -> None:
        """Delete team member"""
        self.db.delete(member)
        self.db.commit()
