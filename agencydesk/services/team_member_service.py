import logging

from sqlalchemy.orm import Session

from agencydesk.core.access import AccessResolver, IntendedOwner, ResourceRef
from agencydesk.core.exceptions import ConflictException, ValidationException
from agencydesk.core.principal import Principal
from agencydesk.core.scope import ScopeFilterBuilder
from agencydesk.models.entity_type import EntityType
from agencydesk.models.lead import Lead
from agencydesk.models.team_member import TeamMember, TeamMemberStatus
from agencydesk.models.user import User
from agencydesk.repositories.team_member_repository import TeamMemberRepository
from agencydesk.repositories.user_repository import UserRepository
from agencydesk.schemas.team_member_schemas import TeamMemberCreate, TeamMemberUpdate

logger = logging.getLogger(__name__)


class TeamMemberService:
    """Service layer for team member management"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TeamMemberRepository(db)
        self.user_repo = UserRepository(db)
        self.access = AccessResolver(db)
        self.scope = ScopeFilterBuilder(db, self.access)

    def list_team_members(
        self,
        principal: Principal,
        managed_by: int | None = None,
        role_id: int | None = None,
        status: TeamMemberStatus | None = None,
    ) -> list[TeamMember]:
        """List team members in the principal's scope"""
        predicate = self.scope.build_filter(
            principal,
            EntityType.TEAM_MEMBER,
            {"managed_by": managed_by, "role_id": role_id, "status": status},
        )
        return self.access.entities.find(EntityType.TEAM_MEMBER, predicate)

    def get_team_member(self, member_id: int, principal: Principal) -> TeamMember:
        """
        Get team member by ID.

        Raises:
            NotFoundException: If team member doesn't exist
            AccessDeniedException: If outside the principal's scope
        """
        self.access.check(principal, "view_team", ResourceRef(EntityType.TEAM_MEMBER, member_id))
        return self.repo.get_by_id(member_id)

    def create_team_member(self, data: TeamMemberCreate, principal: Principal) -> TeamMember:
        """
        Add a team member under the declared owner.

        A login account is provisioned for the member's email when none
        exists, so the member can authenticate.

        Raises:
            AccessDeniedException: OWNER_MISMATCH, or a foreign role
            ValidationException: If the role belongs to another owner
            ConflictException: If the email is already on this owner's team
        """
        owner_id = data.managed_by if data.managed_by is not None else principal.tenant_id
        if owner_id is None:
            raise ValidationException("managed_by is required")
        self.access.check(principal, "create_team", IntendedOwner(owner_id))
        self._validate_role(principal, "create_team", data.role_id, owner_id)

        email = data.email.strip().lower() if data.email else None
        if email:
            if self.repo.get_by_email_and_owner(email, owner_id):
                raise ConflictException(f"Team member {email} already exists for this owner")
            self._ensure_login_account(email, data.name)

        member = TeamMember(
            name=data.name,
            email=email,
            managed_by=owner_id,
            role_id=data.role_id,
            status=data.status,
        )
        member = self.repo.create(member)
        logger.info("Added team member %s to owner %s", member.id, owner_id)
        return member

    def update_team_member(
        self, member_id: int, data: TeamMemberUpdate, principal: Principal
    ) -> TeamMember:
        """
        Update a team member.

        Moving a member to another owner is admin-only; the member's role is
        re-validated against the resulting owner.

        Raises:
            NotFoundException: If team member doesn't exist
            AccessDeniedException: If outside scope or moving across owners
            ValidationException: If the role does not belong to the owner
            ConflictException: If the email is taken within the owner
        """
        current = ResourceRef(EntityType.TEAM_MEMBER, member_id)
        changes = data.model_dump(exclude_unset=True)
        member = self.access.entities.require(EntityType.TEAM_MEMBER, member_id)

        new_owner = changes.get("managed_by")
        moving = new_owner is not None and new_owner != member.managed_by
        self.access.require(
            self.access.authorize_move(
                principal, "update_team", current, IntendedOwner(new_owner) if moving else None
            )
        )

        owner_id = new_owner if moving else member.managed_by
        role_id = changes["role_id"] if "role_id" in changes else member.role_id
        if "role_id" in changes or moving:
            self._validate_role(principal, "update_team", role_id, owner_id)

        if changes.get("email"):
            email = changes["email"].strip().lower()
            existing = self.repo.get_by_email_and_owner(email, owner_id)
            if existing and existing.id != member.id:
                raise ConflictException(f"Team member {email} already exists for this owner")
            member.email = email
        elif moving and member.email:
            existing = self.repo.get_by_email_and_owner(member.email, owner_id)
            if existing:
                raise ConflictException(f"Team member {member.email} already exists for this owner")

        if changes.get("name") is not None:
            member.name = changes["name"]
        if changes.get("status") is not None:
            member.status = changes["status"]
        member.managed_by = owner_id
        member.role_id = role_id

        return self.repo.update(member)

    def delete_team_member(self, member_id: int, principal: Principal) -> None:
        """Remove a team member. Leads assigned to them become unassigned."""
        member = self.access.fetch(principal, "delete_team", EntityType.TEAM_MEMBER, member_id)
        released = self.access.entities.clear_references(Lead.assigned_to, member_id)
        self.repo.delete(member)
        logger.info("Removed team member %s (%d leads unassigned)", member_id, released)

    def _validate_role(
        self, principal: Principal, action: str, role_id: int | None, owner_id: int
    ) -> None:
        if role_id is None:
            return
        self.access.check(principal, action, ResourceRef(EntityType.ROLE, role_id))
        role = self.access.entities.require(EntityType.ROLE, role_id)
        if role.created_by != owner_id:
            raise ValidationException(
                f"Role {role_id} does not belong to owner {owner_id}",
            )

    def _ensure_login_account(self, email: str, name: str) -> None:
        user = self.user_repo.get_by_email(email)
        if user is None:
            self.user_repo.create(User(email=email, name=name, is_owner=False))
            logger.info("Provisioned login account for team member %s", email)
        elif user.is_owner:
            raise ValidationException(f"{email} is registered as an owner")
