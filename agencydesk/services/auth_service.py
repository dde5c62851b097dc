import logging

from sqlalchemy.orm import Session

from agencydesk.config import settings
from agencydesk.core.exceptions import ConflictException, ForbiddenException
from agencydesk.core.principal import (
    AdminPrincipal,
    OwnerPrincipal,
    Principal,
    TeamMemberPrincipal,
)
from agencydesk.models.role import Role
from agencydesk.models.team_member import TeamMember, TeamMemberStatus
from agencydesk.models.user import User
from agencydesk.repositories.team_member_repository import TeamMemberRepository
from agencydesk.repositories.user_repository import UserRepository
from agencydesk.schemas.auth_schemas import OwnerRegister
from agencydesk.services.role_seeder import RoleSeeder

logger = logging.getLogger(__name__)


class AuthService:
    """Service layer for caller identity and owner onboarding"""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)
        self.member_repo = TeamMemberRepository(db)

    def describe_principal(self, principal: Principal) -> dict:
        """Serializable view of the resolved principal"""
        if isinstance(principal, AdminPrincipal):
            return {"type": "admin", "id": principal.id, "tenant_id": None}
        if isinstance(principal, OwnerPrincipal):
            return {"type": "owner", "id": principal.id, "tenant_id": principal.tenant_id, "user_id": principal.id}
        if isinstance(principal, TeamMemberPrincipal):
            return {
                "type": "team_member",
                "id": principal.id,
                "tenant_id": principal.tenant_id,
                "user_id": principal.user_id,
                "role_id": principal.role_id,
                "status": principal.status.value,
            }
        raise TypeError(f"Unknown principal {principal!r}")

    def register_owner(self, data: OwnerRegister, principal: Principal) -> tuple[User, list[Role]]:
        """
        Register a new owner and seed its default roles (admin only).

        The owner also gets a team membership in its own tenant holding the
        owner-admin role.

        Raises:
            ForbiddenException: If caller is not an admin
            ConflictException: If the email is already registered
        """
        if not principal.is_admin:
            raise ForbiddenException("Only admins can register owners")

        email = data.email.strip().lower()
        if self.user_repo.get_by_email(email):
            raise ConflictException(f"User {email} already exists")

        owner = self.user_repo.create(User(email=email, name=data.name, is_owner=True))
        logger.info("Registered owner %s (%s)", owner.id, email)

        roles: list[Role] = []
        if settings.SEED_ROLES_ON_REGISTER:
            seeder = RoleSeeder(self.db)
            roles = seeder.ensure_owner_roles(owner.id)
            owner_admin = seeder.role_repo.get_by_name(settings.OWNER_ADMIN_ROLE_NAME, owner.id)
            if self.member_repo.get_by_email_and_owner(email, owner.id) is None:
                self.member_repo.create(
                    TeamMember(
                        name=data.name or email,
                        email=email,
                        managed_by=owner.id,
                        role_id=owner_admin.id if owner_admin else None,
                        status=TeamMemberStatus.ACTIVE,
                    )
                )
        return owner, roles
