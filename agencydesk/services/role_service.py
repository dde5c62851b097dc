import logging

from sqlalchemy.orm import Session

from agencydesk.core.access import AccessResolver, IntendedOwner, ResourceRef
from agencydesk.core.decision import DenyReason
from agencydesk.core.exceptions import AccessDeniedException, ConflictException
from agencydesk.core.permissions import validate_permission_matrix
from agencydesk.core.principal import Principal
from agencydesk.core.scope import ScopeFilterBuilder
from agencydesk.models.entity_type import EntityType
from agencydesk.models.role import Role
from agencydesk.repositories.role_repository import RoleRepository
from agencydesk.repositories.team_member_repository import TeamMemberRepository
from agencydesk.schemas.role_schemas import RoleCreate, RoleUpdate

logger = logging.getLogger(__name__)


class RoleService:
    """Service layer for tenant role management"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = RoleRepository(db)
        self.member_repo = TeamMemberRepository(db)
        self.access = AccessResolver(db)
        self.scope = ScopeFilterBuilder(db, self.access)

    def list_roles(self, principal: Principal, created_by: int | None = None) -> list[Role]:
        """
        List roles visible to the principal.

        Raises:
            AccessDeniedException: If ``created_by`` names another tenant, or a
                team member lacks ``view_role``
        """
        predicate = self.scope.build_filter(
            principal, EntityType.ROLE, {"created_by": created_by}
        )
        return self.access.entities.find(EntityType.ROLE, predicate)

    def get_role(self, role_id: int, principal: Principal) -> Role:
        """
        Get role by ID.

        Raises:
            NotFoundException: If role doesn't exist
            AccessDeniedException: If the role belongs to another tenant
        """
        self.access.check(principal, "view_role", ResourceRef(EntityType.ROLE, role_id))
        return self.repo.get_by_id(role_id)

    def create_role(self, data: RoleCreate, principal: Principal) -> Role:
        """
        Create a role for the declared owner.

        Non-admins can only create plain roles for their own tenant. System
        templates (no owner) and locked roles are admin-only.

        Raises:
            AccessDeniedException: SYSTEM_ROLE_NONADMIN, OWNER_MISMATCH or a
                team member grant failure
            ValidationException: If the permission matrix is malformed
            ConflictException: If the owner already has a role with this name
        """
        owner_id = data.created_by if data.created_by is not None else principal.tenant_id

        if not principal.is_admin and (data.is_system_role or data.locked):
            raise AccessDeniedException(
                DenyReason.SYSTEM_ROLE_NONADMIN,
                "Forbidden: only admins can create system or locked roles",
            )
        self.access.check(principal, "create_role", IntendedOwner(owner_id))
        validate_permission_matrix(data.permissions)

        name = data.name.strip()
        self._ensure_unique_name(name, owner_id)

        role = Role(
            name=name,
            description=data.description,
            permissions=data.permissions,
            created_by=owner_id,
            is_system_role=data.is_system_role,
            locked=data.locked,
        )
        role = self.repo.create(role)
        logger.info("Created role %s '%s' for owner %s", role.id, role.name, owner_id)
        return role

    def update_role(self, role_id: int, data: RoleUpdate, principal: Principal) -> Role:
        """
        Update a role.

        Raises:
            NotFoundException: If role doesn't exist
            AccessDeniedException: LOCKED, SYSTEM_ROLE_NONADMIN or
                NOT_OWNER_OR_PERMITTED
            ConflictException: If the new name is taken within the owner
        """
        role = self.access.entities.require(EntityType.ROLE, role_id)
        changes = data.model_dump(exclude_unset=True)
        self.access.require(self.access.can_mutate_role(principal, role, changes, "update_role"))

        if "permissions" in changes:
            validate_permission_matrix(changes["permissions"])

        owner_id = changes.get("created_by", role.created_by)
        name = changes["name"].strip() if changes.get("name") else role.name
        if name != role.name or owner_id != role.created_by:
            self._ensure_unique_name(name, owner_id, exclude_id=role.id)

        role.name = name
        if "description" in changes:
            role.description = changes["description"]
        if changes.get("permissions") is not None:
            role.permissions = changes["permissions"]
        if "created_by" in changes:
            role.created_by = owner_id
        if changes.get("is_system_role") is not None:
            role.is_system_role = changes["is_system_role"]
        if changes.get("locked") is not None:
            role.locked = changes["locked"]

        return self.repo.update(role)

    def delete_role(self, role_id: int, principal: Principal) -> None:
        """
        Delete a role. Team members holding it are left without a role.

        Raises:
            NotFoundException: If role doesn't exist
            AccessDeniedException: LOCKED, SYSTEM_ROLE_NONADMIN or
                NOT_OWNER_OR_PERMITTED
        """
        role = self.access.entities.require(EntityType.ROLE, role_id)
        self.access.require(self.access.can_mutate_role(principal, role, None, "delete_role"))
        holders = self.member_repo.unassign_role(role_id)
        name = role.name
        self.repo.delete(role)
        logger.info("Deleted role %s '%s' (%d team members unassigned)", role_id, name, holders)

    def _ensure_unique_name(self, name: str, owner_id: int | None, exclude_id: int | None = None):
        existing = self.repo.get_by_name(name, owner_id)
        if existing and existing.id != exclude_id:
            raise ConflictException(
                f"Role '{name}' already exists for this owner", reason=DenyReason.DUPLICATE_NAME
            )
