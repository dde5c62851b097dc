from sqlalchemy.orm import Session

from agencydesk.core.exceptions import ConflictException, ForbiddenException, ValidationException
from agencydesk.core.principal import Principal
from agencydesk.models.permission_group import PermissionGroup
from agencydesk.repositories.permission_group_repository import PermissionGroupRepository
from agencydesk.schemas.permission_group_schemas import PermissionGroupCreate
from agencydesk.services.role_seeder import RoleSeeder


class PermissionGroupService:
    """Service layer for the permission group catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PermissionGroupRepository(db)

    def list_groups(self, principal: Principal) -> list[PermissionGroup]:
        """Admins see the whole catalog; everyone else only public groups"""
        return self.repo.get_all(public_only=not principal.is_admin)

    def create_group(self, data: PermissionGroupCreate, principal: Principal) -> PermissionGroup:
        """
        Add a group to the catalog (admin only).

        Raises:
            ForbiddenException: If caller is not an admin
            ValidationException: If a key is declared twice
            ConflictException: If the group already exists
        """
        self._require_admin(principal)
        name = data.group.strip().lower()
        keys = [item.key for item in data.permissions]
        if len(keys) != len(set(keys)):
            raise ValidationException(f"Duplicate permission keys in group '{name}'")
        if self.repo.get_by_group(name):
            raise ConflictException(f"Permission group '{name}' already exists")

        entry = PermissionGroup(
            group=name,
            name=data.name,
            description=data.description,
            permissions=[item.model_dump() for item in data.permissions],
            visibility=data.visibility,
        )
        return self.repo.create(entry)

    def seed_defaults(self, principal: Principal) -> tuple[int, int]:
        """
        Install the default catalog and system role templates (admin only).

        Returns:
            Number of groups and of system roles created
        """
        self._require_admin(principal)
        seeder = RoleSeeder(self.db)
        groups = seeder.ensure_catalog()
        roles = seeder.ensure_system_roles()
        return len(groups), len(roles)

    def _require_admin(self, principal: Principal) -> None:
        if not principal.is_admin:
            raise ForbiddenException("Only admins can manage permission groups")
