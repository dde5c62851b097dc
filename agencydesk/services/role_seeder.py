import logging

from sqlalchemy.orm import Session

from agencydesk.config import settings
from agencydesk.core.catalog import DEFAULT_PERMISSION_GROUPS, SYSTEM_ROLE_TEMPLATES
from agencydesk.core.exceptions import ConfigurationError
from agencydesk.core.permissions import full_access_matrix, validate_against_catalog
from agencydesk.models.permission_group import PermissionGroup
from agencydesk.models.role import Role
from agencydesk.repositories.permission_group_repository import PermissionGroupRepository
from agencydesk.repositories.role_repository import RoleRepository

logger = logging.getLogger(__name__)


class RoleSeeder:
    """
    Seeds the permission catalog, the system role templates and the
    default roles of each new owner. Every step is idempotent: existing
    entries are kept, never regenerated.
    """

    def __init__(self, db: Session):
        self.db = db
        self.role_repo = RoleRepository(db)
        self.group_repo = PermissionGroupRepository(db)

    def ensure_catalog(self) -> list[PermissionGroup]:
        """Create missing default permission groups and enforce their visibility"""
        created = []
        for definition in DEFAULT_PERMISSION_GROUPS:
            existing = self.group_repo.get_by_group(definition["group"])
            if existing is None:
                created.append(self.group_repo.create(PermissionGroup(**definition)))
                logger.info("Created permission group %s", definition["group"])
            elif existing.visibility != definition["visibility"]:
                existing.visibility = definition["visibility"]
                self.db.commit()
                logger.info(
                    "Updated permission group %s visibility to %s",
                    definition["group"],
                    definition["visibility"].value,
                )
        return created

    def ensure_system_roles(self) -> list[Role]:
        """
        Create missing system role templates.

        Raises:
            ConfigurationError: If a template references an unknown group or key
        """
        catalog = self.group_repo.catalog()
        created = []
        for template in SYSTEM_ROLE_TEMPLATES:
            self._validate(template["name"], template["permissions"], catalog)
            if self.role_repo.get_by_name(template["name"], None):
                continue
            role = Role(
                name=template["name"],
                description=template["description"],
                permissions=template["permissions"],
                created_by=None,
                is_system_role=True,
                locked=False,
            )
            created.append(self.role_repo.create(role))
            logger.info("Created system role %s", template["name"])
        return created

    def ensure_owner_roles(self, owner_id: int) -> list[Role]:
        """
        Ensure an owner's default roles exist.

        1. A locked role named ``OWNER_ADMIN_ROLE_NAME`` granting every key of
           every public permission group.
        2. An editable clone of every system template, linked back to it
           through ``source_template_id``. Names the owner already uses are
           skipped.

        Returns:
            Roles created by this call

        Raises:
            ConfigurationError: If a template references an unknown group or key
        """
        admin_name = settings.OWNER_ADMIN_ROLE_NAME
        catalog = self.group_repo.catalog()
        created = []

        if self.role_repo.get_by_name(admin_name, owner_id) is None:
            public = self.group_repo.catalog(public_only=True)
            if not public:
                logger.warning("No public permission groups; %s role for owner %s grants nothing", admin_name, owner_id)
            role = Role(
                name=admin_name,
                description="Full-access owner role (locked) with all permissions",
                permissions=full_access_matrix(public),
                created_by=owner_id,
                is_system_role=False,
                locked=True,
            )
            created.append(self.role_repo.create(role))

        for template in self.role_repo.get_system_roles():
            name = (template.name or "").strip()
            if not name or name == admin_name:
                continue
            self._validate(name, template.permissions, catalog)
            if self.role_repo.get_by_name(name, owner_id):
                continue
            clone = Role(
                name=name,
                description=template.description,
                permissions=dict(template.permissions or {}),
                created_by=owner_id,
                is_system_role=False,
                locked=False,
                source_template_id=template.id,
            )
            created.append(self.role_repo.create(clone))

        logger.info("Seeded %d roles for owner %s", len(created), owner_id)
        return created

    def _validate(self, name: str, matrix: dict, catalog: dict[str, set[str]]) -> None:
        try:
            validate_against_catalog(matrix or {}, catalog)
        except ConfigurationError:
            logger.error("Role template '%s' does not match the permission catalog", name)
            raise
