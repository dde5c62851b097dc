import logging

from sqlalchemy.orm import Session

from agencydesk.core.access import AccessResolver, ResourceRef
from agencydesk.core.exceptions import ConflictException
from agencydesk.core.principal import Principal
from agencydesk.core.scope import ScopeFilterBuilder
from agencydesk.models.entity_type import EntityType
from agencydesk.models.invoice import Invoice
from agencydesk.models.project import Project, ProjectStatus
from agencydesk.schemas.project_schemas import ProjectCreate, ProjectUpdate

logger = logging.getLogger(__name__)


class ProjectService:
    """Service layer for client projects"""

    def __init__(self, db: Session):
        self.db = db
        self.access = AccessResolver(db)
        self.scope = ScopeFilterBuilder(db, self.access)
        self.entities = self.access.entities

    def list_projects(
        self,
        principal: Principal,
        client_id: int | None = None,
        status: ProjectStatus | None = None,
    ) -> list[Project]:
        """
        List projects in the principal's tenant.

        Raises:
            AccessDeniedException: If ``client_id`` is a client of another tenant
        """
        predicate = self.scope.build_filter(
            principal, EntityType.PROJECT, {"client_id": client_id, "status": status}
        )
        return self.entities.find(EntityType.PROJECT, predicate)

    def get_project(self, project_id: int, principal: Principal) -> Project:
        """Get project by ID"""
        return self.access.fetch(principal, "view_project", EntityType.PROJECT, project_id)

    def create_project(self, data: ProjectCreate, principal: Principal) -> Project:
        """
        Create a project for a client.

        The client stands in for the owner: it must be in the caller's scope.

        Raises:
            NotFoundException: If the client doesn't exist
            AccessDeniedException: If the client belongs to another tenant
            ConflictException: If the client already has a project with this name
        """
        self.access.fetch(principal, "create_project", EntityType.CLIENT, data.client_id)
        self._ensure_unique_name(data.name, data.client_id)

        project = Project(
            name=data.name,
            client_id=data.client_id,
            status=data.status,
            project_budget=data.project_budget,
            notes=data.notes,
        )
        project = self.entities.save(project)
        logger.info("Created project %s for client %s", project.id, data.client_id)
        return project

    def update_project(self, project_id: int, data: ProjectUpdate, principal: Principal) -> Project:
        """
        Update a project. Reassigning ``client_id`` must be allowed on the
        new client as well.
        """
        project = self.entities.require(EntityType.PROJECT, project_id)
        changes = data.model_dump(exclude_unset=True)

        new_client = changes.get("client_id")
        moving = new_client is not None and new_client != project.client_id
        if moving:
            self.entities.require(EntityType.CLIENT, new_client)
        self.access.require(
            self.access.authorize_move(
                principal,
                "update_project",
                ResourceRef(EntityType.PROJECT, project_id),
                ResourceRef(EntityType.CLIENT, new_client) if moving else None,
            )
        )

        name = changes.get("name") or project.name
        client_id = new_client if moving else project.client_id
        if name != project.name or moving:
            self._ensure_unique_name(name, client_id)

        if moving:
            self._release_invoices(project.id, client_id)
        project.name = name
        project.client_id = client_id
        if changes.get("status") is not None:
            project.status = changes["status"]
        if changes.get("project_budget") is not None:
            project.project_budget = changes["project_budget"]
        if "notes" in changes:
            project.notes = changes["notes"]

        return self.entities.save(project)

    def delete_project(self, project_id: int, principal: Principal) -> None:
        """Delete a project. Its invoices stay with the client, without a project."""
        project = self.access.fetch(principal, "delete_project", EntityType.PROJECT, project_id)
        released = self.entities.clear_references(Invoice.project_id, project_id)
        self.entities.delete(project)
        logger.info("Deleted project %s (%d invoices unlinked)", project_id, released)

    def _release_invoices(self, project_id: int, client_id: int) -> None:
        """Unlink invoices of other clients from a project that changes client"""
        released = (
            self.db.query(Invoice)
            .filter(Invoice.project_id == project_id, Invoice.client_id != client_id)
            .update({Invoice.project_id: None}, synchronize_session="fetch")
        )
        if released:
            logger.info("Unlinked %d invoices from project %s", released, project_id)

    def _ensure_unique_name(self, name: str, client_id: int) -> None:
        existing = (
            self.db.query(Project)
            .filter(Project.name == name, Project.client_id == client_id)
            .first()
        )
        if existing:
            raise ConflictException(f"Project '{name}' already exists for this client")
