import logging

from sqlalchemy.orm import Session

from agencydesk.core.access import AccessResolver, IntendedOwner, ResourceRef
from agencydesk.core.exceptions import ValidationException
from agencydesk.core.principal import Principal
from agencydesk.core.scope import ScopeFilterBuilder
from agencydesk.models.base import utcnow
from agencydesk.models.entity_type import EntityType
from agencydesk.models.milestone import Milestone, MilestoneStatus, MilestoneUpload
from agencydesk.models.project import project_deliverables
from agencydesk.schemas.milestone_schemas import (
    MilestoneCreate,
    MilestoneUpdate,
    MilestoneUploadCreate,
)

logger = logging.getLogger(__name__)

# Linking a milestone to a project counts as editing either side
ATTACH_ACTIONS = ("update_milestone", "create_milestone")


class MilestoneService:
    """
    Service layer for milestones.

    Milestones carry no owner column. They belong to a tenant through an
    attached invoice, the projects listing them as deliverables, or the
    owners who uploaded their files.
    """

    def __init__(self, db: Session):
        self.db = db
        self.access = AccessResolver(db)
        self.scope = ScopeFilterBuilder(db, self.access)
        self.entities = self.access.entities

    def list_milestones(
        self,
        principal: Principal,
        invoice_id: int | None = None,
        status: MilestoneStatus | None = None,
        uploaded_by: int | None = None,
    ) -> list[Milestone]:
        """
        List milestones in the principal's tenant.

        Raises:
            AccessDeniedException: If ``invoice_id`` or ``uploaded_by`` is
                outside the principal's scope
        """
        predicate = self.scope.build_filter(
            principal,
            EntityType.MILESTONE,
            {"invoice_id": invoice_id, "status": status, "uploads.uploaded_by": uploaded_by},
        )
        return self.entities.find(EntityType.MILESTONE, predicate)

    def get_milestone(self, milestone_id: int, principal: Principal) -> Milestone:
        """Get milestone by ID"""
        return self.access.fetch(principal, "view_milestone", EntityType.MILESTONE, milestone_id)

    def create_milestone(self, data: MilestoneCreate, principal: Principal) -> Milestone:
        """
        Create a milestone attached to an invoice and/or a project.

        Non-admins must attach it somewhere in their scope, otherwise the
        new milestone would belong to no tenant.

        Raises:
            ValidationException: If a non-admin gives neither invoice nor project
            NotFoundException: If the invoice or project doesn't exist
            AccessDeniedException: If either is outside the caller's scope
        """
        if not principal.is_admin and data.invoice_id is None and data.project_id is None:
            raise ValidationException("Milestone must be attached to an invoice or a project")

        invoice = None
        if data.invoice_id is not None:
            invoice = self.access.fetch(principal, "create_milestone", EntityType.INVOICE, data.invoice_id)
        project = None
        if data.project_id is not None:
            project = self.access.fetch(principal, "create_milestone", EntityType.PROJECT, data.project_id)

        milestone = Milestone(
            name=data.name,
            description=data.description,
            due_date=data.due_date,
            amount=data.amount,
            status=data.status,
        )
        if invoice is not None:
            milestone.invoice_id = invoice.id
            milestone.invoice_attached_on = utcnow()
        milestone.uploads = [self._upload(principal, "create_milestone", item) for item in data.uploads]
        if project is not None:
            project.deliverables.append(milestone)

        milestone = self.entities.save(milestone)
        logger.info("Created milestone %s", milestone.id)
        return milestone

    def update_milestone(
        self, milestone_id: int, data: MilestoneUpdate, principal: Principal
    ) -> Milestone:
        """Update milestone details; new uploads are appended"""
        milestone = self.access.fetch(principal, "update_milestone", EntityType.MILESTONE, milestone_id)
        changes = data.model_dump(exclude_unset=True)

        for field in ("description", "due_date"):
            if field in changes:
                setattr(milestone, field, changes[field])
        for field in ("name", "amount", "status"):
            if changes.get(field) is not None:
                setattr(milestone, field, changes[field])
        for item in data.uploads or []:
            milestone.uploads.append(self._upload(principal, "update_milestone", item))

        return self.entities.save(milestone)

    def delete_milestone(self, milestone_id: int, principal: Principal) -> None:
        """Delete a milestone and its uploads, dropping it from every project"""
        milestone = self.access.fetch(principal, "delete_milestone", EntityType.MILESTONE, milestone_id)
        self.entities.unlink(project_deliverables, "milestone_id", milestone_id)
        self.entities.delete(milestone)
        logger.info("Deleted milestone %s", milestone_id)

    def attach_to_project(self, milestone_id: int, project_id: int, principal: Principal) -> Milestone:
        """
        Add a milestone to a project's deliverables.

        Requires ``update_milestone`` or ``create_milestone`` on both the
        milestone and the project.
        """
        milestone = self.entities.require(EntityType.MILESTONE, milestone_id)
        project = self.entities.require(EntityType.PROJECT, project_id)
        self.access.require(
            self.access.authorize_move(
                principal,
                ATTACH_ACTIONS,
                ResourceRef(EntityType.MILESTONE, milestone_id),
                ResourceRef(EntityType.PROJECT, project_id),
            )
        )
        if milestone not in project.deliverables:
            project.deliverables.append(milestone)
            self.entities.save(project)
            logger.info("Attached milestone %s to project %s", milestone_id, project_id)
        return self.entities.require(EntityType.MILESTONE, milestone_id)

    def detach_from_project(self, milestone_id: int, project_id: int, principal: Principal) -> Milestone:
        """Remove a milestone from a project's deliverables"""
        milestone = self.entities.require(EntityType.MILESTONE, milestone_id)
        project = self.access.fetch(principal, "update_milestone", EntityType.PROJECT, project_id)
        self.access.check(principal, "update_milestone", ResourceRef(EntityType.MILESTONE, milestone_id))
        if milestone not in project.deliverables:
            raise ValidationException(f"Milestone {milestone_id} is not a deliverable of project {project_id}")
        project.deliverables.remove(milestone)
        self.entities.save(project)
        logger.info("Detached milestone %s from project %s", milestone_id, project_id)
        return self.entities.require(EntityType.MILESTONE, milestone_id)

    def attach_invoice(
        self, milestone_id: int, invoice_id: int | None, principal: Principal
    ) -> Milestone:
        """
        Attach a milestone to an invoice, or detach it with None.

        Re-attaching moves the milestone's tenant, so the new invoice is
        authorized as well.
        """
        milestone = self.entities.require(EntityType.MILESTONE, milestone_id)
        if invoice_id is not None:
            self.entities.require(EntityType.INVOICE, invoice_id)
        self.access.require(
            self.access.authorize_move(
                principal,
                "update_milestone",
                ResourceRef(EntityType.MILESTONE, milestone_id),
                ResourceRef(EntityType.INVOICE, invoice_id) if invoice_id is not None else None,
            )
        )
        milestone.invoice_id = invoice_id
        milestone.invoice_attached_on = utcnow() if invoice_id is not None else None
        return self.entities.save(milestone)

    def _upload(self, principal: Principal, action: str, item: MilestoneUploadCreate) -> MilestoneUpload:
        uploaded_by = item.uploaded_by if item.uploaded_by is not None else principal.tenant_id
        if uploaded_by is None:
            raise ValidationException("uploaded_by is required")
        self.access.check(principal, action, IntendedOwner(uploaded_by))
        return MilestoneUpload(
            file_name=item.file_name,
            file_url=item.file_url,
            uploaded_by=uploaded_by,
            uploaded_on=utcnow(),
        )
