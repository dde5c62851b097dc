import logging

from sqlalchemy.orm import Session

from agencydesk.core.access import AccessResolver, ResourceRef
from agencydesk.core.exceptions import ValidationException
from agencydesk.core.principal import Principal
from agencydesk.core.scope import ScopeFilterBuilder
from agencydesk.models.entity_type import EntityType
from agencydesk.models.lead import Lead, LeadStatus
from agencydesk.schemas.lead_schemas import LeadCreate, LeadUpdate

logger = logging.getLogger(__name__)


class LeadService:
    """
    Service layer for leads.

    A lead belongs to the owner of the team member it is assigned to and to
    the owners of the services it is looking for.
    """

    def __init__(self, db: Session):
        self.db = db
        self.access = AccessResolver(db)
        self.scope = ScopeFilterBuilder(db, self.access)
        self.entities = self.access.entities

    def list_leads(
        self,
        principal: Principal,
        assigned_to: int | None = None,
        service_id: int | None = None,
        status: LeadStatus | None = None,
    ) -> list[Lead]:
        """
        List leads in the principal's tenant.

        Raises:
            AccessDeniedException: If ``assigned_to`` or ``service_id`` is
                outside the principal's scope
        """
        predicate = self.scope.build_filter(
            principal,
            EntityType.LEAD,
            {"assigned_to": assigned_to, "looking_for.id": service_id, "status": status},
        )
        return self.entities.find(EntityType.LEAD, predicate)

    def get_lead(self, lead_id: int, principal: Principal) -> Lead:
        """Get lead by ID"""
        return self.access.fetch(principal, "view_lead", EntityType.LEAD, lead_id)

    def create_lead(self, data: LeadCreate, principal: Principal) -> Lead:
        """
        Create a lead.

        Raises:
            ValidationException: If a non-admin gives neither an assignee nor services
            NotFoundException: If the assignee or a service doesn't exist
            AccessDeniedException: If any of them is outside the caller's scope
        """
        if not principal.is_admin and data.assigned_to is None and not data.service_ids:
            raise ValidationException("Lead must be assigned to a team member or a service")

        if data.assigned_to is not None:
            self.access.fetch(principal, "create_lead", EntityType.TEAM_MEMBER, data.assigned_to)
        services = [
            self.access.fetch(principal, "create_lead", EntityType.SERVICE, service_id)
            for service_id in dict.fromkeys(data.service_ids)
        ]

        lead = Lead(
            name=data.name,
            email=data.email,
            phone=data.phone,
            budget=data.budget,
            status=data.status,
            assigned_to=data.assigned_to,
            looking_for=services,
        )
        lead = self.entities.save(lead)
        logger.info("Created lead %s", lead.id)
        return lead

    def update_lead(self, lead_id: int, data: LeadUpdate, principal: Principal) -> Lead:
        """
        Update a lead. A new assignee or new services must be in scope too.
        """
        lead = self.entities.require(EntityType.LEAD, lead_id)
        changes = data.model_dump(exclude_unset=True)
        current = ResourceRef(EntityType.LEAD, lead_id)

        new_assignee = changes.get("assigned_to")
        reassigning = new_assignee is not None and new_assignee != lead.assigned_to
        if reassigning:
            self.entities.require(EntityType.TEAM_MEMBER, new_assignee)
        self.access.require(
            self.access.authorize_move(
                principal,
                "update_lead",
                current,
                ResourceRef(EntityType.TEAM_MEMBER, new_assignee) if reassigning else None,
            )
        )

        if changes.get("service_ids") is not None:
            service_ids = list(dict.fromkeys(changes["service_ids"]))
            added = [sid for sid in service_ids if sid not in lead.service_ids]
            for service_id in added:
                self.entities.require(EntityType.SERVICE, service_id)
            self.access.require(
                self.access.authorize_all(
                    principal,
                    "update_lead",
                    [ResourceRef(EntityType.SERVICE, service_id) for service_id in added],
                )
            )
            lead.looking_for = [self.entities.require(EntityType.SERVICE, sid) for sid in service_ids]

        if "assigned_to" in changes:
            lead.assigned_to = changes["assigned_to"]
        for field in ("email", "phone", "budget"):
            if field in changes:
                setattr(lead, field, changes[field])
        for field in ("name", "status"):
            if changes.get(field) is not None:
                setattr(lead, field, changes[field])

        return self.entities.save(lead)

    def delete_lead(self, lead_id: int, principal: Principal) -> None:
        lead = self.access.fetch(principal, "delete_lead", EntityType.LEAD, lead_id)
        self.entities.delete(lead)
        logger.info("Deleted lead %s", lead_id)
