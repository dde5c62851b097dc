import logging

from sqlalchemy.orm import Session

from agencydesk.core.access import AccessResolver, IntendedOwner, ResourceRef
from agencydesk.core.principal import Principal
from agencydesk.core.scope import ScopeFilterBuilder
from agencydesk.models.entity_type import EntityType
from agencydesk.models.lead import lead_services
from agencydesk.models.rate_card import RateCard
from agencydesk.models.service import Service
from agencydesk.schemas.service_schemas import ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


class ServiceService:
    """Service layer for the services an owner offers"""

    def __init__(self, db: Session):
        self.db = db
        self.access = AccessResolver(db)
        self.scope = ScopeFilterBuilder(db, self.access)
        self.entities = self.access.entities

    def list_services(self, principal: Principal, user_id: int | None = None) -> list[Service]:
        """List services offered in the principal's tenant"""
        predicate = self.scope.build_filter(principal, EntityType.SERVICE, {"user_id": user_id})
        return self.entities.find(EntityType.SERVICE, predicate)

    def get_service(self, service_id: int, principal: Principal) -> Service:
        """Get service by ID"""
        return self.access.fetch(principal, "view_service", EntityType.SERVICE, service_id)

    def create_service(self, data: ServiceCreate, principal: Principal) -> Service:
        """Create a service for the declared owner"""
        owner_id = data.user_id if data.user_id is not None else principal.tenant_id
        self.access.check(principal, "create_service", IntendedOwner(owner_id))
        service = Service(name=data.name, description=data.description, user_id=owner_id)
        return self.entities.save(service)

    def update_service(self, service_id: int, data: ServiceUpdate, principal: Principal) -> Service:
        """Update a service; a new ``user_id`` must be allowed for the caller too"""
        service = self.entities.require(EntityType.SERVICE, service_id)
        changes = data.model_dump(exclude_unset=True)

        new_owner = changes.get("user_id")
        moving = new_owner is not None and new_owner != service.user_id
        self.access.require(
            self.access.authorize_move(
                principal,
                "update_service",
                ResourceRef(EntityType.SERVICE, service_id),
                IntendedOwner(new_owner) if moving else None,
            )
        )

        if changes.get("name") is not None:
            service.name = changes["name"]
        if "description" in changes:
            service.description = changes["description"]
        if moving:
            service.user_id = new_owner
        return self.entities.save(service)

    def delete_service(self, service_id: int, principal: Principal) -> None:
        """
        Delete a service.

        Its rate cards go with it and leads stop looking for it.
        """
        service = self.access.fetch(principal, "delete_service", EntityType.SERVICE, service_id)
        unlinked = self.entities.unlink(lead_services, "service_id", service_id)
        rate_cards = self.entities.delete_where(RateCard.service_id, service_id)
        self.entities.delete(service)
        logger.info(
            "Deleted service %s (%d rate cards, %d lead links)", service_id, rate_cards, unlinked
        )
