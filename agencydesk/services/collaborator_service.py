import logging

from sqlalchemy.orm import Session

from agencydesk.core.access import AccessResolver, IntendedOwner, ResourceRef
from agencydesk.core.principal import Principal
from agencydesk.core.scope import ScopeFilterBuilder
from agencydesk.models.collaborator import Collaborator
from agencydesk.models.entity_type import EntityType
from agencydesk.models.rate_card import RateCard, RateCardOwnerType
from agencydesk.schemas.collaborator_schemas import CollaboratorCreate, CollaboratorUpdate

logger = logging.getLogger(__name__)


class CollaboratorService:
    """Service layer for collaborators managed by an owner"""

    def __init__(self, db: Session):
        self.db = db
        self.access = AccessResolver(db)
        self.scope = ScopeFilterBuilder(db, self.access)
        self.entities = self.access.entities

    def list_collaborators(self, principal: Principal, managed_by: int | None = None) -> list[Collaborator]:
        """List collaborators managed in the principal's tenant"""
        predicate = self.scope.build_filter(
            principal, EntityType.COLLABORATOR, {"managed_by": managed_by}
        )
        return self.entities.find(EntityType.COLLABORATOR, predicate)

    def get_collaborator(self, collaborator_id: int, principal: Principal) -> Collaborator:
        return self.access.fetch(principal, "view_collaborator", EntityType.COLLABORATOR, collaborator_id)

    def create_collaborator(self, data: CollaboratorCreate, principal: Principal) -> Collaborator:
        """Create a collaborator managed by the declared owner"""
        owner_id = data.managed_by if data.managed_by is not None else principal.tenant_id
        self.access.check(principal, "create_collaborator", IntendedOwner(owner_id))
        collaborator = Collaborator(name=data.name, user_id=data.user_id, managed_by=owner_id)
        collaborator = self.entities.save(collaborator)
        logger.info("Created collaborator %s for owner %s", collaborator.id, owner_id)
        return collaborator

    def update_collaborator(
        self, collaborator_id: int, data: CollaboratorUpdate, principal: Principal
    ) -> Collaborator:
        """
        Update a collaborator.

        Changing ``managed_by`` hands the collaborator, and with it its
        rate cards, to another owner; both owners must be in scope.
        """
        collaborator = self.entities.require(EntityType.COLLABORATOR, collaborator_id)
        changes = data.model_dump(exclude_unset=True)

        new_owner = changes.get("managed_by")
        moving = new_owner is not None and new_owner != collaborator.managed_by
        self.access.require(
            self.access.authorize_move(
                principal,
                "update_collaborator",
                ResourceRef(EntityType.COLLABORATOR, collaborator_id),
                IntendedOwner(new_owner) if moving else None,
            )
        )

        if changes.get("name") is not None:
            collaborator.name = changes["name"]
        if "user_id" in changes:
            collaborator.user_id = changes["user_id"]
        if moving:
            collaborator.managed_by = new_owner
        return self.entities.save(collaborator)

    def delete_collaborator(self, collaborator_id: int, principal: Principal) -> None:
        """Delete a collaborator together with its rate cards"""
        collaborator = self.access.fetch(
            principal, "delete_collaborator", EntityType.COLLABORATOR, collaborator_id
        )
        removed = self.entities.delete_where(
            RateCard.owner_ref,
            collaborator_id,
            RateCard.owner_type == RateCardOwnerType.COLLABORATOR,
        )
        self.entities.delete(collaborator)
        logger.info("Deleted collaborator %s (%d rate cards)", collaborator_id, removed)
