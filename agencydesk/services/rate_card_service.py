import logging

from sqlalchemy.orm import Session

from agencydesk.core.access import AccessResolver, IntendedOwner, ResourceRef, Target
from agencydesk.core.exceptions import ValidationException
from agencydesk.core.principal import Principal
from agencydesk.core.scope import ScopeFilterBuilder
from agencydesk.models.entity_type import EntityType
from agencydesk.models.rate_card import RateCard, RateCardOwnerType
from agencydesk.schemas.rate_card_schemas import RateCardCreate, RateCardUpdate

logger = logging.getLogger(__name__)


class RateCardService:
    """
    Service layer for rate cards.

    An agency rate card names its owner directly in ``owner_ref``; a
    collaborator rate card names the collaborator, and belongs to the
    owner managing that collaborator.
    """

    def __init__(self, db: Session):
        self.db = db
        self.access = AccessResolver(db)
        self.scope = ScopeFilterBuilder(db, self.access)
        self.entities = self.access.entities

    def list_rate_cards(
        self,
        principal: Principal,
        service_id: int | None = None,
        owner_type: RateCardOwnerType | None = None,
        owner_ref: int | None = None,
    ) -> list[RateCard]:
        """List rate cards in the principal's tenant"""
        predicate = self.scope.build_filter(
            principal,
            EntityType.RATE_CARD,
            {"service_id": service_id, "owner_type": owner_type, "owner_ref": owner_ref},
        )
        return self.entities.find(EntityType.RATE_CARD, predicate)

    def get_rate_card(self, rate_card_id: int, principal: Principal) -> RateCard:
        """Get rate card by ID"""
        return self.access.fetch(principal, "view_rate_card", EntityType.RATE_CARD, rate_card_id)

    def create_rate_card(self, data: RateCardCreate, principal: Principal) -> RateCard:
        """
        Create a rate card for a service.

        Raises:
            NotFoundException: If the service or collaborator doesn't exist
            ValidationException: If a collaborator rate card names no collaborator
            AccessDeniedException: If the service or the owner is outside the caller's scope
        """
        owner_ref = data.owner_ref
        if owner_ref is None and data.owner_type != RateCardOwnerType.COLLABORATOR:
            owner_ref = principal.tenant_id
        if owner_ref is None:
            raise ValidationException(f"owner_ref is required for {data.owner_type.value} rate cards")

        self.entities.require(EntityType.SERVICE, data.service_id)
        self.access.require(
            self.access.authorize_all(
                principal,
                "create_rate_card",
                [
                    ResourceRef(EntityType.SERVICE, data.service_id),
                    self._owner_target(data.owner_type, owner_ref),
                ],
            )
        )

        rate_card = RateCard(
            title=data.title,
            service_id=data.service_id,
            owner_type=data.owner_type,
            owner_ref=owner_ref,
            price=data.price,
        )
        rate_card = self.entities.save(rate_card)
        logger.info(
            "Created %s rate card %s for service %s", data.owner_type.value, rate_card.id, data.service_id
        )
        return rate_card

    def update_rate_card(self, rate_card_id: int, data: RateCardUpdate, principal: Principal) -> RateCard:
        """
        Update a rate card. A new service or owner must be in scope too.
        """
        rate_card = self.entities.require(EntityType.RATE_CARD, rate_card_id)
        changes = data.model_dump(exclude_unset=True)

        owner_type = changes.get("owner_type") or rate_card.owner_type
        owner_ref = changes.get("owner_ref") or rate_card.owner_ref
        if owner_type != rate_card.owner_type and "owner_ref" not in changes:
            raise ValidationException("owner_ref must be given when owner_type changes")

        targets: list[Target] = [ResourceRef(EntityType.RATE_CARD, rate_card_id)]
        new_service = changes.get("service_id")
        if new_service is not None and new_service != rate_card.service_id:
            self.entities.require(EntityType.SERVICE, new_service)
            targets.append(ResourceRef(EntityType.SERVICE, new_service))
        if (owner_type, owner_ref) != (rate_card.owner_type, rate_card.owner_ref):
            targets.append(self._owner_target(owner_type, owner_ref))
        self.access.require(self.access.authorize_all(principal, "update_rate_card", targets))

        if changes.get("title") is not None:
            rate_card.title = changes["title"]
        if changes.get("price") is not None:
            rate_card.price = changes["price"]
        if new_service is not None:
            rate_card.service_id = new_service
        rate_card.owner_type = owner_type
        rate_card.owner_ref = owner_ref
        return self.entities.save(rate_card)

    def delete_rate_card(self, rate_card_id: int, principal: Principal) -> None:
        rate_card = self.access.fetch(principal, "delete_rate_card", EntityType.RATE_CARD, rate_card_id)
        self.entities.delete(rate_card)
        logger.info("Deleted rate card %s", rate_card_id)

    def _owner_target(self, owner_type: RateCardOwnerType, owner_ref: int) -> Target:
        if owner_type == RateCardOwnerType.COLLABORATOR:
            self.entities.require(EntityType.COLLABORATOR, owner_ref)
            return ResourceRef(EntityType.COLLABORATOR, owner_ref)
        return IntendedOwner(owner_ref)
