"""
Ownership registry and tenant resolution.

Each entity type declares how its tenant is derived as a tuple of edges.
The same registry drives two consumers:

- ``OwnershipResolver.resolve_tenant_ids`` walks the edges of a single
  stored entity and returns the set of tenant ids owning it.
- ``ScopeFilterBuilder`` turns each edge into a ``ScopeClause`` for list
  queries (see ``agencydesk.core.scope``).

Rules in "first" mode stop at the first edge that yields a tenant; rules
in "union" mode collect every edge, and scope membership is any-of.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from agencydesk.core.predicate import Condition, ScopeClause
from agencydesk.models.entity_type import EntityType
from agencydesk.models.public_profile import ProfileOwnerType
from agencydesk.models.rate_card import RateCardOwnerType
from agencydesk.repositories.entity_repository import EntityRepository

logger = logging.getLogger(__name__)


class ScopeSource(Protocol):
    """What an edge needs from the filter builder to emit a clause"""

    entities: EntityRepository

    def scoped_ids(self, entity_type: EntityType, tenant_id: int) -> set[int]: ...


def _applies(when: Condition | None, entity: Any) -> bool:
    return when is None or getattr(entity, when.field) in when.values


@dataclass(frozen=True)
class OwnerField:
    """Column holding the tenant id itself (``Client.added_by``)"""

    field: str
    when: Condition | None = None

    def resolve(self, resolver: "OwnershipResolver", entity: Any) -> set[int]:
        value = getattr(entity, self.field)
        return {value} if value is not None else set()

    def clause(self, source: ScopeSource, tenant_id: int) -> ScopeClause:
        return ScopeClause(self.field, frozenset({tenant_id}), when=self.when)


@dataclass(frozen=True)
class ParentLink:
    """Foreign key to a parent whose tenant is inherited (``Project.client_id``)"""

    field: str
    parent: EntityType
    when: Condition | None = None

    def resolve(self, resolver: "OwnershipResolver", entity: Any) -> set[int]:
        parent_id = getattr(entity, self.field)
        if parent_id is None:
            return set()
        return set(resolver.resolve_tenant_ids(self.parent, parent_id))

    def clause(self, source: ScopeSource, tenant_id: int) -> ScopeClause:
        return ScopeClause(
            self.field, frozenset(source.scoped_ids(self.parent, tenant_id)), when=self.when
        )


@dataclass(frozen=True)
class ParentCollection:
    """Many-to-many link to parents, each contributing its tenant (``Lead.looking_for``)"""

    relationship: str
    parent: EntityType

    def resolve(self, resolver: "OwnershipResolver", entity: Any) -> set[int]:
        tenants = set()
        for parent in getattr(entity, self.relationship):
            tenants |= resolver.resolve_entity(self.parent, parent)
        return tenants

    def clause(self, source: ScopeSource, tenant_id: int) -> ScopeClause:
        return ScopeClause(
            "id",
            frozenset(source.scoped_ids(self.parent, tenant_id)),
            relationship=self.relationship,
        )


@dataclass(frozen=True)
class ContainedIn:
    """
    Membership search: containers whose collection lists the entity
    (projects whose ``deliverables`` hold a milestone). Linear in the
    number of containers in the tenant.
    """

    container: EntityType
    relationship: str

    def resolve(self, resolver: "OwnershipResolver", entity: Any) -> set[int]:
        tenants = set()
        for container in resolver.entities.find_containing(self.container, self.relationship, entity.id):
            tenants |= resolver.resolve_entity(self.container, container)
        return tenants

    def clause(self, source: ScopeSource, tenant_id: int) -> ScopeClause:
        container_ids = source.scoped_ids(self.container, tenant_id)
        member_ids = source.entities.member_ids(self.container, self.relationship, container_ids)
        return ScopeClause("id", frozenset(member_ids), guards_param=False)


@dataclass(frozen=True)
class ChildOwnerField:
    """Tenant ids stamped on child rows (``Milestone.uploads[].uploaded_by``)"""

    relationship: str
    field: str

    def resolve(self, resolver: "OwnershipResolver", entity: Any) -> set[int]:
        return {
            getattr(child, self.field)
            for child in getattr(entity, self.relationship)
            if getattr(child, self.field) is not None
        }

    def clause(self, source: ScopeSource, tenant_id: int) -> ScopeClause:
        return ScopeClause(self.field, frozenset({tenant_id}), relationship=self.relationship)


Edge = OwnerField | ParentLink | ParentCollection | ContainedIn | ChildOwnerField


@dataclass(frozen=True)
class OwnershipRule:
    edges: tuple[Edge, ...]
    union: bool = False


AGENCY_RATE_CARDS = Condition(
    "owner_type", (RateCardOwnerType.AGENCY, RateCardOwnerType.AGENCY_INTERNAL)
)
COLLABORATOR_RATE_CARDS = Condition("owner_type", (RateCardOwnerType.COLLABORATOR,))
USER_PROFILES = Condition("owner_type", (ProfileOwnerType.USER,))


OWNERSHIP_RULES: dict[EntityType, OwnershipRule] = {
    EntityType.CLIENT: OwnershipRule((OwnerField("added_by"),)),
    EntityType.SERVICE: OwnershipRule((OwnerField("user_id"),)),
    EntityType.PUBLIC_PROFILE: OwnershipRule(
        (OwnerField("user_id"), OwnerField("owner_ref", when=USER_PROFILES))
    ),
    EntityType.COLLABORATOR: OwnershipRule((OwnerField("managed_by"),)),
    EntityType.RATE_CARD: OwnershipRule(
        (
            OwnerField("owner_ref", when=AGENCY_RATE_CARDS),
            ParentLink("owner_ref", EntityType.COLLABORATOR, when=COLLABORATOR_RATE_CARDS),
        )
    ),
    EntityType.TEAM_MEMBER: OwnershipRule((OwnerField("managed_by"),)),
    EntityType.ROLE: OwnershipRule((OwnerField("created_by"),)),
    EntityType.PROJECT: OwnershipRule((ParentLink("client_id", EntityType.CLIENT),)),
    EntityType.INVOICE: OwnershipRule(
        (OwnerField("created_by"), ParentLink("client_id", EntityType.CLIENT)),
        union=True,
    ),
    EntityType.PAYMENT: OwnershipRule((ParentLink("invoice_id", EntityType.INVOICE),)),
    EntityType.MILESTONE: OwnershipRule(
        (
            ParentLink("invoice_id", EntityType.INVOICE),
            ContainedIn(EntityType.PROJECT, "deliverables"),
            ChildOwnerField("uploads", "uploaded_by"),
        ),
        union=True,
    ),
    EntityType.LEAD: OwnershipRule(
        (
            ParentLink("assigned_to", EntityType.TEAM_MEMBER),
            ParentCollection("looking_for", EntityType.SERVICE),
        ),
        union=True,
    ),
}


class OwnershipResolver:
    """Resolves the tenant ids owning a stored entity"""

    def __init__(self, entities: EntityRepository):
        self.entities = entities

    def resolve_tenant_ids(self, entity_type: EntityType, entity_id: int) -> frozenset[int]:
        """
        Resolve the tenants owning an entity.

        Args:
            entity_type: Type of the entity
            entity_id: Entity ID

        Returns:
            Tenant (owner user) ids; empty when the entity carries no owner
            (e.g. system role templates), which only admins can act on

        Raises:
            NotFoundException: If the entity or a linked parent does not exist
        """
        entity = self.entities.require(entity_type, entity_id)
        return self.resolve_entity(entity_type, entity)

    def resolve_entity(self, entity_type: EntityType, entity: Any) -> frozenset[int]:
        """Resolve the tenants of an already loaded entity"""
        rule = OWNERSHIP_RULES[entity_type]
        tenants: set[int] = set()
        for edge in rule.edges:
            if not _applies(getattr(edge, "when", None), entity):
                continue
            found = edge.resolve(self, entity)
            if found and not rule.union:
                return frozenset(found)
            tenants |= found
        logger.debug("Resolved %s %s to tenants %s", entity_type.value, entity.id, sorted(tenants))
        return frozenset(tenants)

    def resolve_linked_accounts(self, client_id: int) -> frozenset[int]:
        """
        Resolve the login account linked to a client (``Client.user_id``).

        This is the client's own self-service identity, not a tenant.
        """
        client = self.entities.require(EntityType.CLIENT, client_id)
        return frozenset({client.user_id}) if client.user_id is not None else frozenset()
