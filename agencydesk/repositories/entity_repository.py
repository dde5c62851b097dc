from typing import Any
from sqlalchemy import Table, and_, or_, false
from sqlalchemy.orm import InstrumentedAttribute, Session

from agencydesk.core.exceptions import NotFoundException
from agencydesk.core.predicate import QueryPredicate, ScopeClause
from agencydesk.models.base import Base
from agencydesk.models.entity_type import EntityType
from agencydesk.models.client import Client
from agencydesk.models.service import Service
from agencydesk.models.public_profile import PublicProfile
from agencydesk.models.collaborator import Collaborator
from agencydesk.models.rate_card import RateCard
from agencydesk.models.team_member import TeamMember
from agencydesk.models.role import Role
from agencydesk.models.project import Project
from agencydesk.models.invoice import Invoice
from agencydesk.models.payment import Payment
from agencydesk.models.milestone import Milestone
from agencydesk.models.lead import Lead


MODELS: dict[EntityType, type[Base]] = {
    EntityType.CLIENT: Client,
    EntityType.SERVICE: Service,
    EntityType.PUBLIC_PROFILE: PublicProfile,
    EntityType.COLLABORATOR: Collaborator,
    EntityType.RATE_CARD: RateCard,
    EntityType.TEAM_MEMBER: TeamMember,
    EntityType.ROLE: Role,
    EntityType.PROJECT: Project,
    EntityType.INVOICE: Invoice,
    EntityType.PAYMENT: Payment,
    EntityType.MILESTONE: Milestone,
    EntityType.LEAD: Lead,
}


class EntityRepository:
    """
    Generic entity store keyed by entity type.

    Used by the ownership resolver and the scope filter builder, which
    only know entity types and field names, and by services for plain
    persistence of domain entities.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, entity_type: EntityType, entity_id: int) -> Any | None:
        """Get entity by ID, or None if it does not exist"""
        return self.db.get(MODELS[entity_type], entity_id)

    def require(self, entity_type: EntityType, entity_id: int) -> Any:
        """
        Get entity by ID.

        Raises:
            NotFoundException: If the entity does not exist
        """
        entity = self.get(entity_type, entity_id)
        if entity is None:
            raise NotFoundException(f"{entity_type.label} {entity_id} not found")
        return entity

    def find(self, entity_type: EntityType, predicate: QueryPredicate) -> list[Any]:
        """
        Get all entities matching a predicate built by the scope filter builder.

        Caller filters are equality tests; a dotted name (``uploads.uploaded_by``)
        tests related rows. Scope clauses are OR-ed together and AND-ed with
        the filters.
        """
        model = MODELS[entity_type]
        return self._query(model, predicate).order_by(model.id).all()

    def ids(self, entity_type: EntityType, predicate: QueryPredicate) -> set[int]:
        """Get the IDs of all entities matching a predicate"""
        model = MODELS[entity_type]
        query = self._query(model, predicate).with_entities(model.id)
        return {row[0] for row in query.all()}

    def find_containing(
        self, container_type: EntityType, relationship: str, member_id: int
    ) -> list[Any]:
        """
        Find containers whose ``relationship`` collection holds ``member_id``.

        Example: projects whose deliverables contain a milestone.
        """
        model = MODELS[container_type]
        collection = getattr(model, relationship)
        related = collection.property.mapper.class_
        return (
            self.db.query(model)
            .filter(collection.any(related.id == member_id))
            .order_by(model.id)
            .all()
        )

    def member_ids(
        self, container_type: EntityType, relationship: str, container_ids: set[int]
    ) -> set[int]:
        """IDs of all members of the given containers' ``relationship`` collection"""
        if not container_ids:
            return set()
        model = MODELS[container_type]
        collection = getattr(model, relationship)
        related = collection.property.mapper.class_
        query = (
            self.db.query(related.id)
            .select_from(model)
            .join(collection)
            .filter(model.id.in_(container_ids))
        )
        return {row[0] for row in query.all()}

    def save(self, entity: Any) -> Any:
        """Create or update an entity"""
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def delete(self, entity: Any) -> None:
        """Delete an entity, committing any pending reference cleanup with it"""
        self.db.delete(entity)
        self.db.commit()

    def clear_references(self, column: InstrumentedAttribute, value: int) -> int:
        """
        Null out a nullable foreign key wherever it points at ``value``.

        Not committed. SQLite ignores ``ON DELETE SET NULL`` unless foreign
        keys are switched on, so deletes clear their references explicitly.

        Returns:
            Number of rows updated
        """
        return (
            self.db.query(column.class_)
            .filter(column == value)
            .update({column: None}, synchronize_session="fetch")
        )

    def unlink(self, table: Table, column: str, value: int) -> int:
        """Remove association rows (many-to-many links) pointing at ``value``. Not committed."""
        result = self.db.execute(table.delete().where(table.c[column] == value))
        return result.rowcount

    def delete_where(self, column: InstrumentedAttribute, value: Any, *criteria) -> int:
        """Delete dependent rows whose ``column`` equals ``value``. Not committed."""
        rows = self.db.query(column.class_).filter(column == value, *criteria).all()
        for row in rows:
            self.db.delete(row)
        return len(rows)

    def _query(self, model: type[Base], predicate: QueryPredicate):
        query = self.db.query(model)
        for name, value in predicate.filters.items():
            query = query.filter(self._equals(model, name, value))
        if predicate.scope is not None:
            if predicate.scope:
                query = query.filter(or_(*(self._clause(model, clause) for clause in predicate.scope)))
            else:
                query = query.filter(false())
        return query

    def _equals(self, model: type[Base], name: str, value: Any):
        if "." in name:
            relationship, field = name.split(".", 1)
            collection = getattr(model, relationship)
            related = collection.property.mapper.class_
            return collection.any(getattr(related, field) == value)
        return getattr(model, name) == value

    def _clause(self, model: type[Base], clause: ScopeClause):
        values = list(clause.values)
        if clause.relationship:
            collection = getattr(model, clause.relationship)
            related = collection.property.mapper.class_
            expr = collection.any(getattr(related, clause.field).in_(values))
        else:
            expr = getattr(model, clause.field).in_(values)
        if clause.when is not None:
            expr = and_(expr, getattr(model, clause.when.field).in_(list(clause.when.values)))
        return expr
