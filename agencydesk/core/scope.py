"""
List-query scoping.

``ScopeFilterBuilder.build_filter`` narrows a caller's list filters to the
principal's tenant using the same ownership registry as single-resource
checks, so a resource is listed exactly when it could be fetched.
"""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session

from agencydesk.core.access import AccessResolver
from agencydesk.core.decision import DenyReason
from agencydesk.core.exceptions import AccessDeniedException
from agencydesk.core.ownership import OWNERSHIP_RULES
from agencydesk.core.predicate import QueryPredicate, ScopeClause
from agencydesk.core.principal import Principal, describe
from agencydesk.models.entity_type import EntityType
from agencydesk.repositories.entity_repository import EntityRepository

logger = logging.getLogger(__name__)


class ScopeFilterBuilder:
    """Builds tenant-scoped query predicates for list endpoints"""

    def __init__(self, db: Session, access: AccessResolver | None = None):
        self.access = access or AccessResolver(db)
        self.entities: EntityRepository = self.access.entities
        self._scoped: dict[tuple[EntityType, int], set[int]] = {}

    def build_filter(
        self,
        principal: Principal,
        entity_type: EntityType,
        filters: Mapping[str, Any] | None = None,
        action: str | None = None,
    ) -> QueryPredicate:
        """
        Combine caller filters with the principal's tenant scope.

        Args:
            principal: Resolved caller
            entity_type: Type being listed
            filters: Equality filters from the query string; None values are dropped
            action: Permission key required of team members (default ``view_<type>``)

        Returns:
            Predicate for ``EntityRepository.find``; unrestricted for admins

        Raises:
            AccessDeniedException: If a team member lacks the view permission,
                or a scoping filter names a value outside the principal's scope
        """
        filters = {name: value for name, value in (filters or {}).items() if value is not None}
        if principal.is_admin:
            return QueryPredicate(filters=filters)

        self.access.require(
            self.access.authorize_grant(principal, action or entity_type.permission_key("view"))
        )
        clauses = self.scope_clauses(entity_type, principal.tenant_id)
        self._check_scoping_filters(principal, entity_type, filters, clauses)
        return QueryPredicate(filters=filters, scope=clauses)

    def scope_clauses(self, entity_type: EntityType, tenant_id: int) -> tuple[ScopeClause, ...]:
        """Translate the ownership rule of ``entity_type`` into scope clauses"""
        return tuple(edge.clause(self, tenant_id) for edge in OWNERSHIP_RULES[entity_type].edges)

    def scoped_ids(self, entity_type: EntityType, tenant_id: int) -> set[int]:
        """IDs of every ``entity_type`` row owned by ``tenant_id``"""
        key = (entity_type, tenant_id)
        if key not in self._scoped:
            predicate = QueryPredicate(scope=self.scope_clauses(entity_type, tenant_id))
            self._scoped[key] = self.entities.ids(entity_type, predicate)
        return self._scoped[key]

    def _check_scoping_filters(
        self,
        principal: Principal,
        entity_type: EntityType,
        filters: Mapping[str, Any],
        clauses: tuple[ScopeClause, ...],
    ) -> None:
        allowed: dict[str, set[Any]] = {}
        for clause in clauses:
            if clause.guards_param:
                allowed.setdefault(clause.param, set()).update(clause.values)

        union = OWNERSHIP_RULES[entity_type].union
        for name, value in filters.items():
            if name in allowed and value not in allowed[name]:
                # Union-owned rows may match the value through another edge
                if union and self.entities.ids(entity_type, QueryPredicate(filters={name: value}, scope=clauses)):
                    continue
                logger.info(
                    "Denied %s list %s with %s=%s: %s",
                    describe(principal),
                    entity_type.value,
                    name,
                    value,
                    DenyReason.OUT_OF_SCOPE.value,
                )
                raise AccessDeniedException(
                    DenyReason.OUT_OF_SCOPE, f"Forbidden: {name}={value} is outside your scope"
                )
