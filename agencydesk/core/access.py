"""
Tenant-scoped access control.

``AccessResolver.authorize`` is the single entry point deciding whether a
principal may perform an action on a stored resource (``ResourceRef``) or
on a resource about to be created for a declared owner (``IntendedOwner``).

Order of checks:
1. Admins are always allowed.
2. Role mutations: ``LOCKED`` and ``SYSTEM_ROLE_NONADMIN`` constraints.
3. Team members: ``INACTIVE``, ``NO_ROLE``, ``MISSING_PERMISSION``.
4. Scope: the principal's tenant must own the target (``OUT_OF_SCOPE``), or
   equal the declared owner (``OWNER_MISMATCH``).

A missing resource or chain link raises ``NotFoundException`` instead of
returning a decision.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from agencydesk.core.decision import ALLOW, Decision, DenyReason, deny
from agencydesk.core.exceptions import AccessDeniedException
from agencydesk.core.ownership import OwnershipResolver
from agencydesk.core.permissions import has_any_permission
from agencydesk.core.principal import Principal, TeamMemberPrincipal, describe
from agencydesk.models.entity_type import EntityType
from agencydesk.models.role import Role
from agencydesk.repositories.entity_repository import EntityRepository
from agencydesk.repositories.role_repository import RoleRepository

logger = logging.getLogger(__name__)

Action = str | tuple[str, ...]

ROLE_MUTATIONS = frozenset({"update_role", "delete_role"})


@dataclass(frozen=True)
class ResourceRef:
    """An existing resource"""

    entity_type: EntityType
    entity_id: int

    def __str__(self) -> str:
        return f"{self.entity_type.value}:{self.entity_id}"


@dataclass(frozen=True)
class IntendedOwner:
    """Declared owner of a resource being created (or moved)"""

    tenant_id: int | None

    def __str__(self) -> str:
        return f"owner:{self.tenant_id}"


Target = ResourceRef | IntendedOwner


def _keys(action: Action) -> tuple[str, ...]:
    return (action,) if isinstance(action, str) else tuple(action)


class AccessResolver:
    """
    Per-request access resolver.

    Read-only. Role lookups are memoized for the lifetime of the instance,
    so each service builds its own for the request it serves.
    """

    def __init__(self, db: Session):
        self.db = db
        self.entities = EntityRepository(db)
        self.ownership = OwnershipResolver(self.entities)
        self.role_repo = RoleRepository(db)
        self._roles: dict[int, Role | None] = {}

    def authorize(self, principal: Principal, action: Action, target: Target) -> Decision:
        """
        Decide whether ``principal`` may perform ``action`` on ``target``.

        Args:
            principal: Resolved caller
            action: Permission key, or a tuple of keys of which any suffices
            target: Existing resource or declared owner

        Returns:
            ALLOW or a Deny carrying its reason

        Raises:
            NotFoundException: If the target or a link in its ownership chain
                does not exist
        """
        keys = _keys(action)
        if (
            isinstance(target, ResourceRef)
            and target.entity_type == EntityType.ROLE
            and ROLE_MUTATIONS.intersection(keys)
            and not principal.is_admin
        ):
            role = self.entities.require(EntityType.ROLE, target.entity_id)
            decision = self._decide_role(principal, role, {}, keys)
        else:
            decision = self._decide(principal, keys, target)
        self._log(principal, keys, target, decision)
        return decision

    def authorize_all(
        self, principal: Principal, action: Action, targets: Iterable[Target]
    ) -> Decision:
        """Authorize every target; the first Deny wins"""
        for target in targets:
            decision = self.authorize(principal, action, target)
            if not decision:
                return decision
        return ALLOW

    def authorize_move(
        self,
        principal: Principal,
        action: Action,
        current: ResourceRef,
        new_target: Target | None,
    ) -> Decision:
        """
        Authorize a change of a scope-carrying field.

        The principal must be allowed on the resource as it is now and on
        the new value (e.g. the client an invoice is being moved to).
        """
        decision = self.authorize(principal, action, current)
        if not decision or new_target is None:
            return decision
        return self.authorize(principal, action, new_target)

    def authorize_grant(self, principal: Principal, action: Action) -> Decision:
        """
        Check only the role grant of a team member (status, role, key).

        Admins and owners hold every key.
        """
        if not isinstance(principal, TeamMemberPrincipal):
            return ALLOW
        keys = _keys(action)
        if not principal.is_active:
            return deny(DenyReason.INACTIVE, "Forbidden: team member is not active")
        role = self.role_for(principal)
        if role is None:
            return deny(DenyReason.NO_ROLE, "Forbidden: team member has no role")
        if not has_any_permission(role.permissions, keys):
            return deny(
                DenyReason.MISSING_PERMISSION,
                f"Forbidden: missing permission {' or '.join(keys)}",
            )
        return ALLOW

    def can_mutate_role(
        self,
        principal: Principal,
        role: Role,
        changes: Mapping[str, Any] | None = None,
        action: str = "update_role",
    ) -> Decision:
        """
        Decide whether ``principal`` may apply ``changes`` to ``role``.

        Returns ``LOCKED`` or ``SYSTEM_ROLE_NONADMIN`` as is; every other
        denial (grant or ownership) is reported as ``NOT_OWNER_OR_PERMITTED``
        with the underlying reason in the detail.
        """
        if principal.is_admin:
            return ALLOW
        decision = self._decide_role(principal, role, changes or {}, (action,))
        self._log(principal, (action,), ResourceRef(EntityType.ROLE, role.id), decision)
        if decision or decision.reason in (DenyReason.LOCKED, DenyReason.SYSTEM_ROLE_NONADMIN):
            return decision
        return deny(
            DenyReason.NOT_OWNER_OR_PERMITTED,
            f"Forbidden: {DenyReason.NOT_OWNER_OR_PERMITTED.value} ({decision.reason.value})",
        )

    def role_for(self, principal: TeamMemberPrincipal) -> Role | None:
        """
        Load the team member's role, memoized per resolver.

        A role owned by another tenant is treated as no role at all.
        """
        if principal.role_id is None:
            return None
        if principal.role_id not in self._roles:
            self._roles[principal.role_id] = self.role_repo.get_by_id(principal.role_id)
        role = self._roles[principal.role_id]
        if role is None or role.created_by != principal.managed_by:
            return None
        return role

    def require(self, decision: Decision) -> None:
        """
        Raises:
            AccessDeniedException: If the decision is a Deny
        """
        if not decision:
            raise AccessDeniedException(decision.reason, decision.detail)

    def check(self, principal: Principal, action: Action, target: Target) -> None:
        """Authorize and raise on Deny"""
        self.require(self.authorize(principal, action, target))

    def fetch(
        self, principal: Principal, action: Action, entity_type: EntityType, entity_id: int
    ) -> Any:
        """
        Load a stored resource the principal is allowed to act on.

        Raises:
            NotFoundException: If the resource doesn't exist
            AccessDeniedException: If the check denies
        """
        entity = self.entities.require(entity_type, entity_id)
        self.check(principal, action, ResourceRef(entity_type, entity_id))
        return entity

    def _decide(self, principal: Principal, keys: tuple[str, ...], target: Target) -> Decision:
        if principal.is_admin:
            return ALLOW
        grant = self.authorize_grant(principal, keys)
        if not grant:
            return grant
        return self._scope(principal, target)

    def _decide_role(
        self,
        principal: Principal,
        role: Role,
        changes: Mapping[str, Any],
        keys: tuple[str, ...],
    ) -> Decision:
        if role.locked:
            return deny(DenyReason.LOCKED, f"Forbidden: role '{role.name}' is locked")
        if role.is_system_role or changes.get("is_system_role") or changes.get("locked"):
            return deny(
                DenyReason.SYSTEM_ROLE_NONADMIN,
                "Forbidden: only admins can manage system or locked roles",
            )
        grant = self.authorize_grant(principal, keys)
        if not grant:
            return grant
        if principal.tenant_id not in self.ownership.resolve_entity(EntityType.ROLE, role):
            return deny(DenyReason.OUT_OF_SCOPE, f"Forbidden: role {role.id} is outside your scope")
        if "created_by" in changes and changes["created_by"] != role.created_by:
            return deny(DenyReason.OWNER_MISMATCH, "Forbidden: role owner cannot be changed")
        return ALLOW

    def _scope(self, principal: Principal, target: Target) -> Decision:
        tenant_id = principal.tenant_id
        if isinstance(target, IntendedOwner):
            if target.tenant_id != tenant_id:
                return deny(
                    DenyReason.OWNER_MISMATCH,
                    f"Forbidden: declared owner {target.tenant_id} does not match {tenant_id}",
                )
            return ALLOW
        tenants = self.ownership.resolve_tenant_ids(target.entity_type, target.entity_id)
        if tenant_id in tenants:
            return ALLOW
        return deny(
            DenyReason.OUT_OF_SCOPE,
            f"Forbidden: {target.entity_type.label.lower()} {target.entity_id} is outside your scope",
        )

    def _log(
        self, principal: Principal, keys: tuple[str, ...], target: Target, decision: Decision
    ) -> None:
        logger.debug("authorize %s %s %s -> %r", describe(principal), "|".join(keys), target, decision)
        if not decision:
            logger.info(
                "Denied %s %s on %s: %s",
                describe(principal),
                "|".join(keys),
                target,
                decision.reason.value,
            )
