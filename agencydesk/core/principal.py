"""Resolved identity of an authenticated caller."""

from dataclasses import dataclass

from agencydesk.models.team_member import TeamMemberStatus


@dataclass(frozen=True)
class AdminPrincipal:
    """Platform administrator; every check allows"""

    id: int

    is_admin = True

    @property
    def tenant_id(self) -> None:
        return None


@dataclass(frozen=True)
class OwnerPrincipal:
    """Tenant root; implicitly holds every permission inside its own tenant"""

    id: int

    is_admin = False

    @property
    def tenant_id(self) -> int:
        return self.id


@dataclass(frozen=True)
class TeamMemberPrincipal:
    """
    Delegated principal scoped to one owner.

    Attributes:
        id: TeamMember id
        user_id: Login account the token was issued for
        managed_by: Owner (tenant) this member works under
        role_id: Assigned role, loaded at check time
        status: Membership status; only ACTIVE members are allowed anything
    """

    id: int
    user_id: int
    managed_by: int
    role_id: int | None
    status: TeamMemberStatus

    is_admin = False

    @property
    def tenant_id(self) -> int:
        return self.managed_by

    @property
    def is_active(self) -> bool:
        return self.status == TeamMemberStatus.ACTIVE


Principal = AdminPrincipal | OwnerPrincipal | TeamMemberPrincipal


def describe(principal: Principal) -> str:
    """Short form used in log lines"""
    if isinstance(principal, AdminPrincipal):
        return f"admin:{principal.id}"
    if isinstance(principal, OwnerPrincipal):
        return f"owner:{principal.id}"
    return f"member:{principal.id}@{principal.managed_by}"
