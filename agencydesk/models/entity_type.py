"""Entity type vocabulary used by the ownership registry and scope filters."""

from enum import Enum as PyEnum


class EntityType(str, PyEnum):
    """
    Every entity type whose tenant can be resolved.

    Values double as the permission-key suffix for most types
    (``view_project``, ``create_invoice``); the exceptions are listed in
    ``PERMISSION_SUFFIX``.
    """

    CLIENT = "client"
    SERVICE = "service"
    PUBLIC_PROFILE = "public_profile"
    COLLABORATOR = "collaborator"
    RATE_CARD = "rate_card"
    TEAM_MEMBER = "team_member"
    ROLE = "role"
    PROJECT = "project"
    INVOICE = "invoice"
    PAYMENT = "payment"
    MILESTONE = "milestone"
    LEAD = "lead"

    @property
    def label(self) -> str:
        """Human readable name used in error messages"""
        return self.value.replace("_", " ").capitalize()

    def permission_key(self, verb: str) -> str:
        """Build the permission key for ``verb`` on this entity type"""
        return f"{verb}_{PERMISSION_SUFFIX.get(self, self.value)}"


# Team member permissions are keyed "*_team", public profiles "*_profile"
PERMISSION_SUFFIX = {
    EntityType.TEAM_MEMBER: "team",
    EntityType.PUBLIC_PROFILE: "profile",
}
