"""Allow / Deny outcome of an access check."""

from dataclasses import dataclass
from enum import Enum as PyEnum


class DenyReason(str, PyEnum):
    """Machine-readable reason attached to every denial"""

    OUT_OF_SCOPE = "OUT_OF_SCOPE"
    MISSING_PERMISSION = "MISSING_PERMISSION"
    INACTIVE = "INACTIVE"
    NO_ROLE = "NO_ROLE"
    LOCKED = "LOCKED"
    SYSTEM_ROLE_NONADMIN = "SYSTEM_ROLE_NONADMIN"
    OWNER_MISMATCH = "OWNER_MISMATCH"
    DUPLICATE_NAME = "DUPLICATE_NAME"
    NOT_OWNER_OR_PERMITTED = "NOT_OWNER_OR_PERMITTED"


@dataclass(frozen=True)
class Decision:
    """
    Result of ``AccessResolver.authorize``.

    Truthy when access is allowed. A denied decision always carries a
    ``reason``; ``detail`` is a human readable message for the HTTP body.
    """

    allowed: bool
    reason: DenyReason | None = None
    detail: str | None = None

    def __bool__(self) -> bool:
        return self.allowed

    def __repr__(self) -> str:
        if self.allowed:
            return "<Decision(Allow)>"
        return f"<Decision(Deny {self.reason.value})>"


ALLOW = Decision(allowed=True)


def deny(reason: DenyReason, detail: str | None = None) -> Decision:
    return Decision(allowed=False, reason=reason, detail=detail)
