"""Store-agnostic query predicate produced by the scope filter builder."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Condition:
    """``field`` must take one of ``values`` (e.g. rate card owner_type)"""

    field: str
    values: tuple[Any, ...]


@dataclass(frozen=True)
class ScopeClause:
    """
    One tenant-membership test.

    Matches rows whose ``field`` is in ``values``. When ``relationship`` is
    set, the test applies to the related rows instead (``looking_for.id``,
    ``uploads.uploaded_by``). ``when`` restricts the clause to rows of a
    given kind. ``guards_param`` is False for clauses derived by membership
    search, which no caller filter addresses.
    """

    field: str
    values: frozenset[Any]
    relationship: str | None = None
    when: Condition | None = None
    guards_param: bool = True

    @property
    def param(self) -> str:
        """Caller filter name this clause corresponds to"""
        if self.relationship:
            return f"{self.relationship}.{self.field}"
        return self.field


@dataclass(frozen=True)
class QueryPredicate:
    """
    Caller filters AND (any-of scope clauses).

    ``scope=None`` means unrestricted (admins). An empty tuple matches
    nothing.
    """

    filters: dict[str, Any] = field(default_factory=dict)
    scope: tuple[ScopeClause, ...] | None = None

    @property
    def is_unrestricted(self) -> bool:
        return self.scope is None
