from enum import Enum as PyEnum
from sqlalchemy import String, Integer, JSON, Text, Enum
from sqlalchemy.orm import Mapped, mapped_column
from agencydesk.models.base import Base, TimestampMixin


class GroupVisibility(str, PyEnum):
    PUBLIC = "public"
    PRIVATE = "private"


class PermissionGroup(Base, TimestampMixin):
    """
    Catalog entry describing one permission group and its action keys.

    ``permissions`` is a list of ``{"key", "label", "description", "default"}``
    items. Public groups make up the full-access matrix of the seeded
    owner-admin role.
    """

    __tablename__ = "permission_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    permissions: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    visibility: Mapped[GroupVisibility] = mapped_column(
        Enum(GroupVisibility, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=GroupVisibility.PUBLIC,
    )

    @property
    def keys(self) -> set[str]:
        return {item["key"] for item in self.permissions or [] if item.get("key")}
