"""Tenant-owned role carrying a permission matrix."""

from sqlalchemy import String, Integer, Boolean, ForeignKey, JSON, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from typing import Any

from agencydesk.models.base import Base, TimestampMixin


class Role(Base, TimestampMixin):
    """
    Named bundle of permission grants owned by a tenant.

    ``permissions`` is a nested map ``{group: {action: bool}}`` and may also
    carry flat ``{action: bool}`` keys (legacy ungrouped grants). Both shapes
    exist in stored data and are read by ``has_permission``.

    Flags:
    - ``locked``: role can be neither updated nor deleted by non-admins
      (e.g. the seeded "Owner Admin" role)
    - ``is_system_role``: admin-managed template, cloned into each new
      owner's scope by the role seeder

    Constraints:
    - Unique(name, created_by) - role names are unique per owner
    """

    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    permissions: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    # System templates have no owning tenant
    created_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    is_system_role: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    source_template_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("roles.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint("name", "created_by", name="uq_role_name_owner"),
    )

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name='{self.name}', created_by={self.created_by}, locked={self.locked})>"
