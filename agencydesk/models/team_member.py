from enum import Enum as PyEnum
from sqlalchemy import String, Integer, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from agencydesk.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from agencydesk.models.role import Role


class TeamMemberStatus(str, PyEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    BANNED = "banned"


class TeamMember(Base, TimestampMixin):
    """
    Delegated principal working under exactly one owner.

    ``managed_by`` is the owner's user id and is fixed at creation for
    non-admins. ``role_id`` must point to a role created by the same owner.

    Constraints:
    - Unique(email, managed_by) - the same email may join several owners
    """

    __tablename__ = "team_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    managed_by: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("roles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    status: Mapped[TeamMemberStatus] = mapped_column(
        Enum(TeamMemberStatus, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=TeamMemberStatus.ACTIVE,
    )

    role: Mapped["Role | None"] = relationship("Role")

    __table_args__ = (
        UniqueConstraint("email", "managed_by", name="uq_team_member_email_owner"),
    )

    def __repr__(self) -> str:
        return f"<TeamMember(id={self.id}, managed_by={self.managed_by}, status={self.status.value})>"
