from enum import Enum as PyEnum
from sqlalchemy import String, Integer, Boolean, Enum
from sqlalchemy.orm import Mapped, mapped_column
from agencydesk.models.base import Base, TimestampMixin


class UserStatus(str, PyEnum):
    """Lifecycle of a platform login account"""

    ACTIVE = "active"
    BANNED = "banned"


class User(Base, TimestampMixin):
    """
    Platform login account.

    Owners (``is_owner=True``) are tenant roots: their id is the tenant id
    stamped on everything they own. Non-owner users act through a
    TeamMember record matched by email.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_owner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[UserStatus] = mapped_column(
        Enum(UserStatus, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=UserStatus.ACTIVE,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', is_owner={self.is_owner})>"
