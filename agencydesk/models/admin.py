from enum import Enum as PyEnum
from sqlalchemy import String, Integer, Enum
from sqlalchemy.orm import Mapped, mapped_column
from agencydesk.models.base import Base, TimestampMixin


class AdminStatus(str, PyEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    BANNED = "banned"


class Admin(Base, TimestampMixin):
    """Platform administrator. Bypasses every tenant check."""

    __tablename__ = "admins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[AdminStatus] = mapped_column(
        Enum(AdminStatus, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=AdminStatus.ACTIVE,
    )
