from enum import Enum as PyEnum
from sqlalchemy import String, Integer, ForeignKey, Enum
from sqlalchemy.orm import Mapped, mapped_column
from agencydesk.models.base import Base, TimestampMixin


class ClientStatus(str, PyEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Client(Base, TimestampMixin):
    """
    Brand or individual hiring the agency.

    Two distinct user references:
    - ``added_by``: the owner who manages this client record (tenant)
    - ``user_id``: the client's own login account (self-service access)

    Only ``added_by`` decides tenant scope.
    """

    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    business_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status: Mapped[ClientStatus] = mapped_column(
        Enum(ClientStatus, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=ClientStatus.ACTIVE,
    )
    added_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True
    )
