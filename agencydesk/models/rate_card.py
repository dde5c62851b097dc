from enum import Enum as PyEnum
from sqlalchemy import String, Integer, ForeignKey, Numeric, Enum
from sqlalchemy.orm import Mapped, mapped_column
from agencydesk.models.base import Base, TimestampMixin


class RateCardOwnerType(str, PyEnum):
    """
    What ``owner_ref`` points at.

    AGENCY / AGENCY_INTERNAL: an owner's user id
    COLLABORATOR: a collaborator id (tenant is the collaborator's manager)
    """

    COLLABORATOR = "collaborator"
    AGENCY = "agency"
    AGENCY_INTERNAL = "agency_internal"


class RateCard(Base, TimestampMixin):
    __tablename__ = "rate_cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    service_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    owner_type: Mapped[RateCardOwnerType] = mapped_column(
        Enum(RateCardOwnerType, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    owner_ref: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    price: Mapped[float] = mapped_column(Numeric(precision=15, scale=2), nullable=False, default=0)
