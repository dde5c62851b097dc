from enum import Enum as PyEnum
from sqlalchemy import String, Integer, ForeignKey, Numeric, Enum, Table, Column
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from agencydesk.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from agencydesk.models.service import Service


# Services a lead is looking for
lead_services = Table(
    "lead_services",
    Base.metadata,
    Column("lead_id", Integer, ForeignKey("leads.id", ondelete="CASCADE"), primary_key=True),
    Column("service_id", Integer, ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
)


class LeadStatus(str, PyEnum):
    NEW_LEAD = "new_lead"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    PROPOSAL_SENT = "proposal_sent"
    WON = "won"
    LOST = "lost"
    CLOSED = "closed"


class Lead(Base, TimestampMixin):
    """
    Inbound lead.

    Tenant is any-of the manager of ``assigned_to`` and the owners of the
    services in ``looking_for``.
    """

    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    budget: Mapped[float | None] = mapped_column(Numeric(precision=15, scale=2), nullable=True)
    status: Mapped[LeadStatus] = mapped_column(
        Enum(LeadStatus, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=LeadStatus.NEW_LEAD,
    )
    assigned_to: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("team_members.id", ondelete="SET NULL"), nullable=True, index=True
    )

    looking_for: Mapped[list["Service"]] = relationship(
        "Service", secondary=lead_services, order_by="Service.id"
    )

    @property
    def service_ids(self) -> list[int]:
        return [service.id for service in self.looking_for]
