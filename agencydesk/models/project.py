from enum import Enum as PyEnum
from sqlalchemy import String, Integer, ForeignKey, Numeric, Text, Enum, Table, Column, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from agencydesk.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from agencydesk.models.milestone import Milestone


# Project deliverables: which milestones belong to which project
project_deliverables = Table(
    "project_deliverables",
    Base.metadata,
    Column("project_id", Integer, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("milestone_id", Integer, ForeignKey("milestones.id", ondelete="CASCADE"), primary_key=True),
)


class ProjectStatus(str, PyEnum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ON_HOLD = "on_hold"


class Project(Base, TimestampMixin):
    """
    Client engagement. Tenant is the owner of ``client_id``.

    Constraints:
    - Unique(name, client_id)
    """

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=ProjectStatus.DRAFT,
    )
    project_budget: Mapped[float] = mapped_column(Numeric(precision=15, scale=2), nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    deliverables: Mapped[list["Milestone"]] = relationship(
        "Milestone", secondary=project_deliverables, order_by="Milestone.id"
    )

    __table_args__ = (UniqueConstraint("name", "client_id", name="uq_project_name_client"),)

    @property
    def deliverable_ids(self) -> list[int]:
        return [milestone.id for milestone in self.deliverables]
