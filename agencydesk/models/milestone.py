from datetime import date, datetime
from enum import Enum as PyEnum
from sqlalchemy import String, Integer, ForeignKey, Numeric, Text, Date, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agencydesk.models.base import Base, TimestampMixin


class MilestoneStatus(str, PyEnum):
    YET_TO_START = "yet_to_start"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class Milestone(Base, TimestampMixin):
    """
    Deliverable milestone.

    Has no owner column of its own. Tenant is derived from the attached
    invoice, the projects listing it as a deliverable, and the uploaders
    of its files.
    """

    __tablename__ = "milestones"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    amount: Mapped[float] = mapped_column(Numeric(precision=15, scale=2), nullable=False, default=0)
    status: Mapped[MilestoneStatus] = mapped_column(
        Enum(MilestoneStatus, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=MilestoneStatus.YET_TO_START,
    )
    # invoice_attached.invoice_id / attached_on
    invoice_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True, index=True
    )
    invoice_attached_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    uploads: Mapped[list["MilestoneUpload"]] = relationship(
        "MilestoneUpload",
        back_populates="milestone",
        cascade="all, delete-orphan",
        order_by="MilestoneUpload.id",
    )


class MilestoneUpload(Base):
    __tablename__ = "milestone_uploads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    milestone_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("milestones.id", ondelete="CASCADE"), nullable=False, index=True
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    uploaded_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    uploaded_on: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    milestone: Mapped["Milestone"] = relationship("Milestone", back_populates="uploads")
