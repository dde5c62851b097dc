from datetime import date
from enum import Enum as PyEnum
from sqlalchemy import String, Integer, ForeignKey, Numeric, Text, Date, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from agencydesk.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from agencydesk.models.payment import Payment


class PaymentStatus(str, PyEnum):
    PENDING = "pending"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class Invoice(Base, TimestampMixin):
    """
    Invoice issued to a client.

    Tenant is any-of ``created_by`` and the owner of ``client_id``.
    ``total`` is derived: subtotal * (1 + tax_percentage / 100).
    ``payment_status`` is recomputed from payments after each payment write.
    """

    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invoice_number: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    subtotal: Mapped[float] = mapped_column(Numeric(precision=15, scale=2), nullable=False, default=0)
    tax_percentage: Mapped[float] = mapped_column(Numeric(precision=5, scale=2), nullable=False, default=0)
    total: Mapped[float] = mapped_column(Numeric(precision=15, scale=2), nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    project_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True
    )

    payments: Mapped[list["Payment"]] = relationship("Payment", back_populates="invoice")
