from datetime import date
from enum import Enum as PyEnum
from sqlalchemy import String, Integer, ForeignKey, Numeric, Text, Date, Boolean, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from agencydesk.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from agencydesk.models.invoice import Invoice


class PaymentMode(str, PyEnum):
    BANK = "BANK"
    UPI = "UPI"


class Payment(Base, TimestampMixin):
    """Payment recorded against an invoice. Tenant is the invoice's tenant."""

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    amount: Mapped[float] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    mode: Mapped[PaymentMode] = mapped_column(
        Enum(PaymentMode, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    transaction_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    invoice_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    paid_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    received_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="payments")
