import logging

from sqlalchemy.orm import Session

from agencydesk.core.access import ResourceRef
from agencydesk.core.exceptions import ConflictException, ValidationException
from agencydesk.core.principal import Principal
from agencydesk.models.entity_type import EntityType
from agencydesk.models.invoice import PaymentStatus
from agencydesk.models.payment import Payment, PaymentMode
from agencydesk.schemas.payment_schemas import PaymentCreate, PaymentUpdate
from agencydesk.services.invoice_service import InvoiceService

logger = logging.getLogger(__name__)


class PaymentService:
    """Service layer for payments received against invoices"""

    def __init__(self, db: Session):
        self.db = db
        self.invoices = InvoiceService(db)
        self.access = self.invoices.access
        self.scope = self.invoices.scope
        self.entities = self.access.entities

    def list_payments(
        self,
        principal: Principal,
        invoice_id: int | None = None,
        paid_by: int | None = None,
        mode: PaymentMode | None = None,
    ) -> list[Payment]:
        """
        List payments in the principal's tenant.

        Raises:
            AccessDeniedException: If ``invoice_id`` or the ``paid_by`` client is
                outside the principal's scope
        """
        if paid_by is not None and not principal.is_admin:
            # paid_by names a client; it must be one the caller manages
            self.access.check(principal, "view_payment", ResourceRef(EntityType.CLIENT, paid_by))
        predicate = self.scope.build_filter(
            principal,
            EntityType.PAYMENT,
            {"invoice_id": invoice_id, "paid_by": paid_by, "mode": mode},
        )
        return self.entities.find(EntityType.PAYMENT, predicate)

    def get_payment(self, payment_id: int, principal: Principal) -> Payment:
        """Get payment by ID"""
        return self.access.fetch(principal, "view_payment", EntityType.PAYMENT, payment_id)

    def record_payment(self, data: PaymentCreate, principal: Principal) -> Payment:
        """
        Record a payment and recompute the invoice's payment status.

        The payer is the invoice's client; the receiver is the invoice's
        tenant (the caller's owner, or the invoice creator for admins).

        Raises:
            NotFoundException: If the invoice doesn't exist
            AccessDeniedException: If the invoice is outside the caller's scope
            ValidationException: If the invoice is cancelled
            ConflictException: If the transaction id was already recorded
        """
        invoice = self.access.fetch(principal, "create_payment", EntityType.INVOICE, data.invoice_id)
        if invoice.payment_status == PaymentStatus.CANCELLED:
            raise ValidationException("Cannot record a payment against a cancelled invoice")
        if data.transaction_id:
            self._ensure_unique_transaction(data.transaction_id)

        received_by = invoice.created_by if principal.is_admin else principal.tenant_id
        payment = Payment(
            invoice_id=invoice.id,
            paid_by=invoice.client_id,
            received_by=received_by,
            payment_date=data.payment_date,
            amount=data.amount,
            mode=data.mode,
            transaction_id=data.transaction_id,
            remarks=data.remarks,
        )
        payment = self.entities.save(payment)
        logger.info("Recorded payment %s of %s on invoice %s", payment.id, data.amount, invoice.id)

        self.invoices.refresh_payment_status(invoice)
        return payment

    def update_payment(self, payment_id: int, data: PaymentUpdate, principal: Principal) -> Payment:
        """
        Update a payment.

        Moving it to another invoice is authorized against that invoice too,
        and both invoices get their payment status recomputed.
        """
        payment = self.entities.require(EntityType.PAYMENT, payment_id)
        changes = data.model_dump(exclude_unset=True)

        new_invoice_id = changes.get("invoice_id")
        moving = new_invoice_id is not None and new_invoice_id != payment.invoice_id
        new_invoice = self.entities.require(EntityType.INVOICE, new_invoice_id) if moving else None
        self.access.require(
            self.access.authorize_move(
                principal,
                "update_payment",
                ResourceRef(EntityType.PAYMENT, payment_id),
                ResourceRef(EntityType.INVOICE, new_invoice_id) if moving else None,
            )
        )

        old_invoice = payment.invoice
        if moving:
            if new_invoice.payment_status == PaymentStatus.CANCELLED:
                raise ValidationException("Cannot move a payment to a cancelled invoice")
            payment.invoice = new_invoice
            payment.paid_by = new_invoice.client_id
        if "remarks" in changes:
            payment.remarks = changes["remarks"]
        if changes.get("is_verified") is not None:
            payment.is_verified = changes["is_verified"]

        payment = self.entities.save(payment)
        if moving:
            self.invoices.refresh_payment_status(old_invoice)
            self.invoices.refresh_payment_status(new_invoice)
        return payment

    def delete_payment(self, payment_id: int, principal: Principal) -> None:
        """Delete a payment and recompute its invoice's payment status"""
        payment = self.access.fetch(principal, "delete_payment", EntityType.PAYMENT, payment_id)
        invoice = payment.invoice
        self.entities.delete(payment)
        logger.info("Deleted payment %s from invoice %s", payment_id, invoice.id)
        self.invoices.refresh_payment_status(invoice)

    def _ensure_unique_transaction(self, transaction_id: str) -> None:
        existing = self.db.query(Payment).filter(Payment.transaction_id == transaction_id).first()
        if existing:
            raise ConflictException(f"Transaction {transaction_id} already recorded")
