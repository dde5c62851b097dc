import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from agencydesk.core.access import AccessResolver, IntendedOwner, ResourceRef
from agencydesk.core.exceptions import ConflictException, ValidationException
from agencydesk.core.principal import Principal
from agencydesk.core.scope import ScopeFilterBuilder
from agencydesk.models.entity_type import EntityType
from agencydesk.models.invoice import Invoice, PaymentStatus
from agencydesk.models.payment import Payment
from agencydesk.schemas.invoice_schemas import InvoiceCreate, InvoiceUpdate

logger = logging.getLogger(__name__)


def invoice_total(subtotal: float, tax_percentage: float) -> float:
    """Total including tax, rounded to cents"""
    return round(float(subtotal) * (1 + float(tax_percentage) / 100), 2)


class InvoiceService:
    """Service layer for invoices"""

    def __init__(self, db: Session):
        self.db = db
        self.access = AccessResolver(db)
        self.scope = ScopeFilterBuilder(db, self.access)
        self.entities = self.access.entities

    def list_invoices(
        self,
        principal: Principal,
        client_id: int | None = None,
        created_by: int | None = None,
        project_id: int | None = None,
        payment_status: PaymentStatus | None = None,
    ) -> list[Invoice]:
        """
        List invoices in the principal's tenant.

        Raises:
            AccessDeniedException: If ``client_id`` or ``created_by`` is
                outside the principal's scope and matches none of its invoices
        """
        predicate = self.scope.build_filter(
            principal,
            EntityType.INVOICE,
            {
                "client_id": client_id,
                "created_by": created_by,
                "project_id": project_id,
                "payment_status": payment_status,
            },
        )
        return self.entities.find(EntityType.INVOICE, predicate)

    def get_invoice(self, invoice_id: int, principal: Principal) -> Invoice:
        """Get invoice by ID"""
        return self.access.fetch(principal, "view_invoice", EntityType.INVOICE, invoice_id)

    def create_invoice(self, data: InvoiceCreate, principal: Principal) -> Invoice:
        """
        Create an invoice.

        Both the declared ``created_by`` and the billed client must be in
        the caller's scope.

        Raises:
            NotFoundException: If the client or project doesn't exist
            AccessDeniedException: OWNER_MISMATCH or OUT_OF_SCOPE
            ValidationException: If the project belongs to another client
            ConflictException: If the invoice number is taken
        """
        owner_id = data.created_by if data.created_by is not None else principal.tenant_id
        if owner_id is None:
            raise ValidationException("created_by is required")
        self.access.check(principal, "create_invoice", IntendedOwner(owner_id))
        self.access.fetch(principal, "create_invoice", EntityType.CLIENT, data.client_id)
        if data.project_id is not None:
            self._check_project(principal, "create_invoice", data.project_id, data.client_id)
        self._ensure_unique_number(data.invoice_number)

        invoice = Invoice(
            invoice_number=data.invoice_number,
            client_id=data.client_id,
            project_id=data.project_id,
            created_by=owner_id,
            issue_date=data.issue_date,
            due_date=data.due_date,
            subtotal=data.subtotal,
            tax_percentage=data.tax_percentage,
            total=invoice_total(data.subtotal, data.tax_percentage),
            currency=data.currency.upper(),
            notes=data.notes,
        )
        invoice = self.entities.save(invoice)
        logger.info("Created invoice %s (%s)", invoice.id, invoice.invoice_number)
        return invoice

    def update_invoice(self, invoice_id: int, data: InvoiceUpdate, principal: Principal) -> Invoice:
        """
        Update an invoice.

        Reassigning ``client_id`` or ``created_by`` moves the invoice and is
        authorized against the new value too.
        """
        invoice = self.entities.require(EntityType.INVOICE, invoice_id)
        current = ResourceRef(EntityType.INVOICE, invoice_id)
        changes = data.model_dump(exclude_unset=True)
        if invoice.payment_status == PaymentStatus.CANCELLED:
            self.access.check(principal, "update_invoice", current)
            raise ValidationException("Cancelled invoices cannot be modified")

        moves = []
        new_client = changes.get("client_id")
        if new_client is not None and new_client != invoice.client_id:
            self.entities.require(EntityType.CLIENT, new_client)
            moves.append(ResourceRef(EntityType.CLIENT, new_client))
        new_owner = changes.get("created_by")
        if new_owner is not None and new_owner != invoice.created_by:
            moves.append(IntendedOwner(new_owner))

        self.access.check(principal, "update_invoice", current)
        self.access.require(self.access.authorize_all(principal, "update_invoice", moves))

        client_id = new_client if new_client is not None else invoice.client_id
        project_id = changes["project_id"] if "project_id" in changes else invoice.project_id
        if "project_id" in changes and project_id is not None:
            self._check_project(principal, "update_invoice", project_id, client_id)
        elif project_id is not None and client_id != invoice.client_id:
            # A project of the previous client cannot stay on the invoice
            project = self.entities.get(EntityType.PROJECT, project_id)
            if project is None or project.client_id != client_id:
                logger.info("Invoice %s moved to client %s; project %s cleared", invoice.id, client_id, project_id)
                project_id = None

        invoice.client_id = client_id
        invoice.project_id = project_id
        if new_owner is not None:
            invoice.created_by = new_owner

        for field in ("issue_date", "due_date", "notes"):
            if field in changes:
                setattr(invoice, field, changes[field])
        if changes.get("subtotal") is not None:
            invoice.subtotal = changes["subtotal"]
        if changes.get("tax_percentage") is not None:
            invoice.tax_percentage = changes["tax_percentage"]
        invoice.total = invoice_total(invoice.subtotal, invoice.tax_percentage)

        invoice = self.entities.save(invoice)
        return self.refresh_payment_status(invoice)

    def cancel_invoice(self, invoice_id: int, principal: Principal) -> Invoice:
        """Mark an invoice cancelled; it stays cancelled whatever is paid"""
        invoice = self.access.fetch(principal, "update_invoice", EntityType.INVOICE, invoice_id)
        invoice.payment_status = PaymentStatus.CANCELLED
        invoice = self.entities.save(invoice)
        logger.info("Cancelled invoice %s", invoice_id)
        return invoice

    def refresh_payment_status(self, invoice: Invoice) -> Invoice:
        """
        Recompute ``payment_status`` from the stored payments.

        Concurrent payment writes converge: whichever recompute runs last
        sees every committed payment.
        """
        if invoice.payment_status == PaymentStatus.CANCELLED:
            return invoice

        paid = (
            self.db.query(func.coalesce(func.sum(Payment.amount), 0))
            .filter(Payment.invoice_id == invoice.id)
            .scalar()
        )
        paid = round(float(paid), 2)
        if paid > 0 and paid >= float(invoice.total):
            status = PaymentStatus.PAID
        elif paid > 0:
            status = PaymentStatus.PARTIALLY_PAID
        else:
            status = PaymentStatus.PENDING

        if status != invoice.payment_status:
            logger.info(
                "Invoice %s payment status %s -> %s",
                invoice.id,
                invoice.payment_status.value,
                status.value,
            )
            invoice.payment_status = status
            invoice = self.entities.save(invoice)
        return invoice

    def _check_project(self, principal: Principal, action: str, project_id: int, client_id: int):
        project = self.access.fetch(principal, action, EntityType.PROJECT, project_id)
        if project.client_id != client_id:
            raise ValidationException(f"Project {project_id} does not belong to client {client_id}")

    def _ensure_unique_number(self, invoice_number: str) -> None:
        existing = (
            self.db.query(Invoice).filter(Invoice.invoice_number == invoice_number).first()
        )
        if existing:
            raise ConflictException(f"Invoice number {invoice_number} already exists")
