import logging

from sqlalchemy.orm import Session

from agencydesk.core.access import AccessResolver, IntendedOwner, ResourceRef
from agencydesk.core.exceptions import ConflictException
from agencydesk.core.principal import OwnerPrincipal, Principal, TeamMemberPrincipal
from agencydesk.core.scope import ScopeFilterBuilder
from agencydesk.models.client import Client, ClientStatus
from agencydesk.models.entity_type import EntityType
from agencydesk.models.invoice import Invoice
from agencydesk.models.payment import Payment
from agencydesk.models.project import Project
from agencydesk.schemas.client_schemas import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)


def login_account_id(principal: Principal) -> int | None:
    """User account behind the principal (admins have none)"""
    if isinstance(principal, OwnerPrincipal):
        return principal.id
    if isinstance(principal, TeamMemberPrincipal):
        return principal.user_id
    return None


class ClientService:
    """Service layer for client records"""

    def __init__(self, db: Session):
        self.db = db
        self.access = AccessResolver(db)
        self.scope = ScopeFilterBuilder(db, self.access)
        self.entities = self.access.entities

    def list_clients(
        self,
        principal: Principal,
        added_by: int | None = None,
        status: ClientStatus | None = None,
    ) -> list[Client]:
        """List clients managed in the principal's tenant"""
        predicate = self.scope.build_filter(
            principal, EntityType.CLIENT, {"added_by": added_by, "status": status}
        )
        return self.entities.find(EntityType.CLIENT, predicate)

    def get_client(self, client_id: int, principal: Principal) -> Client:
        """
        Get client by ID.

        Besides the managing tenant, the client's own linked login account
        may read its record (self-service).

        Raises:
            NotFoundException: If client doesn't exist
            AccessDeniedException: If neither managed by nor linked to the caller
        """
        client = self.entities.require(EntityType.CLIENT, client_id)
        decision = self.access.authorize(
            principal, "view_client", ResourceRef(EntityType.CLIENT, client_id)
        )
        if not decision:
            account_id = login_account_id(principal)
            if account_id is None or account_id not in self.access.ownership.resolve_linked_accounts(client_id):
                self.access.require(decision)
        return client

    def create_client(self, data: ClientCreate, principal: Principal) -> Client:
        """
        Create a client managed by the declared owner.

        Raises:
            AccessDeniedException: OWNER_MISMATCH or a team member grant failure
            ConflictException: If the login account is already linked to a client
        """
        owner_id = data.added_by if data.added_by is not None else principal.tenant_id
        self.access.check(principal, "create_client", IntendedOwner(owner_id))

        if data.user_id is not None:
            self._ensure_unlinked(data.user_id)

        client = Client(
            business_name=data.business_name,
            status=data.status,
            added_by=owner_id,
            user_id=data.user_id,
        )
        client = self.entities.save(client)
        logger.info("Created client %s for owner %s", client.id, owner_id)
        return client

    def update_client(self, client_id: int, data: ClientUpdate, principal: Principal) -> Client:
        """
        Update a client. Changing ``added_by`` moves the client (and its
        projects) to another tenant and must be allowed on both sides.
        """
        client = self.entities.require(EntityType.CLIENT, client_id)
        changes = data.model_dump(exclude_unset=True)

        new_owner = changes.get("added_by")
        moving = "added_by" in changes and new_owner != client.added_by
        self.access.require(
            self.access.authorize_move(
                principal,
                "update_client",
                ResourceRef(EntityType.CLIENT, client_id),
                IntendedOwner(new_owner) if moving else None,
            )
        )

        if changes.get("business_name") is not None:
            client.business_name = changes["business_name"]
        if changes.get("status") is not None:
            client.status = changes["status"]
        if moving:
            client.added_by = new_owner

        return self.entities.save(client)

    def delete_client(self, client_id: int, principal: Principal) -> None:
        """
        Delete a client.

        Raises:
            ConflictException: If the client still has projects, invoices or payments
        """
        client = self.access.fetch(principal, "delete_client", EntityType.CLIENT, client_id)
        if self.db.query(Project.id).filter(Project.client_id == client_id).first():
            raise ConflictException(f"Client {client_id} still has projects")
        if self.db.query(Invoice.id).filter(Invoice.client_id == client_id).first():
            raise ConflictException(f"Client {client_id} still has invoices")
        if self.db.query(Payment.id).filter(Payment.paid_by == client_id).first():
            raise ConflictException(f"Client {client_id} still has payments")
        self.entities.delete(client)
        logger.info("Deleted client %s", client_id)

    def _ensure_unlinked(self, user_id: int) -> None:
        linked = self.db.query(Client).filter(Client.user_id == user_id).first()
        if linked:
            raise ConflictException(f"User {user_id} is already linked to client {linked.id}")
