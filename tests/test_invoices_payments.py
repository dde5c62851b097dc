import pytest

from agencydesk.core.decision import DenyReason
from agencydesk.services.invoice_service import invoice_total
from tests.conftest import bearer, create_client, create_member, create_role, grant


def new_invoice(client, headers, client_id: int, number: str = "INV-001", **fields) -> dict:
    body = {"invoice_number": number, "client_id": client_id, "issue_date": "2026-01-15"}
    body.update(fields)
    response = client.post("/api/invoices/", json=body, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()


def new_project(client, headers, client_id: int, name: str = "Launch") -> dict:
    response = client.post("/api/projects/", json={"name": name, "client_id": client_id}, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()


def pay(client, headers, invoice_id: int, amount: float, **fields):
    body = {"invoice_id": invoice_id, "payment_date": "2026-02-01", "amount": amount, "mode": "BANK"}
    body.update(fields)
    return client.post("/api/payments/", json=body, headers=headers)


@pytest.fixture
def acme(db_session, owner_a):
    return create_client(db_session, owner_a.id, "Acme")


@pytest.fixture
def globex(db_session, owner_b):
    return create_client(db_session, owner_b.id, "Globex")


@pytest.mark.parametrize(
    "subtotal,tax,expected",
    [(1000, 18, 1180.0), (0, 18, 0.0), (99.99, 0, 99.99), (10, 12.5, 11.25)],
)
def test_invoice_total(subtotal, tax, expected):
    assert invoice_total(subtotal, tax) == expected


class TestInvoices:
    def test_create_computes_total(self, client, acme, owner_a, owner_a_headers):
        data = new_invoice(client, owner_a_headers, acme.id, subtotal=1000, tax_percentage=18, currency="usd")
        assert data["total"] == 1180.0
        assert data["currency"] == "USD"
        assert data["created_by"] == owner_a.id
        assert data["payment_status"] == "pending"

    def test_billing_foreign_client_denied(self, client, globex, owner_a_headers):
        body = {"invoice_number": "INV-1", "client_id": globex.id, "issue_date": "2026-01-15"}
        response = client.post("/api/invoices/", json=body, headers=owner_a_headers)
        assert response.status_code == 403
        assert response.json()["reason"] == DenyReason.OUT_OF_SCOPE.value

    def test_declared_creator_mismatch(self, client, acme, owner_b, owner_a_headers):
        body = {"invoice_number": "INV-1", "client_id": acme.id, "issue_date": "2026-01-15", "created_by": owner_b.id}
        response = client.post("/api/invoices/", json=body, headers=owner_a_headers)
        assert response.json()["reason"] == DenyReason.OWNER_MISMATCH.value

    def test_invoice_number_unique(self, client, acme, owner_a_headers):
        new_invoice(client, owner_a_headers, acme.id)
        body = {"invoice_number": "INV-001", "client_id": acme.id, "issue_date": "2026-01-15"}
        assert client.post("/api/invoices/", json=body, headers=owner_a_headers).status_code == 409

    def test_project_must_belong_to_client(self, client, db_session, acme, owner_a, owner_a_headers):
        other = create_client(db_session, owner_a.id, "Other")
        project = client.post(
            "/api/projects/", json={"name": "Launch", "client_id": other.id}, headers=owner_a_headers
        ).json()
        body = {"invoice_number": "INV-1", "client_id": acme.id, "issue_date": "2026-01-15", "project_id": project["id"]}
        assert client.post("/api/invoices/", json=body, headers=owner_a_headers).status_code == 400

    def test_move_to_foreign_client_denied(self, client, acme, globex, owner_a_headers):
        invoice = new_invoice(client, owner_a_headers, acme.id)
        response = client.patch(
            f"/api/invoices/{invoice['id']}", json={"client_id": globex.id}, headers=owner_a_headers
        )
        assert response.status_code == 403
        assert response.json()["reason"] == DenyReason.OUT_OF_SCOPE.value

    def test_update_recomputes_total(self, client, acme, owner_a_headers):
        invoice = new_invoice(client, owner_a_headers, acme.id, subtotal=100)
        response = client.patch(
            f"/api/invoices/{invoice['id']}", json={"tax_percentage": 10}, headers=owner_a_headers
        )
        assert response.status_code == 200
        assert response.json()["total"] == 110.0

    def test_cancelled_invoice_is_frozen(self, client, acme, owner_a_headers):
        invoice = new_invoice(client, owner_a_headers, acme.id)
        response = client.post(f"/api/invoices/{invoice['id']}/cancel", headers=owner_a_headers)
        assert response.json()["payment_status"] == "cancelled"

        response = client.patch(f"/api/invoices/{invoice['id']}", json={"notes": "x"}, headers=owner_a_headers)
        assert response.status_code == 400
        assert pay(client, owner_a_headers, invoice["id"], 10).status_code == 400

    def test_other_tenant_cannot_cancel(self, client, acme, owner_a_headers, owner_b_headers):
        invoice = new_invoice(client, owner_a_headers, acme.id)
        response = client.post(f"/api/invoices/{invoice['id']}/cancel", headers=owner_b_headers)
        assert response.status_code == 403

    def test_union_tenancy_visible_to_both(self, client, acme, owner_b, owner_b_headers, admin_headers):
        # Owner B issues an invoice to owner A's client (admin-arranged)
        invoice = new_invoice(client, admin_headers, acme.id, created_by=owner_b.id)
        response = client.get(f"/api/invoices/{invoice['id']}", headers=owner_b_headers)
        assert response.status_code == 200

    def test_list_filters(self, client, acme, globex, owner_a_headers, owner_b_headers):
        new_invoice(client, owner_a_headers, acme.id, "A-1")
        new_invoice(client, owner_b_headers, globex.id, "B-1")

        response = client.get("/api/invoices/", headers=owner_a_headers)
        assert [i["invoice_number"] for i in response.json()["invoices"]] == ["A-1"]

        response = client.get("/api/invoices/?payment_status=paid", headers=owner_a_headers)
        assert response.json()["total"] == 0

        response = client.get(f"/api/invoices/?client_id={globex.id}", headers=owner_a_headers)
        assert response.status_code == 403

    def test_filter_by_other_creator_on_own_clients(self, client, acme, owner_b, owner_a_headers, admin_headers):
        new_invoice(client, owner_a_headers, acme.id, "A-1")
        billed_by_b = new_invoice(client, admin_headers, acme.id, "B-1", created_by=owner_b.id)

        response = client.get(f"/api/invoices/?created_by={owner_b.id}", headers=owner_a_headers)
        assert response.status_code == 200
        assert [i["id"] for i in response.json()["invoices"]] == [billed_by_b["id"]]
        assert response.json()["total"] == 1

    def test_client_move_clears_project_of_previous_client(self, client, db_session, acme, owner_a, owner_a_headers):
        other = create_client(db_session, owner_a.id, "Other")
        project = new_project(client, owner_a_headers, acme.id)
        invoice = new_invoice(client, owner_a_headers, acme.id, project_id=project["id"])

        response = client.patch(
            f"/api/invoices/{invoice['id']}", json={"client_id": other.id}, headers=owner_a_headers
        )
        assert response.status_code == 200
        assert response.json()["client_id"] == other.id
        assert response.json()["project_id"] is None

    def test_client_move_with_matching_project(self, client, db_session, acme, owner_a, owner_a_headers):
        other = create_client(db_session, owner_a.id, "Other")
        old_project = new_project(client, owner_a_headers, acme.id, "Old")
        target = new_project(client, owner_a_headers, other.id, "New")
        invoice = new_invoice(client, owner_a_headers, acme.id, project_id=old_project["id"])

        response = client.patch(
            f"/api/invoices/{invoice['id']}",
            json={"client_id": other.id, "project_id": target["id"]},
            headers=owner_a_headers,
        )
        assert response.status_code == 200
        assert response.json()["project_id"] == target["id"]

        # A project of another client is rejected and nothing is changed
        response = client.patch(
            f"/api/invoices/{invoice['id']}",
            json={"client_id": acme.id, "project_id": target["id"]},
            headers=owner_a_headers,
        )
        assert response.status_code == 400
        stored = client.get(f"/api/invoices/{invoice['id']}", headers=owner_a_headers).json()
        assert stored["client_id"] == other.id

    def test_finance_member(self, client, db_session, acme, owner_a):
        finance = create_role(db_session, owner_a.id, grant("view_invoice", "create_invoice"), name="Finance")
        _, login = create_member(db_session, owner_a.id, finance.id, "finance@agency.test")
        headers = bearer(login.id)

        invoice = new_invoice(client, headers, acme.id)
        assert invoice["created_by"] == owner_a.id
        response = client.post(f"/api/invoices/{invoice['id']}/cancel", headers=headers)
        assert response.json()["reason"] == DenyReason.MISSING_PERMISSION.value


class TestPayments:
    def test_status_follows_payments(self, client, acme, owner_a, owner_a_headers):
        invoice = new_invoice(client, owner_a_headers, acme.id, subtotal=1000)

        response = pay(client, owner_a_headers, invoice["id"], 400, transaction_id="T-1")
        assert response.status_code == 201
        payment = response.json()
        assert payment["paid_by"] == acme.id
        assert payment["received_by"] == owner_a.id
        status = client.get(f"/api/invoices/{invoice['id']}", headers=owner_a_headers).json()["payment_status"]
        assert status == "partially_paid"

        pay(client, owner_a_headers, invoice["id"], 600, mode="UPI")
        status = client.get(f"/api/invoices/{invoice['id']}", headers=owner_a_headers).json()["payment_status"]
        assert status == "paid"

    def test_duplicate_transaction(self, client, acme, owner_a_headers):
        invoice = new_invoice(client, owner_a_headers, acme.id, subtotal=1000)
        assert pay(client, owner_a_headers, invoice["id"], 10, transaction_id="T-1").status_code == 201
        assert pay(client, owner_a_headers, invoice["id"], 10, transaction_id="T-1").status_code == 409

    def test_paying_foreign_invoice_denied(self, client, globex, owner_a_headers, owner_b_headers):
        invoice = new_invoice(client, owner_b_headers, globex.id, subtotal=100)
        response = pay(client, owner_a_headers, invoice["id"], 10)
        assert response.status_code == 403
        assert response.json()["reason"] == DenyReason.OUT_OF_SCOPE.value

    def test_admin_payment_received_by_invoice_creator(self, client, globex, owner_b, owner_b_headers, admin_headers):
        invoice = new_invoice(client, owner_b_headers, globex.id, subtotal=100)
        response = pay(client, admin_headers, invoice["id"], 100)
        assert response.json()["received_by"] == owner_b.id

    def test_move_payment_recomputes_both(self, client, acme, owner_a_headers):
        first = new_invoice(client, owner_a_headers, acme.id, "A-1", subtotal=100)
        second = new_invoice(client, owner_a_headers, acme.id, "A-2", subtotal=100)
        payment = pay(client, owner_a_headers, first["id"], 100).json()

        response = client.patch(
            f"/api/payments/{payment['id']}",
            json={"invoice_id": second["id"], "is_verified": True},
            headers=owner_a_headers,
        )
        assert response.status_code == 200
        assert response.json()["is_verified"] is True
        assert client.get(f"/api/invoices/{first['id']}", headers=owner_a_headers).json()["payment_status"] == "pending"
        assert client.get(f"/api/invoices/{second['id']}", headers=owner_a_headers).json()["payment_status"] == "paid"

    def test_move_to_foreign_invoice_denied(self, client, acme, globex, owner_a_headers, owner_b_headers):
        mine = new_invoice(client, owner_a_headers, acme.id, "A-1", subtotal=100)
        theirs = new_invoice(client, owner_b_headers, globex.id, "B-1", subtotal=100)
        payment = pay(client, owner_a_headers, mine["id"], 50).json()

        response = client.patch(
            f"/api/payments/{payment['id']}", json={"invoice_id": theirs["id"]}, headers=owner_a_headers
        )
        assert response.json()["reason"] == DenyReason.OUT_OF_SCOPE.value

    def test_list_scoped_by_payer(self, client, acme, globex, owner_a_headers, owner_b_headers):
        mine = new_invoice(client, owner_a_headers, acme.id, "A-1", subtotal=100)
        theirs = new_invoice(client, owner_b_headers, globex.id, "B-1", subtotal=100)
        pay(client, owner_a_headers, mine["id"], 50)
        pay(client, owner_b_headers, theirs["id"], 50)

        response = client.get("/api/payments/", headers=owner_a_headers)
        assert response.json()["total"] == 1

        response = client.get(f"/api/payments/?paid_by={acme.id}", headers=owner_a_headers)
        assert response.json()["total"] == 1

        response = client.get(f"/api/payments/?paid_by={globex.id}", headers=owner_a_headers)
        assert response.status_code == 403
        assert response.json()["reason"] == DenyReason.OUT_OF_SCOPE.value

        response = client.get("/api/payments/?paid_by=999", headers=owner_a_headers)
        assert response.status_code == 404

    def test_delete_recomputes_status(self, client, acme, owner_a_headers):
        invoice = new_invoice(client, owner_a_headers, acme.id, subtotal=100)
        first = pay(client, owner_a_headers, invoice["id"], 60).json()
        pay(client, owner_a_headers, invoice["id"], 40)
        assert client.get(f"/api/invoices/{invoice['id']}", headers=owner_a_headers).json()["payment_status"] == "paid"

        response = client.delete(f"/api/payments/{first['id']}", headers=owner_a_headers)
        assert response.status_code == 204
        stored = client.get(f"/api/invoices/{invoice['id']}", headers=owner_a_headers).json()
        assert stored["payment_status"] == "partially_paid"
        assert client.get(f"/api/payments/{first['id']}", headers=owner_a_headers).status_code == 404

    def test_delete_requires_permission(self, client, db_session, acme, owner_a, owner_a_headers, owner_b_headers):
        invoice = new_invoice(client, owner_a_headers, acme.id, subtotal=100)
        payment = pay(client, owner_a_headers, invoice["id"], 100).json()

        response = client.delete(f"/api/payments/{payment['id']}", headers=owner_b_headers)
        assert response.json()["reason"] == DenyReason.OUT_OF_SCOPE.value

        clerk = create_role(db_session, owner_a.id, grant("view_payment"), name="Clerk")
        _, login = create_member(db_session, owner_a.id, clerk.id, "clerk@agency.test")
        response = client.delete(f"/api/payments/{payment['id']}", headers=bearer(login.id))
        assert response.status_code == 403
        assert response.json()["reason"] == DenyReason.MISSING_PERMISSION.value
