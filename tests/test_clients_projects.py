from agencydesk.core.decision import DenyReason
from agencydesk.models.project import Project
from tests.conftest import bearer, create_client, create_member, create_role, grant


def create_project(db, client_id: int, name: str = "Launch") -> Project:
    project = Project(name=name, client_id=client_id)
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


def new_invoice(client, headers, client_id: int, number: str = "INV-001", **fields) -> dict:
    body = {"invoice_number": number, "client_id": client_id, "issue_date": "2026-01-15"}
    body.update(fields)
    response = client.post("/api/invoices/", json=body, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()


class TestClients:
    def test_owner_creates_client_in_own_tenant(self, client, owner_a, owner_a_headers):
        response = client.post("/api/clients/", json={"business_name": "Acme"}, headers=owner_a_headers)
        assert response.status_code == 201
        assert response.json()["added_by"] == owner_a.id

    def test_declared_owner_mismatch(self, client, owner_b, owner_a_headers):
        response = client.post(
            "/api/clients/", json={"business_name": "Acme", "added_by": owner_b.id}, headers=owner_a_headers
        )
        assert response.status_code == 403
        assert response.json()["reason"] == DenyReason.OWNER_MISMATCH.value

    def test_admin_creates_for_any_owner(self, client, owner_b, admin_headers):
        response = client.post(
            "/api/clients/", json={"business_name": "Acme", "added_by": owner_b.id}, headers=admin_headers
        )
        assert response.status_code == 201
        assert response.json()["added_by"] == owner_b.id

    def test_login_account_links_once(self, client, db_session, owner_a, owner_b, owner_a_headers):
        _, login = create_member(db_session, owner_b.id, None, "buyer@acme.test")
        body = {"business_name": "Acme", "user_id": login.id}
        assert client.post("/api/clients/", json=body, headers=owner_a_headers).status_code == 201
        assert client.post("/api/clients/", json=body, headers=owner_a_headers).status_code == 409

    def test_list_only_own_clients(self, client, db_session, owner_a, owner_b, owner_a_headers):
        mine = create_client(db_session, owner_a.id, "Mine")
        create_client(db_session, owner_b.id, "Theirs")

        response = client.get("/api/clients/", headers=owner_a_headers)
        assert [c["id"] for c in response.json()["clients"]] == [mine.id]

        response = client.get(f"/api/clients/?added_by={owner_b.id}", headers=owner_a_headers)
        assert response.status_code == 403
        assert response.json()["reason"] == DenyReason.OUT_OF_SCOPE.value

    def test_admin_lists_everything(self, client, db_session, owner_a, owner_b, admin_headers):
        create_client(db_session, owner_a.id, "Mine")
        create_client(db_session, owner_b.id, "Theirs")
        assert client.get("/api/clients/", headers=admin_headers).json()["total"] == 2
        response = client.get(f"/api/clients/?added_by={owner_b.id}", headers=admin_headers)
        assert response.json()["total"] == 1

    def test_get_other_tenant_client_denied(self, client, db_session, owner_b, owner_a_headers):
        theirs = create_client(db_session, owner_b.id)
        response = client.get(f"/api/clients/{theirs.id}", headers=owner_a_headers)
        assert response.status_code == 403

    def test_missing_client_is_not_found(self, client, owner_a_headers):
        assert client.get("/api/clients/404", headers=owner_a_headers).status_code == 404

    def test_linked_account_reads_its_own_client(self, client, db_session, owner_a, owner_b):
        # The client's contact also works on owner B's team, without client permissions
        _, login = create_member(db_session, owner_b.id, None, "buyer@acme.test")
        linked = create_client(db_session, owner_a.id, user_id=login.id)
        other = create_client(db_session, owner_a.id, "Other")

        assert client.get(f"/api/clients/{linked.id}", headers=bearer(login.id)).status_code == 200
        response = client.get(f"/api/clients/{other.id}", headers=bearer(login.id))
        assert response.json()["reason"] == DenyReason.NO_ROLE.value

    def test_owner_cannot_move_client_away(self, client, db_session, owner_a, owner_b, owner_a_headers):
        mine = create_client(db_session, owner_a.id)
        response = client.patch(
            f"/api/clients/{mine.id}", json={"added_by": owner_b.id}, headers=owner_a_headers
        )
        assert response.json()["reason"] == DenyReason.OWNER_MISMATCH.value

    def test_admin_moves_client_with_projects(self, client, db_session, owner_a, owner_b, admin_headers, owner_b_headers):
        moved = create_client(db_session, owner_a.id)
        project = create_project(db_session, moved.id)

        response = client.patch(f"/api/clients/{moved.id}", json={"added_by": owner_b.id}, headers=admin_headers)
        assert response.status_code == 200
        assert client.get(f"/api/projects/{project.id}", headers=owner_b_headers).status_code == 200

    def test_member_needs_client_permission(self, client, db_session, owner_a):
        viewer = create_role(db_session, owner_a.id, grant("view_client"), name="Viewer")
        _, login = create_member(db_session, owner_a.id, viewer.id, "viewer@agency.test")
        mine = create_client(db_session, owner_a.id)

        assert client.get(f"/api/clients/{mine.id}", headers=bearer(login.id)).status_code == 200
        response = client.patch(f"/api/clients/{mine.id}", json={"status": "inactive"}, headers=bearer(login.id))
        assert response.json()["reason"] == DenyReason.MISSING_PERMISSION.value


class TestProjects:
    def test_create_for_own_client(self, client, db_session, owner_a, owner_a_headers):
        mine = create_client(db_session, owner_a.id)
        response = client.post(
            "/api/projects/", json={"name": "Launch", "client_id": mine.id}, headers=owner_a_headers
        )
        assert response.status_code == 201
        assert response.json()["status"] == "draft"
        assert response.json()["deliverable_ids"] == []

    def test_create_for_foreign_client(self, client, db_session, owner_b, owner_a_headers):
        theirs = create_client(db_session, owner_b.id)
        response = client.post(
            "/api/projects/", json={"name": "Launch", "client_id": theirs.id}, headers=owner_a_headers
        )
        assert response.status_code == 403
        assert response.json()["reason"] == DenyReason.OUT_OF_SCOPE.value

    def test_create_for_missing_client(self, client, owner_a_headers):
        response = client.post("/api/projects/", json={"name": "Launch", "client_id": 99}, headers=owner_a_headers)
        assert response.status_code == 404

    def test_project_name_unique_per_client(self, client, db_session, owner_a, owner_a_headers):
        first = create_client(db_session, owner_a.id, "First")
        second = create_client(db_session, owner_a.id, "Second")
        create_project(db_session, first.id)

        body = {"name": "Launch", "client_id": first.id}
        assert client.post("/api/projects/", json=body, headers=owner_a_headers).status_code == 409
        body["client_id"] = second.id
        assert client.post("/api/projects/", json=body, headers=owner_a_headers).status_code == 201

    def test_move_to_foreign_client_denied(self, client, db_session, owner_a, owner_b, owner_a_headers):
        project = create_project(db_session, create_client(db_session, owner_a.id).id)
        theirs = create_client(db_session, owner_b.id)

        response = client.patch(
            f"/api/projects/{project.id}", json={"client_id": theirs.id}, headers=owner_a_headers
        )
        assert response.status_code == 403
        assert response.json()["reason"] == DenyReason.OUT_OF_SCOPE.value

    def test_move_between_own_clients(self, client, db_session, owner_a, owner_a_headers):
        project = create_project(db_session, create_client(db_session, owner_a.id, "First").id)
        second = create_client(db_session, owner_a.id, "Second")

        response = client.patch(
            f"/api/projects/{project.id}",
            json={"client_id": second.id, "status": "in_progress"},
            headers=owner_a_headers,
        )
        assert response.status_code == 200
        assert response.json()["client_id"] == second.id
        assert response.json()["status"] == "in_progress"

    def test_list_and_filter(self, client, db_session, owner_a, owner_b, owner_a_headers):
        mine = create_client(db_session, owner_a.id)
        theirs = create_client(db_session, owner_b.id)
        own_project = create_project(db_session, mine.id)
        create_project(db_session, theirs.id)

        response = client.get("/api/projects/", headers=owner_a_headers)
        assert [p["id"] for p in response.json()["projects"]] == [own_project.id]

        response = client.get(f"/api/projects/?client_id={theirs.id}", headers=owner_a_headers)
        assert response.status_code == 403

        response = client.get("/api/projects/?status=completed", headers=owner_a_headers)
        assert response.json()["total"] == 0

    def test_move_unlinks_invoices_of_previous_client(self, client, db_session, owner_a, owner_a_headers):
        first = create_client(db_session, owner_a.id, "First")
        second = create_client(db_session, owner_a.id, "Second")
        project = create_project(db_session, first.id)
        invoice = new_invoice(client, owner_a_headers, first.id, project_id=project.id)

        response = client.patch(
            f"/api/projects/{project.id}", json={"client_id": second.id}, headers=owner_a_headers
        )
        assert response.status_code == 200

        stored = client.get(f"/api/invoices/{invoice['id']}", headers=owner_a_headers).json()
        assert stored["client_id"] == first.id
        assert stored["project_id"] is None
        response = client.get(f"/api/invoices/?project_id={project.id}", headers=owner_a_headers)
        assert response.json()["total"] == 0

    def test_delete_keeps_invoices(self, client, db_session, owner_a, owner_a_headers):
        record = create_client(db_session, owner_a.id)
        project = create_project(db_session, record.id)
        invoice = new_invoice(client, owner_a_headers, record.id, project_id=project.id)

        assert client.delete(f"/api/projects/{project.id}", headers=owner_a_headers).status_code == 204
        assert client.get(f"/api/projects/{project.id}", headers=owner_a_headers).status_code == 404

        response = client.get(f"/api/invoices/{invoice['id']}", headers=owner_a_headers)
        assert response.status_code == 200
        assert response.json()["project_id"] is None

    def test_delete_requires_permission(self, client, db_session, owner_a, owner_b_headers):
        project = create_project(db_session, create_client(db_session, owner_a.id).id)
        response = client.delete(f"/api/projects/{project.id}", headers=owner_b_headers)
        assert response.json()["reason"] == DenyReason.OUT_OF_SCOPE.value

        editor = create_role(db_session, owner_a.id, grant("view_project", "update_project"), name="Editor")
        _, login = create_member(db_session, owner_a.id, editor.id, "editor@agency.test")
        response = client.delete(f"/api/projects/{project.id}", headers=bearer(login.id))
        assert response.json()["reason"] == DenyReason.MISSING_PERMISSION.value


class TestDeleteClient:
    def test_delete_unused_client(self, client, db_session, owner_a, owner_a_headers):
        record = create_client(db_session, owner_a.id)
        assert client.delete(f"/api/clients/{record.id}", headers=owner_a_headers).status_code == 204
        assert client.get(f"/api/clients/{record.id}", headers=owner_a_headers).status_code == 404

    def test_client_with_projects_or_invoices_kept(self, client, db_session, owner_a, owner_a_headers):
        with_project = create_client(db_session, owner_a.id, "Busy")
        create_project(db_session, with_project.id)
        response = client.delete(f"/api/clients/{with_project.id}", headers=owner_a_headers)
        assert response.status_code == 409

        billed = create_client(db_session, owner_a.id, "Billed")
        new_invoice(client, owner_a_headers, billed.id)
        response = client.delete(f"/api/clients/{billed.id}", headers=owner_a_headers)
        assert response.status_code == 409
        assert client.get(f"/api/clients/{billed.id}", headers=owner_a_headers).status_code == 200

    def test_other_tenant_cannot_delete(self, client, db_session, owner_a, owner_b_headers):
        record = create_client(db_session, owner_a.id)
        response = client.delete(f"/api/clients/{record.id}", headers=owner_b_headers)
        assert response.status_code == 403
        assert response.json()["reason"] == DenyReason.OUT_OF_SCOPE.value
