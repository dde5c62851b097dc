from agencydesk.config import settings
from agencydesk.core.decision import DenyReason
from agencydesk.models.role import Role
from agencydesk.models.team_member import TeamMember
from tests.conftest import bearer, create_member, create_role, grant


class TestMe:
    def test_owner(self, client, owner_a, owner_a_headers):
        response = client.get("/api/auth/me", headers=owner_a_headers)
        assert response.status_code == 200
        assert response.json()["type"] == "owner"
        assert response.json()["tenant_id"] == owner_a.id

    def test_admin(self, client, admin, admin_headers):
        data = client.get("/api/auth/me", headers=admin_headers).json()
        assert data["type"] == "admin"
        assert data["tenant_id"] is None

    def test_team_member(self, client, db_session, owner_a):
        role = create_role(db_session, owner_a.id, grant("view_project"))
        member, login = create_member(db_session, owner_a.id, role.id, "m@agency.test")
        data = client.get("/api/auth/me", headers=bearer(login.id)).json()
        assert data == {
            "type": "team_member",
            "id": member.id,
            "tenant_id": owner_a.id,
            "user_id": login.id,
            "role_id": role.id,
            "status": "active",
        }


class TestPermissionGroups:
    def test_seed_defaults_admin_only(self, client, owner_a_headers, admin_headers):
        response = client.post("/api/permission-groups/seed-defaults", headers=owner_a_headers)
        assert response.status_code == 403

        response = client.post("/api/permission-groups/seed-defaults", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["permission_groups_created"] > 0
        assert response.json()["system_roles_created"] > 0

        response = client.post("/api/permission-groups/seed-defaults", headers=admin_headers)
        assert response.json() == {"permission_groups_created": 0, "system_roles_created": 0}

    def test_private_groups_hidden_from_owners(self, client, admin_headers, owner_a_headers):
        client.post("/api/permission-groups/seed-defaults", headers=admin_headers)
        owner_groups = {g["group"] for g in client.get("/api/permission-groups/", headers=owner_a_headers).json()}
        admin_groups = {g["group"] for g in client.get("/api/permission-groups/", headers=admin_headers).json()}
        assert "admin" not in owner_groups
        assert "admin" in admin_groups
        assert "project" in owner_groups

    def test_create_group(self, client, admin_headers, owner_a_headers):
        body = {
            "group": "Reports",
            "name": "Reports",
            "permissions": [{"key": "view_reports", "label": "View reports"}],
            "visibility": "public",
        }
        assert client.post("/api/permission-groups/", json=body, headers=owner_a_headers).status_code == 403

        response = client.post("/api/permission-groups/", json=body, headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["group"] == "reports"

        assert client.post("/api/permission-groups/", json=body, headers=admin_headers).status_code == 409


class TestRegisterOwner:
    def test_admin_registers_owner_with_default_roles(self, client, db_session, admin_headers):
        client.post("/api/permission-groups/seed-defaults", headers=admin_headers)
        response = client.post(
            "/api/auth/register-owner",
            json={"email": "New.Owner@Agency.test", "name": "New Owner"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "new.owner@agency.test"
        names = {role["name"] for role in data["roles"]}
        assert settings.OWNER_ADMIN_ROLE_NAME in names

        owner_admin = (
            db_session.query(Role)
            .filter(Role.created_by == data["id"], Role.name == settings.OWNER_ADMIN_ROLE_NAME)
            .one()
        )
        membership = db_session.query(TeamMember).filter(TeamMember.managed_by == data["id"]).one()
        assert membership.role_id == owner_admin.id

        # The new owner resolves as an owner, not through its membership
        me = client.get("/api/auth/me", headers=bearer(data["id"])).json()
        assert me["type"] == "owner"

    def test_duplicate_email(self, client, owner_a, admin_headers):
        response = client.post(
            "/api/auth/register-owner", json={"email": owner_a.email}, headers=admin_headers
        )
        assert response.status_code == 409

    def test_owner_cannot_register_owner(self, client, owner_a_headers):
        response = client.post(
            "/api/auth/register-owner", json={"email": "x@agency.test"}, headers=owner_a_headers
        )
        assert response.status_code == 403
        assert "reason" not in response.json()


def test_reason_codes_are_strings():
    assert DenyReason.OUT_OF_SCOPE == "OUT_OF_SCOPE"
