from datetime import date, datetime, UTC

import pytest

from agencydesk.core.access import ResourceRef
from agencydesk.core.decision import DenyReason
from agencydesk.core.exceptions import AccessDeniedException
from agencydesk.core.principal import AdminPrincipal
from agencydesk.core.scope import ScopeFilterBuilder
from agencydesk.models.entity_type import EntityType
from agencydesk.models.invoice import Invoice
from agencydesk.models.lead import Lead
from agencydesk.models.milestone import Milestone, MilestoneUpload
from agencydesk.models.project import Project, ProjectStatus
from agencydesk.models.service import Service
from agencydesk.models.team_member import TeamMemberStatus
from tests.conftest import create_client, create_member, create_role, grant, member_principal


def save(db, entity):
    db.add(entity)
    db.commit()
    db.refresh(entity)
    return entity


def listed(builder, principal, entity_type, filters=None):
    predicate = builder.build_filter(principal, entity_type, filters)
    return [entity.id for entity in builder.entities.find(entity_type, predicate)]


@pytest.fixture
def two_tenants(db_session, owner_a, owner_b):
    """A client, project and invoice in each tenant"""
    data = {}
    for key, owner in (("a", owner_a), ("b", owner_b)):
        record = create_client(db_session, owner.id, f"Client {key}")
        project = save(db_session, Project(name=f"Project {key}", client_id=record.id))
        invoice = save(
            db_session,
            Invoice(
                invoice_number=f"INV-{key}",
                issue_date=date(2026, 2, 1),
                created_by=owner.id,
                client_id=record.id,
                project_id=project.id,
            ),
        )
        data[key] = {"client": record, "project": project, "invoice": invoice}
    return data


class TestBuildFilter:
    def test_admin_is_unrestricted(self, db_session, two_tenants):
        builder = ScopeFilterBuilder(db_session)
        predicate = builder.build_filter(AdminPrincipal(id=1), EntityType.PROJECT, {"status": None})
        assert predicate.is_unrestricted
        assert predicate.filters == {}
        assert len(listed(builder, AdminPrincipal(id=1), EntityType.PROJECT)) == 2

    def test_owner_sees_only_own_tenant(self, db_session, principal_a, two_tenants):
        builder = ScopeFilterBuilder(db_session)
        assert listed(builder, principal_a, EntityType.CLIENT) == [two_tenants["a"]["client"].id]
        assert listed(builder, principal_a, EntityType.PROJECT) == [two_tenants["a"]["project"].id]
        assert listed(builder, principal_a, EntityType.INVOICE) == [two_tenants["a"]["invoice"].id]

    def test_list_matches_single_resource_checks(self, db_session, principal_b, two_tenants):
        builder = ScopeFilterBuilder(db_session)
        access = builder.access
        visible = set(listed(builder, principal_b, EntityType.INVOICE))
        for key in ("a", "b"):
            invoice = two_tenants[key]["invoice"]
            allowed = bool(access.authorize(principal_b, "view_invoice", ResourceRef(EntityType.INVOICE, invoice.id)))
            assert allowed == (invoice.id in visible)

    def test_scoping_filter_outside_scope_denied(self, db_session, principal_a, two_tenants):
        builder = ScopeFilterBuilder(db_session)
        with pytest.raises(AccessDeniedException) as exc_info:
            builder.build_filter(
                principal_a, EntityType.PROJECT, {"client_id": two_tenants["b"]["client"].id}
            )
        assert exc_info.value.reason == DenyReason.OUT_OF_SCOPE

    def test_scoping_filter_inside_scope_narrows(self, db_session, principal_a, owner_a, two_tenants):
        other = create_client(db_session, owner_a.id, "Second")
        save(db_session, Project(name="Other", client_id=other.id))
        builder = ScopeFilterBuilder(db_session)
        ids = listed(builder, principal_a, EntityType.PROJECT, {"client_id": two_tenants["a"]["client"].id})
        assert ids == [two_tenants["a"]["project"].id]

    def test_non_scoping_filter_passes_through(self, db_session, principal_a, two_tenants):
        builder = ScopeFilterBuilder(db_session)
        assert listed(builder, principal_a, EntityType.PROJECT, {"status": ProjectStatus.COMPLETED}) == []

    def test_team_member_needs_view_permission(self, db_session, owner_a, two_tenants):
        role = create_role(db_session, owner_a.id, grant("view_client"))
        member, _ = create_member(db_session, owner_a.id, role.id, "lister@agency.test")
        builder = ScopeFilterBuilder(db_session)
        principal = member_principal(member)

        assert listed(builder, principal, EntityType.CLIENT) == [two_tenants["a"]["client"].id]
        with pytest.raises(AccessDeniedException) as exc_info:
            builder.build_filter(principal, EntityType.INVOICE)
        assert exc_info.value.reason == DenyReason.MISSING_PERMISSION

    def test_inactive_team_member_cannot_list(self, db_session, owner_a):
        role = create_role(db_session, owner_a.id, grant("view_client"))
        member, _ = create_member(db_session, owner_a.id, role.id, "gone@agency.test", status=TeamMemberStatus.INACTIVE)
        with pytest.raises(AccessDeniedException) as exc_info:
            ScopeFilterBuilder(db_session).build_filter(member_principal(member), EntityType.CLIENT)
        assert exc_info.value.reason == DenyReason.INACTIVE


class TestUnionScopes:
    def test_invoice_created_for_foreign_client_visible_to_both(self, db_session, principal_a, principal_b, owner_a, two_tenants):
        shared = save(
            db_session,
            Invoice(
                invoice_number="INV-shared",
                issue_date=date(2026, 2, 2),
                created_by=owner_a.id,
                client_id=two_tenants["b"]["client"].id,
            ),
        )
        builder = ScopeFilterBuilder(db_session)
        assert shared.id in listed(builder, principal_a, EntityType.INVOICE)
        assert shared.id in listed(builder, principal_b, EntityType.INVOICE)

    def test_milestones_listed_through_any_path(self, db_session, principal_a, owner_a, owner_b, two_tenants):
        by_invoice = save(db_session, Milestone(name="By invoice", invoice_id=two_tenants["a"]["invoice"].id))
        by_project = Milestone(name="By project")
        two_tenants["a"]["project"].deliverables.append(by_project)
        db_session.commit()
        by_upload = Milestone(name="By upload")
        by_upload.uploads = [
            MilestoneUpload(file_name="f", file_url="https://f.test/f", uploaded_by=owner_a.id, uploaded_on=datetime.now(UTC))
        ]
        save(db_session, by_upload)
        foreign = save(db_session, Milestone(name="Foreign", invoice_id=two_tenants["b"]["invoice"].id))
        orphan = save(db_session, Milestone(name="Orphan"))

        builder = ScopeFilterBuilder(db_session)
        ids = listed(builder, principal_a, EntityType.MILESTONE)
        assert ids == sorted([by_invoice.id, by_project.id, by_upload.id])
        assert foreign.id not in ids and orphan.id not in ids

        assert listed(builder, principal_a, EntityType.MILESTONE, {"uploads.uploaded_by": owner_a.id}) == [by_upload.id]
        with pytest.raises(AccessDeniedException):
            builder.build_filter(principal_a, EntityType.MILESTONE, {"uploads.uploaded_by": owner_b.id})

    def test_leads_listed_by_assignee_or_service(self, db_session, principal_a, owner_a, owner_b):
        member, _ = create_member(db_session, owner_a.id, None, "sales@agency.test")
        service_a = save(db_session, Service(name="Shoot", user_id=owner_a.id))
        service_b = save(db_session, Service(name="Edit", user_id=owner_b.id))
        assigned = save(db_session, Lead(name="Assigned", assigned_to=member.id))
        wanted = save(db_session, Lead(name="Wants shoot", looking_for=[service_a]))
        save(db_session, Lead(name="Foreign", looking_for=[service_b]))

        builder = ScopeFilterBuilder(db_session)
        assert listed(builder, principal_a, EntityType.LEAD) == [assigned.id, wanted.id]
        assert listed(builder, principal_a, EntityType.LEAD, {"looking_for.id": service_a.id}) == [wanted.id]
        with pytest.raises(AccessDeniedException):
            builder.build_filter(principal_a, EntityType.LEAD, {"looking_for.id": service_b.id})

    def test_filter_on_other_owner_matches_rows_through_another_edge(
        self, db_session, principal_a, principal_b, owner_a, owner_b, two_tenants
    ):
        shared = save(
            db_session,
            Invoice(
                invoice_number="INV-billed-by-a",
                issue_date=date(2026, 2, 3),
                created_by=owner_a.id,
                client_id=two_tenants["b"]["client"].id,
            ),
        )
        builder = ScopeFilterBuilder(db_session)
        # Owner B reaches the invoice through its client even though A created it
        assert listed(builder, principal_b, EntityType.INVOICE, {"created_by": owner_a.id}) == [shared.id]

        # No invoice on A's side was created by B
        with pytest.raises(AccessDeniedException) as exc_info:
            builder.build_filter(principal_a, EntityType.INVOICE, {"created_by": owner_b.id})
        assert exc_info.value.reason == DenyReason.OUT_OF_SCOPE
