"""
Audit trail written by platform administration and its listing API.
"""

from datetime import datetime, timedelta

import pytest

from core.auth import CurrentUser
from modules.audit.enums.audit_enums import (AuditCategory, AuditOutcome,
                                             AuditSeverity)
from modules.audit.models.audit_models import AuditLog
from modules.audit.services.audit_service import AuditService
from modules.tenants.models.tenant_models import Tenant
from tests.factories import TenantFactory


def audit_entries(db_session, action=None):
    query = db_session.query(AuditLog)
    if action:
        query = query.filter(AuditLog.action == action)
    return query.order_by(AuditLog.id).all()


class TestAdminActionsAreAudited:
    def test_bulk_deactivate(self, client, db_session, super_admin, auth_headers):
        targets = [TenantFactory(), TenantFactory()]
        ids = [t.id for t in targets]

        response = client.post(
            "/api/admin/tenants/bulk-toggle-status",
            json={"tenant_ids": ids, "active": False},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 200
        (entry,) = audit_entries(db_session, "tenant.bulk_deactivate")
        assert entry.outcome == "success"
        assert entry.severity == "high"
        assert entry.user_id == super_admin.id
        assert entry.user_email == super_admin.email
        assert entry.audit_metadata["tenant_ids"] == ids
        assert entry.audit_metadata["affected"] == 2

        listed = client.get(
            "/api/admin/audit/logs?category=update", headers=auth_headers(super_admin)
        ).json()["logs"][0]
        assert listed["action"] == "tenant.bulk_deactivate"
        assert listed["metadata"]["tenant_ids"] == ids

    def test_failed_bulk_delete_is_recorded(self, client, db_session, super_admin, auth_headers):
        keep = TenantFactory()

        response = client.post(
            "/api/admin/tenants/bulk-delete",
            json={"tenant_ids": [keep.id, 99999]},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 404
        (entry,) = audit_entries(db_session, "tenant.bulk_delete")
        assert entry.outcome == "failed"
        assert entry.severity == "critical"
        assert entry.audit_metadata == {"tenant_ids": [keep.id, 99999]}
        assert db_session.query(Tenant).filter(Tenant.id == keep.id).count() == 1

    def test_delete_entry_outlives_the_tenant(self, client, db_session, super_admin, auth_headers):
        doomed = TenantFactory(slug="closing-down", name="Closing Down")
        doomed_id = doomed.id

        response = client.delete(
            f"/api/admin/tenants/{doomed_id}", headers=auth_headers(super_admin)
        )

        assert response.status_code == 200
        listing = client.get(
            f"/api/admin/audit/logs?tenant_id={doomed_id}", headers=auth_headers(super_admin)
        ).json()
        assert [log["action"] for log in listing["logs"]] == ["tenant.delete"]
        assert listing["logs"][0]["entity_name"] == "closing-down"
        assert listing["logs"][0]["severity"] == "critical"

    def test_toggle_records_old_and_new_state(self, client, db_session, super_admin, auth_headers):
        target = TenantFactory()

        client.patch(
            f"/api/admin/tenants/{target.id}/toggle-status", headers=auth_headers(super_admin)
        )

        (entry,) = audit_entries(db_session, "tenant.toggle_status")
        assert entry.old_values == {"is_active": True}
        assert entry.new_values == {"is_active": False}
        assert entry.entity_id == str(target.id)

    def test_update_records_only_changed_fields(self, client, db_session, super_admin, auth_headers):
        target = TenantFactory(name="Old Name")

        client.put(
            f"/api/admin/tenants/{target.id}",
            json={"name": "New Name"},
            headers=auth_headers(super_admin),
        )

        (entry,) = audit_entries(db_session, "tenant.update")
        assert entry.old_values == {"name": "Old Name"}
        assert entry.new_values == {"name": "New Name"}

    def test_import_records_counts(self, client, db_session, super_admin, auth_headers):
        files = {"file": ("tenants.csv", b"name,slug\nBagel Barn,bagel-barn\n", "text/csv")}

        client.post(
            "/api/admin/tenants/import", files=files, headers=auth_headers(super_admin)
        )
        client.post(
            "/api/admin/tenants/import?dry_run=true",
            files={"file": ("again.csv", b"name,slug\nGhost,ghost-one\n", "text/csv")},
            headers=auth_headers(super_admin),
        )

        real, dry = audit_entries(db_session, "tenant.import")
        assert real.severity == "high"
        assert real.audit_metadata["created"] == 1
        assert real.audit_metadata["filename"] == "tenants.csv"
        assert dry.severity == "low"
        assert dry.audit_metadata["dry_run"] is True

    def test_rejected_import_is_recorded(self, client, db_session, super_admin, auth_headers):
        client.post(
            "/api/admin/tenants/import",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=auth_headers(super_admin),
        )

        (entry,) = audit_entries(db_session, "tenant.import")
        assert entry.outcome == "failed"

    def test_create_never_stores_the_admin_password(
        self, client, db_session, super_admin, auth_headers
    ):
        client.post(
            "/api/admin/tenants",
            json={
                "name": "Wok Star",
                "slug": "wok-star",
                "admin_email": "owner@wok.test",
                "admin_password": "s3cret-pass",
            },
            headers=auth_headers(super_admin),
        )

        (entry,) = audit_entries(db_session, "tenant.create")
        assert "admin_password" not in entry.new_values
        assert entry.new_values["admin_email"] == "owner@wok.test"


class TestAuditLogListing:
    @pytest.fixture
    def entries(self, db_session):
        service = AuditService(db_session)
        actor = CurrentUser(id=1, email="root@platform.test", name="Root", role="super_admin")
        old = service.record(
            "tenant.delete", "Deleted tenant noodle-bar", actor=actor,
            category=AuditCategory.DELETE, severity=AuditSeverity.CRITICAL,
            entity_name="noodle-bar", tenant_id=5,
        )
        old.timestamp = datetime.utcnow() - timedelta(days=10)
        db_session.commit()
        service.record(
            "tenant.toggle_status", "Deactivated tenant taco-town", actor=actor,
            category=AuditCategory.UPDATE, severity=AuditSeverity.HIGH,
            entity_name="taco-town", tenant_id=6,
        )
        service.record(
            "tenant.import", "Import of x.txt rejected", actor=None,
            outcome=AuditOutcome.FAILED, severity=AuditSeverity.LOW,
        )

    def test_newest_first_with_pagination(self, client, super_admin, auth_headers, entries):
        response = client.get("/api/admin/audit/logs?limit=2", headers=auth_headers(super_admin))

        body = response.json()
        assert response.status_code == 200
        assert [log["action"] for log in body["logs"]] == ["tenant.import", "tenant.toggle_status"]
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}

    @pytest.mark.parametrize(
        "query,expected",
        [
            ("category=delete", ["tenant.delete"]),
            ("severity=high", ["tenant.toggle_status"]),
            ("outcome=failed", ["tenant.import"]),
            ("search=TACO", ["tenant.toggle_status"]),
            ("tenant_id=5", ["tenant.delete"]),
            ("entity=tenant&user_id=1", ["tenant.toggle_status", "tenant.delete"]),
        ],
    )
    def test_filters(self, client, super_admin, auth_headers, entries, query, expected):
        response = client.get(f"/api/admin/audit/logs?{query}", headers=auth_headers(super_admin))

        assert [log["action"] for log in response.json()["logs"]] == expected

    def test_date_range(self, client, super_admin, auth_headers, entries):
        since = (datetime.utcnow() - timedelta(days=1)).date().isoformat()

        response = client.get(
            f"/api/admin/audit/logs?date_from={since}", headers=auth_headers(super_admin)
        )

        assert "tenant.delete" not in [log["action"] for log in response.json()["logs"]]

    def test_reversed_date_range_is_rejected(self, client, super_admin, auth_headers):
        response = client.get(
            "/api/admin/audit/logs?date_from=2026-05-02&date_to=2026-05-01",
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid date range"

    def test_single_entry(self, client, db_session, super_admin, auth_headers, entries):
        entry_id = audit_entries(db_session)[0].id

        assert client.get(
            f"/api/admin/audit/logs/{entry_id}", headers=auth_headers(super_admin)
        ).json()["action"] == "tenant.delete"
        assert client.get(
            "/api/admin/audit/logs/99999", headers=auth_headers(super_admin)
        ).status_code == 404

    def test_tenant_admin_is_refused(self, client, admin_user, auth_headers):
        response = client.get("/api/admin/audit/logs", headers=auth_headers(admin_user))

        assert response.status_code == 403

    def test_anonymous_is_refused(self, client):
        assert client.get("/api/admin/audit/logs").status_code == 401
