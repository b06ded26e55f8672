"""
Tenant export in every format and the per-row import pipeline.
"""

import io
import json
from decimal import Decimal

import openpyxl
import pytest

from core.exceptions import ValidationError
from modules.tenants.enums.tenant_enums import (ExportFormat, ImportRecordStatus,
                                                TenantStatusFilter)
from modules.tenants.models.tenant_models import Tenant
from modules.tenants.schemas.tenant_schemas import ExportConfig, ExportFilters
from modules.tenants.services.export_service import (TenantExportService,
                                                     sql_literal)
from modules.tenants.services.import_service import (TenantImportService,
                                                     detect_format)
from tests.factories import SettingFactory, TenantFactory, UserFactory


@pytest.fixture
def seeded_tenants(db_session):
    first = TenantFactory(
        slug="taco-town",
        name="Taco Town",
        plan="standard",
        theme={"primary": "#ff0000"},
        branding={"tagline": "It's taco o'clock"},
    )
    second = TenantFactory(slug="sushi-bar", name="Sushi Bar", is_active=False)
    UserFactory(tenant=first, role="admin")
    SettingFactory(tenant=first, key="store.open", value=True)
    return first, second


class TestExport:
    def test_json_export_nests_requested_relations(self, db_session, seeded_tenants):
        config = ExportConfig(
            format=ExportFormat.JSON, include_users=True, include_settings=True
        )

        export = TenantExportService(db_session).export(config)
        document = json.loads(export.content)

        assert export.record_count == 2
        assert export.filename.endswith(".json")
        taco = next(t for t in document["tenants"] if t["slug"] == "taco-town")
        assert len(taco["users"]) == 1
        assert taco["setting_entries"] == {"store.open": True}

    def test_status_filter(self, db_session, seeded_tenants):
        config = ExportConfig(
            format=ExportFormat.CSV,
            filters=ExportFilters(status=TenantStatusFilter.INACTIVE),
        )

        export = TenantExportService(db_session).export(config)
        lines = export.content.decode("utf-8").strip().splitlines()

        assert export.record_count == 1
        assert lines[0].startswith("id,name,slug")
        assert "sushi-bar" in lines[1]

    def test_xlsx_export_has_users_sheet(self, db_session, seeded_tenants):
        config = ExportConfig(format=ExportFormat.XLSX, include_users=True)

        export = TenantExportService(db_session).export(config)
        wb = openpyxl.load_workbook(io.BytesIO(export.content))

        assert wb.sheetnames == ["Tenants", "Users"]
        assert wb["Tenants"].max_row == 3
        assert wb["Users"].max_row == 2

    def test_sql_literal_escapes_quotes_and_json(self):
        assert sql_literal(None) == "NULL"
        assert sql_literal(True) == "TRUE"
        assert sql_literal("O'Brien") == "'O''Brien'"
        assert sql_literal({"b": 1, "a": "x"}) == '\'{"a": "x", "b": 1}\''


class TestImport:
    def test_csv_rows_are_validated_independently(self, db_session):
        content = (
            "name,slug,email,plan,is_active,delivery_fee\n"
            "Good One,good-one,good@one.test,basic,true,4.50\n"
            "X,Bad Slug!,not-an-email,gold,maybe,-1\n"
            "Good Two,good-two,,premium,no,0\n"
        ).encode("utf-8")

        result = TenantImportService(db_session).import_file(content, "tenants.csv")

        assert result.processed == 3
        assert result.created == 2
        assert result.failed == 1
        assert result.success is False
        failed = [r for r in result.results if r.status == ImportRecordStatus.FAILED]
        assert [r.row for r in failed] == [3]
        assert {e.row for e in result.errors} == {3}
        assert {"name", "slug", "email", "plan", "is_active", "delivery_fee"} <= {
            e.field for e in result.errors
        }

        slugs = {t.slug: t for t in db_session.query(Tenant).all()}
        assert set(slugs) == {"good-one", "good-two"}
        assert slugs["good-two"].is_active is False
        assert slugs["good-two"].plan == "premium"

    def test_existing_tenant_is_updated_by_slug(self, db_session):
        existing = TenantFactory(slug="corner-cafe", name="Corner", email=None)
        content = json.dumps(
            {"tenants": [{"name": "Corner Cafe", "slug": "corner-cafe", "plan": "standard"}]}
        ).encode("utf-8")

        result = TenantImportService(db_session).import_file(content, "export.json")

        assert result.updated == 1
        assert result.results[0].tenant_id == existing.id
        db_session.refresh(existing)
        assert existing.name == "Corner Cafe"
        assert existing.plan == "standard"

    def test_partial_columns_leave_other_fields_untouched(self, db_session):
        existing = TenantFactory(
            slug="taco-town",
            plan="premium",
            is_active=False,
            phone="+55 1",
            address="Rua A",
            delivery_fee=Decimal("7.50"),
            theme={"primary": "#123456"},
        )
        content = b"slug,name\ntaco-town,Taco Town Renamed\n"

        result = TenantImportService(db_session).import_file(content, "rename.csv")

        assert result.updated == 1
        db_session.refresh(existing)
        assert existing.name == "Taco Town Renamed"
        assert existing.is_active is False
        assert existing.plan == "premium"
        assert existing.phone == "+55 1"
        assert existing.address == "Rua A"
        assert existing.delivery_fee == Decimal("7.50")
        assert existing.theme == {"primary": "#123456"}

    def test_blank_cells_do_not_reset_stored_values(self, db_session):
        existing = TenantFactory(slug="noodle-bar", plan="standard", is_active=False)
        content = b"slug,name,plan,is_active,phone\nnoodle-bar,Noodle Bar,,,+55 2\n"

        TenantImportService(db_session).import_file(content, "noodles.csv")

        db_session.refresh(existing)
        assert existing.plan == "standard"
        assert existing.is_active is False
        assert existing.phone == "+55 2"

    def test_slug_clash_fails_only_that_row(self, db_session):
        TenantFactory(slug="taken", email="taken@x.test")
        TenantFactory(slug="mine", email="mine@x.test")
        content = json.dumps(
            [
                {"name": "Mine", "slug": "taken", "email": "mine@x.test"},
                {"name": "Fresh", "slug": "fresh"},
            ]
        ).encode("utf-8")

        result = TenantImportService(db_session).import_file(content, "rows.json")

        assert [r.status for r in result.results] == [
            ImportRecordStatus.FAILED,
            ImportRecordStatus.CREATED,
        ]
        assert db_session.query(Tenant).filter(Tenant.slug == "fresh").count() == 1

    def test_dry_run_keeps_nothing(self, db_session):
        content = b'[{"name": "Ghost Kitchen", "slug": "ghost-kitchen"}]'

        result = TenantImportService(db_session).import_file(
            content, "ghost.json", dry_run=True
        )

        assert result.dry_run is True
        assert result.created == 1
        assert db_session.query(Tenant).count() == 0

    def test_non_object_json_entries_fail_per_row(self, db_session):
        content = b'[{"name": "Valid Place", "slug": "valid-place"}, 42]'

        result = TenantImportService(db_session).import_file(content, "mixed.json")

        assert result.created == 1
        assert result.failed == 1
        assert result.errors[0].row == 2

    def test_sql_export_reimports_as_updates(self, db_session, seeded_tenants):
        export = TenantExportService(db_session).export(
            ExportConfig(format=ExportFormat.SQL, include_branding=True)
        )
        before = {t.id: (t.slug, t.is_active, t.plan) for t in db_session.query(Tenant)}

        result = TenantImportService(db_session).import_file(export.content, "dump.sql")

        assert result.success is True
        assert result.created == 0
        assert result.updated == 2
        db_session.expire_all()
        after = {t.id: (t.slug, t.is_active, t.plan) for t in db_session.query(Tenant)}
        assert after == before
        taco = db_session.query(Tenant).filter(Tenant.slug == "taco-town").one()
        assert taco.branding == {"tagline": "It's taco o'clock"}

    def test_sql_import_skips_other_statements(self, db_session):
        content = (
            "DROP TABLE tenants;\n"
            "INSERT INTO users (id, email) VALUES (1, 'a@b.test');\n"
            "INSERT INTO public.tenants (name, slug, is_active) VALUES "
            "('Deli One', 'deli-one', TRUE), ('Deli Two', 'deli-two', FALSE);\n"
        ).encode("utf-8")

        result = TenantImportService(db_session).import_file(content, "dump.sql")

        assert result.created == 2
        assert any("DROP" in w for w in result.warnings)
        assert any("users" in w for w in result.warnings)
        assert db_session.query(Tenant).count() == 2

    def test_xlsx_import(self, db_session):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Tenants"
        ws.append(["name", "slug", "plan", "is_active"])
        ws.append(["Noodle Hut", "noodle-hut", "enterprise", "yes"])
        ws.append([None, None, None, None])
        buffer = io.BytesIO()
        wb.save(buffer)

        result = TenantImportService(db_session).import_file(buffer.getvalue(), "t.xlsx")

        assert result.created == 1
        assert db_session.query(Tenant).one().plan == "enterprise"

    def test_unsupported_extension(self):
        with pytest.raises(ValidationError) as exc_info:
            detect_format("tenants.txt")
        assert exc_info.value.error == "Unsupported format"


class TestExportImportRoutes:
    def test_export_route_sets_download_headers(self, client, super_admin, auth_headers, seeded_tenants):
        response = client.post(
            "/api/admin/tenants/export",
            json={"format": "csv"},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 200
        assert response.headers["x-record-count"] == "2"
        assert "attachment" in response.headers["content-disposition"]
        assert response.headers["content-type"].startswith("text/csv")

    def test_import_route_reports_rows(self, client, super_admin, auth_headers):
        files = {
            "file": (
                "tenants.csv",
                b"name,slug\nBagel Barn,bagel-barn\nZ,?\n",
                "text/csv",
            )
        }

        response = client.post(
            "/api/admin/tenants/import",
            files=files,
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["created"] == 1
        assert body["failed"] == 1

    def test_import_route_rejects_unknown_format(self, client, super_admin, auth_headers):
        response = client.post(
            "/api/admin/tenants/import",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Unsupported format"
