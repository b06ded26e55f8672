"""
Platform administration of tenants.
"""

from decimal import Decimal

from core.auth import verify_password
from modules.auth.models.user_models import User
from modules.tenants.models.tenant_models import Tenant
from tests.factories import OrderFactory, ProductFactory, TenantFactory, UserFactory


def test_tenant_admin_is_refused(client, admin_user, auth_headers):
    response = client.get("/api/admin/tenants", headers=auth_headers(admin_user))

    assert response.status_code == 403
    assert response.json()["error"] == "Forbidden"


def test_anonymous_is_refused(client):
    response = client.get("/api/admin/stats")

    assert response.status_code == 401


def test_list_tenants_with_counts_and_filters(client, super_admin, auth_headers):
    busy = TenantFactory(name="Busy Bistro", slug="busy-bistro", plan="premium")
    TenantFactory(name="Quiet Cafe", slug="quiet-cafe", is_active=False)
    UserFactory(tenant=busy)
    ProductFactory(category__tenant=busy)
    OrderFactory(tenant=busy)
    headers = auth_headers(super_admin)

    response = client.get("/api/admin/tenants", params={"status": "active"}, headers=headers)
    body = response.json()

    assert response.status_code == 200
    assert [t["slug"] for t in body["tenants"]] == ["busy-bistro"]
    entry = body["tenants"][0]
    assert (entry["users_count"], entry["orders_count"], entry["products_count"]) == (1, 1, 1)
    assert body["pagination"]["total"] == 1

    response = client.get("/api/admin/tenants", params={"search": "quiet"}, headers=headers)
    assert [t["slug"] for t in response.json()["tenants"]] == ["quiet-cafe"]

    response = client.get(
        "/api/admin/tenants",
        params={"sort_by": "name", "sort_order": "asc", "limit": 1, "page": 2},
        headers=headers,
    )
    assert [t["slug"] for t in response.json()["tenants"]] == ["quiet-cafe"]
    assert response.json()["pagination"]["pages"] == 2


def test_create_tenant_with_admin(client, db_session, super_admin, auth_headers):
    response = client.post(
        "/api/admin/tenants",
        json={
            "name": "Green Bowl",
            "slug": "green-bowl",
            "delivery_fee": "7.50",
            "plan": "standard",
            "admin_email": "Owner@GreenBowl.test",
            "admin_password": "bowls-and-greens",
        },
        headers=auth_headers(super_admin),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["slug"] == "green-bowl"
    assert body["delivery_fee"] == 7.5

    owner = db_session.query(User).filter(User.tenant_id == body["id"]).one()
    assert owner.email == "owner@greenbowl.test"
    assert owner.role == "admin"
    assert verify_password("bowls-and-greens", owner.hashed_password)


def test_create_tenant_duplicate_slug(client, super_admin, auth_headers, tenant):
    response = client.post(
        "/api/admin/tenants",
        json={"name": "Copycat", "slug": tenant.slug},
        headers=auth_headers(super_admin),
    )

    assert response.status_code == 409


def test_create_tenant_rejects_bad_slug(client, super_admin, auth_headers):
    response = client.post(
        "/api/admin/tenants",
        json={"name": "Bad", "slug": "Not A Slug"},
        headers=auth_headers(super_admin),
    )

    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "slug"


def test_update_toggle_and_delete(client, db_session, super_admin, auth_headers, tenant):
    headers = auth_headers(super_admin)

    response = client.put(
        f"/api/admin/tenants/{tenant.id}",
        json={"plan": "enterprise", "delivery_fee": "0"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["plan"] == "enterprise"

    response = client.patch(f"/api/admin/tenants/{tenant.id}/toggle-status", headers=headers)
    assert response.json()["is_active"] is False
    response = client.patch(f"/api/admin/tenants/{tenant.id}/toggle-status", headers=headers)
    assert response.json()["is_active"] is True

    response = client.delete(f"/api/admin/tenants/{tenant.id}", headers=headers)
    assert response.status_code == 200
    assert db_session.query(Tenant).filter(Tenant.id == tenant.id).count() == 0

    response = client.get(f"/api/admin/tenants/{tenant.id}", headers=headers)
    assert response.status_code == 404


def test_platform_stats(client, super_admin, auth_headers):
    first = TenantFactory(plan="basic")
    TenantFactory(plan="premium", is_active=False)
    OrderFactory(tenant=first, total_amount=Decimal("30.00"))
    OrderFactory(tenant=first, total_amount=Decimal("12.00"), status="CANCELLED")

    response = client.get("/api/admin/stats", headers=auth_headers(super_admin))
    body = response.json()

    assert body["total_tenants"] == 2
    assert body["active_tenants"] == 1
    assert body["inactive_tenants"] == 1
    assert body["tenants_by_plan"]["premium"] == 1
    assert body["tenants_by_plan"]["standard"] == 0
    assert body["total_orders"] == 2
    assert body["total_revenue"] == 30.0
    assert body["total_users"] == 1


def test_system_health(client, super_admin, auth_headers):
    response = client.get("/api/admin/system-health", headers=auth_headers(super_admin))
    body = response.json()

    assert response.status_code == 200
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert body["realtime_backplane"] == "disabled"
    assert body["realtime_connections"] == 0
