"""
Plan catalog, usage summary and limit enforcement.
"""

import pytest

from core.exceptions import PermissionDeniedError
from modules.billing.services.billing_service import BillingService
from modules.billing.services.plan_catalog import UNLIMITED, get_plan, list_plans
from tests.factories import OrderFactory, ProductFactory, UserFactory


class TestPlanCatalog:
    def test_plans_in_price_order(self):
        plans = list_plans()

        assert [p.id for p in plans] == ["basic", "standard", "premium", "enterprise"]
        assert [p.amount for p in plans] == sorted(p.amount for p in plans)

    def test_lookup_is_case_insensitive(self):
        assert get_plan("PREMIUM").limit_for("users") == UNLIMITED
        assert get_plan("gold") is None
        assert get_plan(None) is None

    def test_plan_routes(self, client, tenant, cashier_user, auth_headers):
        headers = auth_headers(cashier_user)

        assert len(client.get("/api/billing/plans", headers=headers).json()["plans"]) == 4
        basic = client.get("/api/billing/plans/basic", headers=headers).json()
        assert basic["limits"] == {"users": 3, "products": 50, "orders": 100}
        assert client.get("/api/billing/plans/gold", headers=headers).status_code == 404


class TestBillingSummary:
    def test_summary_reports_usage(self, client, tenant, admin_user, auth_headers):
        UserFactory(tenant=tenant, is_active=False)
        ProductFactory.create_batch(2, category__tenant=tenant)
        OrderFactory(tenant=tenant)

        body = client.get("/api/billing/summary", headers=auth_headers(admin_user)).json()

        assert body["plan"]["id"] == "basic"
        assert body["amount"] == 4900
        assert body["usage"] == {"users": 1, "products": 2, "orders_this_month": 1}
        assert body["over_limit"] == []

    def test_over_limit_after_downgrade(self, client, db_session, tenant, admin_user, auth_headers):
        tenant.plan = "premium"
        db_session.commit()
        UserFactory.create_batch(4, tenant=tenant)

        response = client.put(
            "/api/billing/plan", json={"plan": "basic"}, headers=auth_headers(admin_user)
        )

        assert response.status_code == 200
        assert response.json()["over_limit"] == ["users"]

    def test_manager_cannot_change_plan(self, client, tenant, manager_user, auth_headers):
        response = client.put(
            "/api/billing/plan", json={"plan": "premium"}, headers=auth_headers(manager_user)
        )

        assert response.status_code == 403

    def test_unknown_plan_value(self, client, tenant, admin_user, auth_headers):
        response = client.put(
            "/api/billing/plan", json={"plan": "gold"}, headers=auth_headers(admin_user)
        )

        assert response.status_code == 400


class TestLimitEnforcement:
    def test_users_limit(self, db_session, tenant):
        UserFactory.create_batch(3, tenant=tenant)

        with pytest.raises(PermissionDeniedError) as exc_info:
            BillingService(db_session).ensure_within_limit(tenant.id, "users")
        assert exc_info.value.error == "Plan limit reached"

    def test_unlimited_plan(self, db_session, tenant):
        tenant.plan = "enterprise"
        db_session.commit()
        UserFactory.create_batch(5, tenant=tenant)

        BillingService(db_session).ensure_within_limit(tenant.id, "users")

    def test_unknown_stored_plan_falls_back_to_basic(self, db_session, tenant):
        tenant.plan = "legacy"
        db_session.commit()

        plan = BillingService(db_session).plan_for(tenant)

        assert plan.id == "basic"
