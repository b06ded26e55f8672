"""
Inventory endpoints and low-stock alerts.
"""

from decimal import Decimal

import pytest

from core.exceptions import ValidationError
from modules.inventory.schemas.inventory_schemas import StockAdjustment
from modules.inventory.services.inventory_service import InventoryService
from tests.factories import InventoryItemFactory


class TestInventoryRoutes:
    def test_create_and_list(self, client, tenant, manager_user, auth_headers):
        headers = auth_headers(manager_user)

        response = client.post(
            "/api/inventory",
            json={"name": "Beef patty", "quantity": "40", "min_quantity": "15", "unit": "un"},
            headers=headers,
        )
        assert response.status_code == 201
        assert response.json()["is_low_stock"] is False

        client.post(
            "/api/inventory",
            json={"name": "Buns", "quantity": "5", "min_quantity": "20"},
            headers=headers,
        )

        body = client.get("/api/inventory", headers=headers).json()
        assert body["total"] == 2
        assert body["low_stock_count"] == 1
        assert [i["name"] for i in body["items"]] == ["Beef patty", "Buns"]

    def test_low_stock_listing(self, client, tenant, kitchen_user, auth_headers):
        InventoryItemFactory(tenant=tenant, name="Lettuce", quantity=Decimal("2"))
        InventoryItemFactory(tenant=tenant, name="Tomato")

        response = client.get("/api/inventory/low-stock", headers=auth_headers(kitchen_user))

        assert [i["name"] for i in response.json()] == ["Lettuce"]

    def test_search(self, client, tenant, kitchen_user, auth_headers):
        InventoryItemFactory(tenant=tenant, name="Cheddar")
        InventoryItemFactory(tenant=tenant, name="Onion")

        response = client.get(
            "/api/inventory", params={"search": "ched"}, headers=auth_headers(kitchen_user)
        )

        assert [i["name"] for i in response.json()["items"]] == ["Cheddar"]

    def test_adjust_below_zero_is_rejected(self, client, tenant, kitchen_user, auth_headers):
        item = InventoryItemFactory(tenant=tenant, quantity=Decimal("3"))

        response = client.post(
            f"/api/inventory/{item.id}/adjust",
            json={"delta": "-4"},
            headers=auth_headers(kitchen_user),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Insufficient stock"

    def test_crossing_minimum_emits_low_stock(self, client, tenant, kitchen_user, manager_user,
                                              auth_headers, access_token):
        item = InventoryItemFactory(tenant=tenant, quantity=Decimal("12"), min_quantity=Decimal("10"))

        with client.websocket_connect(f"/ws?token={access_token(manager_user)}") as ws:
            ws.receive_json()
            response = client.post(
                f"/api/inventory/{item.id}/adjust",
                json={"delta": "-5", "reason": "dinner rush"},
                headers=auth_headers(kitchen_user),
            )
            updated = ws.receive_json()
            alert = ws.receive_json()

        assert response.json()["quantity"] == 7.0
        assert updated["event"] == "inventory-updated"
        assert updated["data"]["action"] == "adjusted"
        assert alert["event"] == "inventory-low-stock"
        assert alert["data"]["id"] == item.id

    def test_kitchen_cannot_delete(self, client, tenant, kitchen_user, auth_headers):
        item = InventoryItemFactory(tenant=tenant)

        response = client.delete(f"/api/inventory/{item.id}", headers=auth_headers(kitchen_user))

        assert response.status_code == 403

    def test_update_and_delete(self, client, tenant, admin_user, auth_headers):
        item = InventoryItemFactory(tenant=tenant)
        headers = auth_headers(admin_user)

        response = client.put(
            f"/api/inventory/{item.id}",
            json={"supplier": "Fresh Farms", "quantity": None},
            headers=headers,
        )
        assert response.json()["supplier"] == "Fresh Farms"
        assert response.json()["quantity"] == 50.0

        assert client.delete(f"/api/inventory/{item.id}", headers=headers).status_code == 200
        assert client.get(f"/api/inventory/{item.id}", headers=headers).status_code == 404


class TestInventoryService:
    def test_crossed_low_reported_once(self, db_session, tenant):
        item = InventoryItemFactory(tenant=tenant, quantity=Decimal("11"), min_quantity=Decimal("10"))
        service = InventoryService(db_session, tenant.id)

        _, crossed = service.adjust(item.id, StockAdjustment(delta=Decimal("-1")))
        assert crossed is True

        _, crossed = service.adjust(item.id, StockAdjustment(delta=Decimal("-1")))
        assert crossed is False

    def test_restock_clears_low_flag(self, db_session, tenant):
        item = InventoryItemFactory(tenant=tenant, quantity=Decimal("1"))
        service = InventoryService(db_session, tenant.id)

        updated, crossed = service.adjust(item.id, StockAdjustment(delta=Decimal("20")))

        assert crossed is False
        assert updated.is_low_stock is False

    def test_exact_zero_is_allowed(self, db_session, tenant):
        item = InventoryItemFactory(tenant=tenant, quantity=Decimal("2"))
        service = InventoryService(db_session, tenant.id)

        updated, _ = service.adjust(item.id, StockAdjustment(delta=Decimal("-2")))
        assert updated.quantity == 0

        with pytest.raises(ValidationError):
            service.adjust(item.id, StockAdjustment(delta=Decimal("-0.01")))
