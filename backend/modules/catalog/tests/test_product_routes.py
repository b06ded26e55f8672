"""
Product and customization endpoints.
"""

from decimal import Decimal

import pytest

from tests.factories import CategoryFactory, CustomizationFactory, ProductFactory


@pytest.fixture
def category(tenant):
    return CategoryFactory(tenant=tenant, name="Burgers")


class TestProductCrud:
    def test_create_with_customizations(self, client, category, admin_user, auth_headers):
        response = client.post(
            "/api/products",
            json={
                "category_id": category.id,
                "name": "Double Smash",
                "price": "32.90",
                "preparation_time": 12,
                "customizations": [
                    {"name": "Bacon", "price": "4.00"},
                    {"name": "No onion", "type": "REMOVAL"},
                ],
            },
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["price"] == 32.9
        assert body["tenant_id"] == category.tenant_id
        assert sorted(c["type"] for c in body["customizations"]) == ["ADDITION", "REMOVAL"]

    def test_negative_price_is_rejected(self, client, category, admin_user, auth_headers):
        response = client.post(
            "/api/products",
            json={"category_id": category.id, "name": "Free money", "price": "-1"},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "price"

    def test_unknown_category(self, client, tenant, admin_user, auth_headers):
        response = client.post(
            "/api/products",
            json={"category_id": 999, "name": "Orphan", "price": "10"},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid category"

    def test_plan_product_limit(self, client, category, admin_user, auth_headers):
        ProductFactory.create_batch(50, category=category)

        response = client.post(
            "/api/products",
            json={"category_id": category.id, "name": "One too many", "price": "10"},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Plan limit reached"

    def test_update_keeps_required_fields(self, client, category, admin_user, auth_headers):
        product = ProductFactory(category=category, name="Classic")

        response = client.put(
            f"/api/products/{product.id}",
            json={"name": None, "price": "25.00", "description": None},
            headers=auth_headers(admin_user),
        )

        body = response.json()
        assert body["name"] == "Classic"
        assert body["price"] == 25.0
        assert body["description"] is None

    def test_delete(self, client, category, manager_user, auth_headers):
        product = ProductFactory(category=category)
        headers = auth_headers(manager_user)

        assert client.delete(f"/api/products/{product.id}", headers=headers).status_code == 200
        assert client.get(f"/api/products/{product.id}", headers=headers).status_code == 404

    def test_customer_cannot_edit(self, client, category, customer_user, auth_headers):
        product = ProductFactory(category=category)

        response = client.delete(f"/api/products/{product.id}", headers=auth_headers(customer_user))

        assert response.status_code == 403


class TestProductListing:
    def test_filters_sorting_and_pagination(self, client, category, cashier_user, auth_headers):
        ProductFactory(category=category, name="Veggie", price=Decimal("18.00"), is_available=False)
        ProductFactory(category=category, name="Bacon Burger", price=Decimal("29.00"))
        ProductFactory(category=category, name="Cheese Burger", price=Decimal("24.00"))
        headers = auth_headers(cashier_user)

        response = client.get(
            "/api/products",
            params={"search": "burger", "sort_by": "price", "sort_order": "desc"},
            headers=headers,
        )
        assert [p["name"] for p in response.json()["products"]] == ["Bacon Burger", "Cheese Burger"]

        response = client.get("/api/products", params={"is_available": False}, headers=headers)
        assert [p["name"] for p in response.json()["products"]] == ["Veggie"]

        response = client.get(
            "/api/products", params={"sort_by": "name", "limit": 2, "page": 2}, headers=headers
        )
        body = response.json()
        assert [p["name"] for p in body["products"]] == ["Veggie"]
        assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}

    def test_category_filter(self, client, tenant, category, cashier_user, auth_headers):
        drinks = CategoryFactory(tenant=tenant, name="Drinks")
        ProductFactory(category=drinks, name="Soda")
        ProductFactory(category=category)

        response = client.get(
            "/api/products", params={"category_id": drinks.id}, headers=auth_headers(cashier_user)
        )

        assert [p["name"] for p in response.json()["products"]] == ["Soda"]


class TestAvailability:
    def test_toggle_twice_restores_state(self, client, category, kitchen_user, auth_headers):
        product = ProductFactory(category=category, is_available=True)
        headers = auth_headers(kitchen_user)
        url = f"/api/products/{product.id}/toggle-availability"

        assert client.patch(url, headers=headers).json()["is_available"] is False
        assert client.patch(url, headers=headers).json()["is_available"] is True

    def test_toggle_is_broadcast(self, client, category, kitchen_user, auth_headers, access_token):
        product = ProductFactory(category=category)

        with client.websocket_connect(f"/ws?token={access_token(kitchen_user)}") as ws:
            ws.receive_json()
            client.patch(
                f"/api/products/{product.id}/toggle-availability",
                headers=auth_headers(kitchen_user),
            )
            frame = ws.receive_json()

        assert frame == {
            "event": "product-availability-changed",
            "data": {"id": product.id, "is_available": False},
        }

    def test_cashier_cannot_toggle(self, client, category, cashier_user, auth_headers):
        product = ProductFactory(category=category)

        response = client.patch(
            f"/api/products/{product.id}/toggle-availability", headers=auth_headers(cashier_user)
        )

        assert response.status_code == 403


class TestCustomizations:
    def test_add_list_and_delete(self, client, category, admin_user, auth_headers):
        product = ProductFactory(category=category)
        headers = auth_headers(admin_user)
        base = f"/api/products/{product.id}/customizations"

        created = client.post(base, json={"name": "Pickles", "price": "1.50"}, headers=headers)
        assert created.status_code == 201
        assert created.json()["type"] == "ADDITION"

        assert [c["name"] for c in client.get(base, headers=headers).json()] == ["Pickles"]

        customization_id = created.json()["id"]
        assert client.delete(f"{base}/{customization_id}", headers=headers).status_code == 200
        assert client.get(base, headers=headers).json() == []

    def test_delete_customization_of_other_product(self, client, category, admin_user, auth_headers):
        product = ProductFactory(category=category)
        foreign = CustomizationFactory(product__category=category)

        response = client.delete(
            f"/api/products/{product.id}/customizations/{foreign.id}",
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 404
