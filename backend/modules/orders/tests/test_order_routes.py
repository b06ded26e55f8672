"""
Order creation, lifecycle and payment endpoints.
"""

from decimal import Decimal

import pytest

from modules.financial.models.financial_models import FinancialRecord
from modules.orders.services.order_service import (can_transition,
                                                   generate_order_number)
from modules.orders.enums.order_enums import OrderStatus
from tests.factories import (CustomizationFactory, OrderFactory,
                             ProductFactory, UserFactory)


@pytest.fixture
def burger(tenant):
    return ProductFactory(category__tenant=tenant, name="Classic", price=Decimal("20.00"))


@pytest.fixture
def bacon(burger):
    return CustomizationFactory(product=burger, name="Bacon", price=Decimal("3.50"))


def place(client, headers, **overrides):
    payload = {"customer_name": "Ana", "items": []}
    payload.update(overrides)
    return client.post("/api/orders", json=payload, headers=headers)


class TestOrderCreation:
    def test_prices_come_from_catalog(self, client, burger, bacon, cashier_user, auth_headers):
        response = place(
            client,
            auth_headers(cashier_user),
            items=[
                {"product_id": burger.id, "quantity": 2, "customization_ids": [bacon.id]},
                {"product_id": burger.id, "quantity": 1, "unit_price": "0.01"},
            ],
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "PENDING"
        assert body["order_number"].startswith("ORD")
        assert [i["unit_price"] for i in body["items"]] == [23.5, 20.0]
        assert body["items"][0]["customizations"][0]["name"] == "Bacon"
        assert body["subtotal"] == 67.0
        assert body["delivery_fee"] == 0
        assert body["total_amount"] == 67.0

    def test_delivery_adds_tenant_fee(self, client, tenant, burger, cashier_user, auth_headers):
        response = place(
            client,
            auth_headers(cashier_user),
            delivery_type="DELIVERY",
            delivery_address={"street": "Rua A", "number": "10", "city": "Recife"},
            items=[{"product_id": burger.id, "quantity": 1}],
        )

        body = response.json()
        assert body["delivery_fee"] == float(tenant.delivery_fee)
        assert body["total_amount"] == 20.0 + float(tenant.delivery_fee)
        assert body["delivery_address"] == "Rua A, 10 - Recife"

    def test_delivery_requires_address(self, client, burger, cashier_user, auth_headers):
        response = place(
            client,
            auth_headers(cashier_user),
            delivery_type="DELIVERY",
            items=[{"product_id": burger.id, "quantity": 1}],
        )

        assert response.status_code == 400

    def test_empty_order_is_rejected(self, client, cashier_user, auth_headers):
        assert place(client, auth_headers(cashier_user)).status_code == 400

    def test_unavailable_product(self, client, tenant, cashier_user, auth_headers):
        sold_out = ProductFactory(category__tenant=tenant, is_available=False)

        response = place(
            client, auth_headers(cashier_user), items=[{"product_id": sold_out.id, "quantity": 1}]
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Product not available"

    def test_customization_of_other_product(self, client, tenant, burger, cashier_user, auth_headers):
        other = CustomizationFactory(product__category__tenant=tenant)

        response = place(
            client,
            auth_headers(cashier_user),
            items=[{"product_id": burger.id, "quantity": 1, "customization_ids": [other.id]}],
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Customization not available"

    def test_customer_order_is_linked_to_account(self, client, burger, customer_user, auth_headers):
        response = place(
            client, auth_headers(customer_user), items=[{"product_id": burger.id, "quantity": 1}]
        )

        assert response.json()["user_id"] == customer_user.id

    def test_new_order_reaches_kitchen(self, client, burger, cashier_user, kitchen_user,
                                       auth_headers, access_token):
        with client.websocket_connect(f"/ws?token={access_token(kitchen_user)}") as ws:
            ws.receive_json()
            order = place(
                client, auth_headers(cashier_user), items=[{"product_id": burger.id, "quantity": 1}]
            ).json()
            frame = ws.receive_json()

        assert frame["event"] == "order:new"
        assert frame["data"]["order_id"] == order["id"]
        assert frame["data"]["total"] == 20.0


class TestOrderLifecycle:
    def test_valid_transitions(self, client, tenant, kitchen_user, auth_headers):
        order = OrderFactory(tenant=tenant)
        headers = auth_headers(kitchen_user)

        for status in ("CONFIRMED", "PREPARING", "READY", "DELIVERED"):
            response = client.patch(
                f"/api/orders/{order.id}/status", json={"status": status}, headers=headers
            )
            assert response.status_code == 200
            assert response.json()["status"] == status

    def test_invalid_transition(self, client, tenant, kitchen_user, auth_headers):
        order = OrderFactory(tenant=tenant)

        response = client.patch(
            f"/api/orders/{order.id}/status",
            json={"status": "DELIVERED"},
            headers=auth_headers(kitchen_user),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid status transition"

    def test_terminal_orders_are_frozen(self, client, tenant, manager_user, auth_headers):
        order = OrderFactory(tenant=tenant, status="DELIVERED")

        response = client.delete(f"/api/orders/{order.id}", headers=auth_headers(manager_user))

        assert response.status_code == 400

    def test_cancel(self, client, tenant, cashier_user, auth_headers):
        order = OrderFactory(tenant=tenant, status="PREPARING")

        response = client.delete(f"/api/orders/{order.id}", headers=auth_headers(cashier_user))

        assert response.json()["status"] == "CANCELLED"

    def test_status_filter(self, client, tenant, cashier_user, auth_headers):
        OrderFactory(tenant=tenant, status="READY")
        OrderFactory(tenant=tenant)

        response = client.get(
            "/api/orders", params={"status": "READY"}, headers=auth_headers(cashier_user)
        )

        assert [o["status"] for o in response.json()["orders"]] == ["READY"]

    def test_customer_notified_of_status(self, client, tenant, customer_user, kitchen_user,
                                         auth_headers, access_token):
        order = OrderFactory(tenant=tenant, user_id=customer_user.id)

        with client.websocket_connect(f"/ws?token={access_token(customer_user)}") as ws:
            ws.receive_json()
            client.patch(
                f"/api/orders/{order.id}/status",
                json={"status": "CONFIRMED"},
                headers=auth_headers(kitchen_user),
            )
            frame = ws.receive_json()

        assert frame["event"] == "order:status"
        assert frame["data"]["status"] == "CONFIRMED"


class TestPayments:
    def test_full_payment_books_income(self, client, db_session, tenant, cashier_user, auth_headers):
        order = OrderFactory(tenant=tenant, total_amount=Decimal("40.00"))

        response = client.post(
            f"/api/orders/{order.id}/payments",
            json={"method": "PIX"},
            headers=auth_headers(cashier_user),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["fully_paid"] is True
        assert body["payment"]["amount"] == 40.0
        assert body["order"]["amount_paid"] == 40.0

        record = db_session.query(FinancialRecord).filter_by(id=body["financial_record_id"]).one()
        assert record.type == "INCOME"
        assert record.category == "vendas"
        assert record.amount == Decimal("40.00")
        assert record.order_id == order.id
        assert record.tenant_id == tenant.id

    def test_partial_payments(self, client, db_session, tenant, cashier_user, auth_headers):
        order = OrderFactory(tenant=tenant, total_amount=Decimal("40.00"))
        headers = auth_headers(cashier_user)
        url = f"/api/orders/{order.id}/payments"

        first = client.post(url, json={"method": "CASH", "amount": "15.00"}, headers=headers).json()
        assert first["fully_paid"] is False
        assert first["financial_record_id"] is None

        second = client.post(url, json={"method": "CASH"}, headers=headers).json()
        assert second["payment"]["amount"] == 25.0
        assert second["fully_paid"] is True
        assert db_session.query(FinancialRecord).count() == 1

        assert client.post(url, json={"method": "CASH"}, headers=headers).status_code == 409

    def test_cancelled_order_cannot_be_paid(self, client, tenant, cashier_user, auth_headers):
        order = OrderFactory(tenant=tenant, status="CANCELLED")

        response = client.post(
            f"/api/orders/{order.id}/payments", json={"method": "CASH"}, headers=auth_headers(cashier_user)
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Order cancelled"

    def test_kitchen_cannot_take_payments(self, client, tenant, kitchen_user, auth_headers):
        order = OrderFactory(tenant=tenant)

        response = client.post(
            f"/api/orders/{order.id}/payments", json={"method": "CASH"}, headers=auth_headers(kitchen_user)
        )

        assert response.status_code == 403


class TestVisibility:
    def test_customer_sees_only_own_orders(self, client, tenant, customer_user, auth_headers):
        own = OrderFactory(tenant=tenant, user_id=customer_user.id)
        someone_else = UserFactory(tenant=tenant, role="customer")
        other = OrderFactory(tenant=tenant, user_id=someone_else.id)
        headers = auth_headers(customer_user)

        assert client.get(f"/api/orders/{own.id}", headers=headers).status_code == 200
        assert client.get(f"/api/orders/{other.id}", headers=headers).status_code == 404

    def test_customer_cannot_list(self, client, customer_user, auth_headers):
        assert client.get("/api/orders", headers=auth_headers(customer_user)).status_code == 403


def test_order_number_format():
    number = generate_order_number()

    assert number.startswith("ORD")
    assert number[3:].isdigit()
    assert len(number) == 3 + 13 + 3


@pytest.mark.parametrize(
    "current,new,allowed",
    [
        (OrderStatus.PENDING, OrderStatus.CONFIRMED, True),
        (OrderStatus.PENDING, OrderStatus.READY, False),
        (OrderStatus.READY, OrderStatus.OUT_FOR_DELIVERY, True),
        (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.PREPARING, False),
        (OrderStatus.DELIVERED, OrderStatus.CANCELLED, False),
    ],
)
def test_transition_table(current, new, allowed):
    assert can_transition(current, new) is allowed
