# backend/tests/factories/order.py

from decimal import Decimal

import factory
from factory import Sequence, SubFactory

from modules.orders.models.order_models import Order, OrderItem
from .base import BaseFactory
from .tenant import TenantFactory


class OrderFactory(BaseFactory):
    """Factory for creating orders priced at a flat total."""

    class Meta:
        model = Order

    tenant = SubFactory(TenantFactory)
    order_number = Sequence(lambda n: f"ORD{1700000000000 + n}001")
    customer_name = "Walk-in"
    delivery_type = "PICKUP"
    status = "PENDING"
    subtotal = Decimal("40.00")
    delivery_fee = Decimal("0.00")
    total_amount = Decimal("40.00")


class OrderItemFactory(BaseFactory):
    class Meta:
        model = OrderItem

    order = SubFactory(OrderFactory)
    product_id = None
    product_name = "Burger"
    quantity = 2
    unit_price = Decimal("20.00")
    total_price = factory.LazyAttribute(lambda obj: obj.unit_price * obj.quantity)
