# backend/modules/orders/services/order_service.py

"""
Order lifecycle for one tenant: creation, status transitions, payments and
cancellation.

Prices always come from the catalog rows, never from the request.
"""

import logging
import random
import time
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.response_models import PaginationMeta, paginate
from core.tenant_context import apply_tenant_filter
from modules.catalog.models.catalog_models import Product, ProductCustomization
from modules.financial.enums.financial_enums import (SALES_CATEGORY,
                                                     FinancialRecordType)
from modules.financial.models.financial_models import FinancialRecord
from modules.tenants.models.tenant_models import Tenant
from ..enums.order_enums import (ALLOWED_TRANSITIONS, TERMINAL_STATUSES,
                                 DeliveryType, OrderStatus, PaymentStatus)
from ..models.order_models import Order, OrderItem, Payment
from ..schemas.order_schemas import OrderCreate, PaymentCreate

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def generate_order_number() -> str:
    """``ORD`` + epoch milliseconds + three random digits."""
    return f"ORD{int(time.time() * 1000)}{random.randint(0, 999):03d}"


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, set())


class OrderService:
    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    def _orders(self):
        return apply_tenant_filter(
            self.db.query(Order).options(
                selectinload(Order.items), selectinload(Order.payments)
            ),
            Order,
            self.tenant_id,
        )

    # ========== Queries ==========

    def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Order], PaginationMeta]:
        query = self._orders()
        if status:
            query = query.filter(Order.status == status.value)
        query = query.order_by(Order.created_at.desc(), Order.id.desc())
        return paginate(query, page, limit)

    def get_order(self, order_id: int) -> Order:
        order = self._orders().filter(Order.id == order_id).first()
        if not order:
            raise NotFoundError("Order", order_id)
        return order

    def get_by_number(self, order_number: str) -> Order:
        order = self._orders().filter(Order.order_number == order_number).first()
        if not order:
            raise NotFoundError("Order", order_number)
        return order

    # ========== Creation ==========

    def _unique_order_number(self) -> str:
        for _ in range(5):
            number = generate_order_number()
            exists = (
                self.db.query(Order.id)
                .filter(Order.tenant_id == self.tenant_id, Order.order_number == number)
                .first()
            )
            if not exists:
                return number
        raise ConflictError("Could not allocate a unique order number")

    def _build_item(self, item) -> OrderItem:
        product = (
            apply_tenant_filter(self.db.query(Product), Product, self.tenant_id)
            .filter(Product.id == item.product_id)
            .first()
        )
        if product is None or not product.is_available:
            raise ValidationError(
                f"Product {item.product_id} not found or unavailable",
                error="Product not available",
            )

        unit_price = Decimal(product.price)
        chosen = []
        if item.customization_ids:
            customizations = (
                self.db.query(ProductCustomization)
                .filter(
                    ProductCustomization.id.in_(item.customization_ids),
                    ProductCustomization.product_id == product.id,
                    ProductCustomization.tenant_id == self.tenant_id,
                )
                .all()
            )
            found = {c.id: c for c in customizations}
            missing = [cid for cid in item.customization_ids if cid not in found]
            unavailable = [c.id for c in customizations if not c.is_available]
            if missing or unavailable:
                raise ValidationError(
                    f"Invalid customizations for product {product.id}: "
                    f"{sorted(set(missing + unavailable))}",
                    error="Customization not available",
                )
            for cid in item.customization_ids:
                customization = found[cid]
                unit_price += Decimal(customization.price)
                chosen.append(
                    {
                        "id": customization.id,
                        "name": customization.name,
                        "type": customization.type,
                        "price": float(customization.price),
                    }
                )

        unit_price = unit_price.quantize(CENT)
        return OrderItem(
            product_id=product.id,
            product_name=product.name,
            quantity=item.quantity,
            unit_price=unit_price,
            total_price=(unit_price * item.quantity).quantize(CENT),
            notes=item.notes,
            customizations=chosen or None,
        )

    def create_order(self, data: OrderCreate, user_id: Optional[int] = None) -> Order:
        """Price the items from the catalog and persist a PENDING order."""
        tenant = self.db.query(Tenant).filter(Tenant.id == self.tenant_id).first()
        if tenant is None:
            raise NotFoundError("Tenant", self.tenant_id)

        items = [self._build_item(item) for item in data.items]
        subtotal = sum((i.total_price for i in items), Decimal("0"))
        delivery_fee = (
            Decimal(tenant.delivery_fee or 0)
            if data.delivery_type == DeliveryType.DELIVERY
            else Decimal("0")
        )

        order = Order(
            tenant_id=self.tenant_id,
            order_number=self._unique_order_number(),
            user_id=user_id,
            customer_name=data.customer_name,
            customer_phone=data.customer_phone,
            customer_email=data.customer_email,
            delivery_type=data.delivery_type.value,
            delivery_address=data.delivery_address,
            status=OrderStatus.PENDING.value,
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            total_amount=(subtotal + delivery_fee).quantize(CENT),
            notes=data.notes,
            items=items,
        )
        self.db.add(order)
        self.db.commit()
        logger.info(
            f"Tenant {self.tenant_id} order {order.order_number} created "
            f"({len(items)} items, total {order.total_amount})"
        )
        return self.get_order(order.id)

    # ========== Lifecycle ==========

    def update_status(self, order_id: int, new_status: OrderStatus) -> Tuple[Order, str]:
        """Apply a validated transition; returns the order and its previous status."""
        order = self.get_order(order_id)
        current = OrderStatus(order.status)
        if current == new_status:
            return order, current.value

        if current in TERMINAL_STATUSES:
            raise ValidationError(
                f"Order {order.order_number} is {current.value} and can no longer change",
                error="Invalid status transition",
            )
        if not can_transition(current, new_status):
            raise ValidationError(
                f"Cannot move order from {current.value} to {new_status.value}",
                error="Invalid status transition",
            )

        order.status = new_status.value
        self.db.commit()
        logger.info(
            f"Tenant {self.tenant_id} order {order.order_number}: "
            f"{current.value} -> {new_status.value}"
        )
        return self.get_order(order_id), current.value

    def cancel_order(self, order_id: int) -> Order:
        order, _ = self.update_status(order_id, OrderStatus.CANCELLED)
        return order

    def add_payment(
        self, order_id: int, data: PaymentCreate
    ) -> Tuple[Payment, Optional[FinancialRecord]]:
        """
        Record a payment against an order.

        When the paid payments first cover the order total an INCOME record
        is written in the same transaction and returned.
        """
        order = self.get_order(order_id)
        if order.status == OrderStatus.CANCELLED.value:
            raise ValidationError(
                f"Order {order.order_number} is cancelled", error="Order cancelled"
            )

        total = Decimal(order.total_amount)
        already_paid = Decimal(order.amount_paid)
        if already_paid >= total:
            raise ConflictError(f"Order {order.order_number} is already paid")

        amount = data.amount if data.amount is not None else total - already_paid
        payment = Payment(
            tenant_id=self.tenant_id,
            order_id=order.id,
            method=data.method.value,
            amount=Decimal(amount).quantize(CENT),
            status=data.status.value,
            transaction_id=data.transaction_id,
        )
        self.db.add(payment)
        self.db.flush()

        record = None
        paid_now = already_paid + (
            payment.amount if payment.status == PaymentStatus.PAID.value else 0
        )
        if paid_now >= total:
            record = FinancialRecord(
                tenant_id=self.tenant_id,
                type=FinancialRecordType.INCOME.value,
                category=SALES_CATEGORY,
                description=f"Order {order.order_number}",
                amount=total,
                date=date.today(),
                order_id=order.id,
            )
            self.db.add(record)

        self.db.commit()
        self.db.refresh(payment)
        if record is not None:
            self.db.refresh(record)
            logger.info(
                f"Tenant {self.tenant_id} order {order.order_number} fully paid; "
                f"income record {record.id}"
            )
        return payment, record
