# backend/modules/orders/routes/order_routes.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import CurrentUser
from core.database import get_db
from core.exceptions import NotFoundError
from core.tenant_context import (ResolvedTenant, get_current_tenant,
                                 get_tenant_user, require_tenant_roles)
from modules.auth.enums.auth_enums import STAFF_ROLES
from modules.realtime.services.emitter import (RealtimeEmitter,
                                               get_realtime_emitter)
from ..enums.order_enums import OrderStatus
from ..schemas.order_schemas import (OrderCreate, OrderListResponse,
                                     OrderResponse, OrderStatusUpdate,
                                     PaymentCreate, PaymentResponse,
                                     PaymentResult)
from ..services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["Orders"])

staff_only = require_tenant_roles(*STAFF_ROLES)


def order_payload(order) -> dict:
    return OrderResponse.model_validate(order).model_dump(mode="json")


@router.get("", response_model=OrderListResponse)
async def list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(staff_only),
):
    orders, pagination = OrderService(db, tenant.id).list_orders(
        status=status_filter, page=page, limit=limit
    )
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in orders],
        pagination=pagination,
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_tenant_user),
):
    order = OrderService(db, tenant.id).get_order(order_id)
    if current_user.role == "customer" and order.user_id != current_user.id:
        # Customers only see their own orders
        raise NotFoundError("Order", order_id)
    return order


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    data: OrderCreate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(get_tenant_user),
):
    """
    Create an order from the POS or a signed-in customer.

    Raises:
        400: Unknown, foreign or unavailable products, or a DELIVERY order
            without an address
    """
    user_id = current_user.id if current_user.role == "customer" else None
    order = OrderService(db, tenant.id).create_order(data, user_id=user_id)
    payload = order_payload(order)
    await emitter.notify_new_order(tenant.id, payload)
    return payload


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(staff_only),
):
    """
    Move an order through its lifecycle.

    Raises:
        400: If the transition is not allowed
    """
    order, previous = OrderService(db, tenant.id).update_status(order_id, data.status)
    if previous != order.status:
        await emitter.update_order_status(
            tenant.id,
            order.id,
            order.status,
            customer_id=order.user_id,
            order_number=order.order_number,
        )
    return order


@router.post("/{order_id}/payments", response_model=PaymentResult, status_code=status.HTTP_201_CREATED)
async def add_payment(
    order_id: int,
    data: PaymentCreate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(require_tenant_roles("admin", "manager", "vendor", "cashier")),
):
    """
    Record a payment. The first payment that settles the order books the
    sale as income and emits ``sale:new``.
    """
    service = OrderService(db, tenant.id)
    payment, record = service.add_payment(order_id, data)
    order = service.get_order(order_id)

    if record is not None:
        await emitter.notify_new_sale(
            tenant.id,
            {
                "order_id": order.id,
                "order_number": order.order_number,
                "amount": float(record.amount),
                "method": payment.method,
                "financial_record_id": record.id,
            },
        )

    return PaymentResult(
        payment=PaymentResponse.model_validate(payment),
        order=OrderResponse.model_validate(order),
        fully_paid=record is not None or order.amount_paid >= order.total_amount,
        financial_record_id=record.id if record is not None else None,
    )


@router.delete("/{order_id}", response_model=OrderResponse)
async def cancel_order(
    order_id: int,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(require_tenant_roles("admin", "manager", "cashier")),
):
    """Cancel an order. Delivered orders cannot be cancelled."""
    order = OrderService(db, tenant.id).cancel_order(order_id)
    await emitter.update_order_status(
        tenant.id,
        order.id,
        order.status,
        customer_id=order.user_id,
        order_number=order.order_number,
    )
    return order
