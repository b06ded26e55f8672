# backend/modules/public/routes/public_routes.py

"""
Customer-facing storefront API.

No authentication; the establishment is chosen with ``?tenant=<slug>``.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.database import get_db
from modules.orders.schemas.order_schemas import (OrderTrackingResponse,
                                                  PublicOrderCreate)
from modules.orders.services.order_service import OrderService
from modules.realtime.services.emitter import (RealtimeEmitter,
                                               get_realtime_emitter)
from modules.tenants.models.tenant_models import Tenant
from ..schemas.public_schemas import (MenuResponse, PublicOrderLookup,
                                      PublicOrderResponse, PublicTenantInfo,
                                      PublicTenantList, PublicTenantListItem)
from ..services.public_service import PublicStorefrontService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/public", tags=["Public storefront"])


def get_storefront_tenant(
    tenant: str = Query(..., min_length=1, max_length=100, description="Tenant slug"),
    db: Session = Depends(get_db),
) -> Tenant:
    """Active tenant named by ``?tenant=``; 404 if unknown, 403 if inactive."""
    return PublicStorefrontService(db).resolve_tenant(tenant)


@router.get("/tenants", response_model=PublicTenantList)
async def list_public_tenants(db: Session = Depends(get_db)):
    tenants = PublicStorefrontService(db).list_active_tenants()
    return PublicTenantList(
        tenants=[PublicTenantListItem.model_validate(t) for t in tenants],
        count=len(tenants),
    )


@router.get("/tenant", response_model=PublicTenantInfo)
async def get_public_tenant(tenant: Tenant = Depends(get_storefront_tenant)):
    """Name, contact details, branding and theme for the storefront header."""
    return tenant


@router.get("/menu", response_model=MenuResponse)
async def get_menu(
    category: Optional[int] = Query(None, description="Restrict to one category"),
    search: Optional[str] = Query(None, max_length=100),
    tenant: Tenant = Depends(get_storefront_tenant),
    db: Session = Depends(get_db),
):
    """Active categories with their available products and public settings."""
    service = PublicStorefrontService(db)
    return MenuResponse(
        tenant=PublicTenantInfo.model_validate(tenant),
        categories=service.menu(tenant, category_id=category, search=search),
        settings=service.public_settings(tenant.id),
    )


@router.post("/orders", response_model=PublicOrderResponse, status_code=status.HTTP_201_CREATED)
async def create_public_order(
    data: PublicOrderCreate,
    tenant: Tenant = Depends(get_storefront_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
):
    """
    Place an order as a guest customer.

    Raises:
        400: Unavailable products or a DELIVERY order without an address
    """
    order = OrderService(db, tenant.id).create_order(data)
    tracking = OrderTrackingResponse.model_validate(order)

    await emitter.broadcast_to_tenant(
        tenant.id,
        "new-order",
        {
            "order_id": order.id,
            "order_number": order.order_number,
            "customer_name": order.customer_name,
            "total_amount": float(order.total_amount),
            "created_at": order.created_at.isoformat(),
        },
    )
    await emitter.notify_new_order(
        tenant.id,
        {
            "id": order.id,
            "order_number": order.order_number,
            "items": [item.model_dump(mode="json") for item in tracking.items],
            "total_amount": float(order.total_amount),
            "customer_name": order.customer_name,
            "delivery_type": order.delivery_type,
        },
    )
    logger.info(f"Public order {order.order_number} placed for tenant {tenant.slug}")
    return PublicOrderResponse(order=tracking, message="Order placed successfully")


@router.get("/orders/{order_number}", response_model=PublicOrderLookup)
async def track_public_order(
    order_number: str,
    tenant: Tenant = Depends(get_storefront_tenant),
    db: Session = Depends(get_db),
):
    order = OrderService(db, tenant.id).get_by_number(order_number)
    return PublicOrderLookup(order=OrderTrackingResponse.model_validate(order))
