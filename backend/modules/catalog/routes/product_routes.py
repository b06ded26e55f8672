# backend/modules/catalog/routes/product_routes.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import CurrentUser
from core.database import get_db
from core.response_models import MessageResponse
from core.tenant_context import (ResolvedTenant, get_current_tenant,
                                 get_tenant_user, require_tenant_roles)
from modules.realtime.services.emitter import (RealtimeEmitter,
                                               get_realtime_emitter)
from ..enums.catalog_enums import ProductSortField, SortOrder
from ..schemas.catalog_schemas import (CustomizationCreate,
                                       CustomizationResponse, ProductCreate,
                                       ProductListResponse, ProductResponse,
                                       ProductUpdate)
from ..services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["Products"])

catalog_managers = require_tenant_roles("admin", "manager")


def _payload(product) -> dict:
    return ProductResponse.model_validate(product).model_dump(mode="json")


@router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    category_id: Optional[int] = Query(None),
    is_available: Optional[bool] = Query(None),
    sort_by: ProductSortField = Query(ProductSortField.ORDER_INDEX),
    sort_order: SortOrder = Query(SortOrder.ASC),
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_tenant_user),
):
    """List the tenant's products with filters, sorting and pagination."""
    products, pagination = CatalogService(db, tenant.id).list_products(
        search=search,
        category_id=category_id,
        is_available=is_available,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products],
        pagination=pagination,
    )


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_tenant_user),
):
    return CatalogService(db, tenant.id).get_product(product_id)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(catalog_managers),
):
    """
    Create a product in one of the tenant's categories.

    Raises:
        400: If the category belongs to another tenant
        403: If the plan's product limit is reached
    """
    product = CatalogService(db, tenant.id).create_product(data)
    payload = _payload(product)
    await emitter.broadcast_to_tenant(tenant.id, "product-created", payload)
    return payload


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    data: ProductUpdate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(catalog_managers),
):
    product = CatalogService(db, tenant.id).update_product(product_id, data)
    payload = _payload(product)
    await emitter.broadcast_to_tenant(tenant.id, "product-updated", payload)
    return payload


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: int,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(catalog_managers),
):
    CatalogService(db, tenant.id).delete_product(product_id)
    await emitter.broadcast_to_tenant(tenant.id, "product-deleted", {"id": product_id})
    return MessageResponse(message=f"Product {product_id} deleted")


@router.patch("/{product_id}/toggle-availability", response_model=ProductResponse)
async def toggle_product_availability(
    product_id: int,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(require_tenant_roles("admin", "manager", "vendor", "kitchen")),
):
    """Flip ``is_available``; kitchen staff use this when an item runs out."""
    product = CatalogService(db, tenant.id).toggle_availability(product_id)
    payload = _payload(product)
    await emitter.broadcast_to_tenant(
        tenant.id,
        "product-availability-changed",
        {"id": product.id, "is_available": product.is_available},
    )
    return payload


# ========== Customizations ==========


@router.get("/{product_id}/customizations", response_model=List[CustomizationResponse])
async def list_customizations(
    product_id: int,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_tenant_user),
):
    return CatalogService(db, tenant.id).list_customizations(product_id)


@router.post(
    "/{product_id}/customizations",
    response_model=CustomizationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_customization(
    product_id: int,
    data: CustomizationCreate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(catalog_managers),
):
    service = CatalogService(db, tenant.id)
    customization = service.add_customization(product_id, data)
    await emitter.broadcast_to_tenant(
        tenant.id, "product-updated", _payload(service.get_product(product_id))
    )
    return customization


@router.delete(
    "/{product_id}/customizations/{customization_id}", response_model=MessageResponse
)
async def delete_customization(
    product_id: int,
    customization_id: int,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(catalog_managers),
):
    service = CatalogService(db, tenant.id)
    service.delete_customization(product_id, customization_id)
    await emitter.broadcast_to_tenant(
        tenant.id, "product-updated", _payload(service.get_product(product_id))
    )
    return MessageResponse(message=f"Customization {customization_id} deleted")
