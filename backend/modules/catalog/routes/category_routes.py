# backend/modules/catalog/routes/category_routes.py

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import CurrentUser
from core.database import get_db
from core.response_models import MessageResponse
from core.tenant_context import (ResolvedTenant, get_current_tenant,
                                 get_tenant_user, require_tenant_roles)
from modules.realtime.services.emitter import (RealtimeEmitter,
                                               get_realtime_emitter)
from ..schemas.catalog_schemas import (CategoryCreate, CategoryResponse,
                                       CategoryUpdate, CategoryWithProducts,
                                       ProductResponse)
from ..services.catalog_service import CatalogService

router = APIRouter(prefix="/api/categories", tags=["Categories"])

catalog_managers = require_tenant_roles("admin", "manager")


def _payload(category) -> dict:
    return CategoryResponse.model_validate(category).model_dump(mode="json")


@router.get("", response_model=List[CategoryResponse])
async def list_categories(
    include_inactive: bool = Query(True),
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_tenant_user),
):
    return CatalogService(db, tenant.id).list_categories(include_inactive)


@router.get("/with-products", response_model=List[CategoryWithProducts])
async def list_categories_with_products(
    available_only: bool = Query(False),
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_tenant_user),
):
    """Active categories with their products, as the POS renders them."""
    sections = CatalogService(db, tenant.id).categories_with_products(available_only)
    return [
        CategoryWithProducts(
            **CategoryResponse.model_validate(section["category"]).model_dump(),
            products=[ProductResponse.model_validate(p) for p in section["products"]],
        )
        for section in sections
    ]


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: int,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_tenant_user),
):
    return CatalogService(db, tenant.id).get_category(category_id)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(catalog_managers),
):
    category = CatalogService(db, tenant.id).create_category(data)
    payload = _payload(category)
    await emitter.broadcast_to_tenant(tenant.id, "category-created", payload)
    return payload


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(catalog_managers),
):
    category = CatalogService(db, tenant.id).update_category(category_id, data)
    payload = _payload(category)
    await emitter.broadcast_to_tenant(tenant.id, "category-updated", payload)
    return payload


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: int,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(catalog_managers),
):
    """
    Delete an empty category.

    Raises:
        409: If products still reference the category
    """
    CatalogService(db, tenant.id).delete_category(category_id)
    await emitter.broadcast_to_tenant(tenant.id, "category-deleted", {"id": category_id})
    return MessageResponse(message=f"Category {category_id} deleted")
