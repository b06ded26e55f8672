# backend/modules/inventory/routes/inventory_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import CurrentUser
from core.database import get_db
from core.response_models import MessageResponse
from core.tenant_context import (ResolvedTenant, get_current_tenant,
                                 require_tenant_roles)
from modules.realtime.services.emitter import (RealtimeEmitter,
                                               get_realtime_emitter)
from ..schemas.inventory_schemas import (InventoryItemCreate,
                                         InventoryItemResponse,
                                         InventoryItemUpdate,
                                         InventoryListResponse,
                                         StockAdjustment)
from ..services.inventory_service import InventoryService

router = APIRouter(prefix="/api/inventory", tags=["Inventory"])

inventory_staff = require_tenant_roles("admin", "manager", "kitchen")
inventory_managers = require_tenant_roles("admin", "manager")


async def _emit_changes(
    emitter: RealtimeEmitter, tenant_id: int, item, crossed_low: bool, action: str
) -> dict:
    payload = InventoryItemResponse.model_validate(item).model_dump(mode="json")
    await emitter.broadcast_to_tenant(
        tenant_id, "inventory-updated", {"action": action, "item": payload}
    )
    if crossed_low:
        await emitter.broadcast_to_tenant(tenant_id, "inventory-low-stock", payload)
    return payload


@router.get("", response_model=InventoryListResponse)
async def list_inventory(
    search: Optional[str] = Query(None, max_length=100),
    low_stock: Optional[bool] = Query(None),
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(inventory_staff),
):
    items = InventoryService(db, tenant.id).list_items(search=search, low_stock=low_stock)
    return InventoryListResponse(
        items=[InventoryItemResponse.model_validate(i) for i in items],
        total=len(items),
        low_stock_count=sum(1 for i in items if i.is_low_stock),
    )


@router.get("/low-stock", response_model=List[InventoryItemResponse])
async def list_low_stock(
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(inventory_staff),
):
    """Items at or below their minimum quantity."""
    return InventoryService(db, tenant.id).low_stock()


@router.get("/{item_id}", response_model=InventoryItemResponse)
async def get_inventory_item(
    item_id: int,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(inventory_staff),
):
    return InventoryService(db, tenant.id).get_item(item_id)


@router.post("", response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
async def create_inventory_item(
    data: InventoryItemCreate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(inventory_managers),
):
    item = InventoryService(db, tenant.id).create_item(data)
    return await _emit_changes(emitter, tenant.id, item, item.is_low_stock, "created")


@router.put("/{item_id}", response_model=InventoryItemResponse)
async def update_inventory_item(
    item_id: int,
    data: InventoryItemUpdate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(inventory_managers),
):
    item, crossed_low = InventoryService(db, tenant.id).update_item(item_id, data)
    return await _emit_changes(emitter, tenant.id, item, crossed_low, "updated")


@router.post("/{item_id}/adjust", response_model=InventoryItemResponse)
async def adjust_inventory(
    item_id: int,
    data: StockAdjustment,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(inventory_staff),
):
    """
    Add or consume stock.

    Raises:
        400: If the adjustment would make the quantity negative
    """
    item, crossed_low = InventoryService(db, tenant.id).adjust(item_id, data)
    return await _emit_changes(emitter, tenant.id, item, crossed_low, "adjusted")


@router.delete("/{item_id}", response_model=MessageResponse)
async def delete_inventory_item(
    item_id: int,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(inventory_managers),
):
    InventoryService(db, tenant.id).delete_item(item_id)
    await emitter.broadcast_to_tenant(
        tenant.id, "inventory-updated", {"action": "deleted", "item": {"id": item_id}}
    )
    return MessageResponse(message=f"Inventory item {item_id} deleted")
