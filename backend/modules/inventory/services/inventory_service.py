# backend/modules/inventory/services/inventory_service.py

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError
from core.tenant_context import apply_tenant_filter
from ..models.inventory_models import InventoryItem
from ..schemas.inventory_schemas import (InventoryItemCreate,
                                         InventoryItemUpdate, StockAdjustment)

logger = logging.getLogger(__name__)


class InventoryService:
    """Stock items for one tenant"""

    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    def _items(self):
        return apply_tenant_filter(self.db.query(InventoryItem), InventoryItem, self.tenant_id)

    def list_items(
        self, search: Optional[str] = None, low_stock: Optional[bool] = None
    ) -> List[InventoryItem]:
        query = self._items()
        if search:
            query = query.filter(func.lower(InventoryItem.name).like(f"%{search.lower()}%"))
        if low_stock is True:
            query = query.filter(InventoryItem.quantity <= InventoryItem.min_quantity)
        elif low_stock is False:
            query = query.filter(InventoryItem.quantity > InventoryItem.min_quantity)
        return query.order_by(InventoryItem.name).all()

    def low_stock(self) -> List[InventoryItem]:
        return self.list_items(low_stock=True)

    def get_item(self, item_id: int) -> InventoryItem:
        item = self._items().filter(InventoryItem.id == item_id).first()
        if not item:
            raise NotFoundError("Inventory item", item_id)
        return item

    def create_item(self, data: InventoryItemCreate) -> InventoryItem:
        item = InventoryItem(tenant_id=self.tenant_id, **data.model_dump())
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"Tenant {self.tenant_id} created inventory item {item.id}")
        return item

    def update_item(self, item_id: int, data: InventoryItemUpdate) -> Tuple[InventoryItem, bool]:
        """Returns the item and whether it just dropped to low stock."""
        item = self.get_item(item_id)
        was_low = item.is_low_stock
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field in ("name", "quantity", "min_quantity", "unit"):
                continue
            setattr(item, field, value)
        self.db.commit()
        self.db.refresh(item)
        return item, item.is_low_stock and not was_low

    def delete_item(self, item_id: int) -> None:
        item = self.get_item(item_id)
        self.db.delete(item)
        self.db.commit()
        logger.info(f"Tenant {self.tenant_id} deleted inventory item {item_id}")

    def adjust(self, item_id: int, data: StockAdjustment) -> Tuple[InventoryItem, bool]:
        """
        Add ``delta`` to the quantity.

        Returns the item and whether this adjustment crossed below the
        minimum. Quantities never go negative.
        """
        item = self.get_item(item_id)
        was_low = item.is_low_stock
        new_quantity = Decimal(item.quantity) + data.delta
        if new_quantity < 0:
            raise ValidationError(
                f"Adjustment would leave {item.name} at {new_quantity} {item.unit}",
                error="Insufficient stock",
            )
        item.quantity = new_quantity
        self.db.commit()
        self.db.refresh(item)
        logger.info(
            f"Tenant {self.tenant_id} inventory {item.id} adjusted by {data.delta}"
            + (f" ({data.reason})" if data.reason else "")
        )
        return item, item.is_low_stock and not was_low
