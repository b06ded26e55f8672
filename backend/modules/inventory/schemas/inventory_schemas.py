# backend/modules/inventory/schemas/inventory_schemas.py

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class InventoryItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    quantity: Decimal = Field(Decimal("0"), ge=0)
    min_quantity: Decimal = Field(Decimal("0"), ge=0)
    unit: str = Field("un", min_length=1, max_length=20)
    cost: Optional[Decimal] = Field(None, ge=0)
    supplier: Optional[str] = Field(None, max_length=200)


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    quantity: Optional[Decimal] = Field(None, ge=0)
    min_quantity: Optional[Decimal] = Field(None, ge=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=20)
    cost: Optional[Decimal] = Field(None, ge=0)
    supplier: Optional[str] = Field(None, max_length=200)


class StockAdjustment(BaseModel):
    delta: Decimal = Field(..., description="Positive to add stock, negative to consume")
    reason: Optional[str] = Field(None, max_length=200)


class InventoryItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    name: str
    description: Optional[str] = None
    quantity: float
    min_quantity: float
    unit: str
    cost: Optional[float] = None
    supplier: Optional[str] = None
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime


class InventoryListResponse(BaseModel):
    items: List[InventoryItemResponse]
    total: int
    low_stock_count: int
