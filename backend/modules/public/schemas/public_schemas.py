# backend/modules/public/schemas/public_schemas.py

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from modules.catalog.schemas.catalog_schemas import CustomizationResponse
from modules.orders.schemas.order_schemas import OrderTrackingResponse


class PublicTenantInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    logo_url: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    delivery_fee: float
    theme: Optional[Dict[str, Any]] = None
    branding: Optional[Dict[str, Any]] = None


class PublicTenantListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    logo_url: Optional[str] = None
    created_at: datetime


class PublicTenantList(BaseModel):
    tenants: List[PublicTenantListItem]
    count: int


class MenuProduct(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int
    name: str
    description: Optional[str] = None
    price: float
    image_url: Optional[str] = None
    preparation_time: Optional[int] = None
    customizations: List[CustomizationResponse] = []


class MenuCategory(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    order_index: int
    products: List[MenuProduct]


class MenuResponse(BaseModel):
    tenant: PublicTenantInfo
    categories: List[MenuCategory]
    settings: Dict[str, Any]


class PublicOrderResponse(BaseModel):
    order: OrderTrackingResponse
    message: str


class PublicOrderLookup(BaseModel):
    order: OrderTrackingResponse
