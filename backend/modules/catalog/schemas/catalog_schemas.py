# backend/modules/catalog/schemas/catalog_schemas.py

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.response_models import PaginationMeta
from ..enums.catalog_enums import CustomizationType


# ========== Customizations ==========


class CustomizationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: CustomizationType = CustomizationType.ADDITION
    price: Decimal = Field(Decimal("0"), ge=0)
    is_available: bool = True


class CustomizationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    name: str
    type: str
    price: float
    is_available: bool


# ========== Categories ==========


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    order_index: int = Field(0, ge=0)
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    order_index: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    name: str
    description: Optional[str] = None
    order_index: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ========== Products ==========


class ProductCreate(BaseModel):
    category_id: int
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = Field(None, max_length=500)
    is_available: bool = True
    order_index: int = Field(0, ge=0)
    preparation_time: Optional[int] = Field(None, ge=0)
    customizations: List[CustomizationCreate] = []


class ProductUpdate(BaseModel):
    category_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = Field(None, max_length=500)
    is_available: Optional[bool] = None
    order_index: Optional[int] = Field(None, ge=0)
    preparation_time: Optional[int] = Field(None, ge=0)


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    category_id: int
    name: str
    description: Optional[str] = None
    price: float
    image_url: Optional[str] = None
    is_available: bool
    order_index: int
    preparation_time: Optional[int] = None
    customizations: List[CustomizationResponse] = []
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    products: List[ProductResponse]
    pagination: PaginationMeta


class CategoryWithProducts(CategoryResponse):
    products: List[ProductResponse] = []
