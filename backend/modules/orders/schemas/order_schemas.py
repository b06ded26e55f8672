# backend/modules/orders/schemas/order_schemas.py

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import (BaseModel, ConfigDict, EmailStr, Field, field_validator,
                      model_validator)

from core.response_models import PaginationMeta
from ..enums.order_enums import (DeliveryType, OrderStatus, PaymentMethod,
                                 PaymentStatus)


class DeliveryAddress(BaseModel):
    street: str
    number: str
    neighborhood: Optional[str] = None
    city: str
    state: Optional[str] = None
    zip_code: Optional[str] = None
    complement: Optional[str] = None

    def as_text(self) -> str:
        parts = [f"{self.street}, {self.number}"]
        if self.complement:
            parts.append(self.complement)
        if self.neighborhood:
            parts.append(self.neighborhood)
        parts.append(f"{self.city}" + (f"/{self.state}" if self.state else ""))
        if self.zip_code:
            parts.append(self.zip_code)
        return " - ".join(parts)


class OrderItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1, le=100)
    customization_ids: List[int] = []
    notes: Optional[str] = Field(None, max_length=500)


class OrderCreate(BaseModel):
    customer_name: Optional[str] = Field(None, max_length=200)
    customer_phone: Optional[str] = Field(None, max_length=50)
    customer_email: Optional[EmailStr] = None
    delivery_type: DeliveryType = DeliveryType.PICKUP
    delivery_address: Optional[Union[str, DeliveryAddress]] = None
    notes: Optional[str] = Field(None, max_length=1000)
    items: List[OrderItemCreate] = Field(..., min_length=1)

    @field_validator("delivery_address")
    @classmethod
    def flatten_address(cls, v):
        if isinstance(v, DeliveryAddress):
            return v.as_text()
        if isinstance(v, str):
            return v.strip() or None
        return v

    @model_validator(mode="after")
    def require_address_for_delivery(self):
        if self.delivery_type == DeliveryType.DELIVERY and not self.delivery_address:
            raise ValueError("delivery_address is required for DELIVERY orders")
        return self


class PublicOrderCreate(OrderCreate):
    customer_name: str = Field(..., min_length=1, max_length=200)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class PaymentCreate(BaseModel):
    method: PaymentMethod
    amount: Optional[Decimal] = Field(
        None, gt=0, description="Defaults to the outstanding balance"
    )
    status: PaymentStatus = PaymentStatus.PAID
    transaction_id: Optional[str] = Field(None, max_length=100)


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: Optional[int] = None
    product_name: str
    quantity: int
    unit_price: float
    total_price: float
    notes: Optional[str] = None
    customizations: Optional[List[Dict[str, Any]]] = None


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    method: str
    amount: float
    status: str
    transaction_id: Optional[str] = None
    created_at: datetime


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    order_number: str
    user_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    delivery_type: str
    delivery_address: Optional[str] = None
    status: str
    subtotal: float
    delivery_fee: float
    total_amount: float
    amount_paid: float
    notes: Optional[str] = None
    items: List[OrderItemResponse] = []
    payments: List[PaymentResponse] = []
    created_at: datetime
    updated_at: datetime


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]
    pagination: PaginationMeta


class PaymentResult(BaseModel):
    payment: PaymentResponse
    order: OrderResponse
    fully_paid: bool
    financial_record_id: Optional[int] = None


class OrderTrackingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    order_number: str
    status: str
    customer_name: Optional[str] = None
    delivery_type: str
    total_amount: float
    items: List[OrderItemResponse] = []
    created_at: datetime
    updated_at: datetime
