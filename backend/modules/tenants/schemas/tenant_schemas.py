# backend/modules/tenants/schemas/tenant_schemas.py

"""
Schemas for tenant administration, bulk operations and export/import.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import (BaseModel, ConfigDict, EmailStr, Field, field_validator,
                      model_validator)

from core.response_models import PaginationMeta
from ..enums.tenant_enums import (ExportFormat, ImportRecordStatus, TenantPlan,
                                  TenantStatusFilter)

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


# ========== Tenant CRUD ==========


class TenantBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    slug: str = Field(..., min_length=2, max_length=100, pattern=SLUG_PATTERN)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    logo_url: Optional[str] = Field(None, max_length=500)
    delivery_fee: Decimal = Field(Decimal("0"), ge=0)
    plan: TenantPlan = TenantPlan.BASIC
    theme: Optional[Dict[str, Any]] = None
    branding: Optional[Dict[str, Any]] = None
    settings: Optional[Dict[str, Any]] = None


class TenantCreate(TenantBase):
    is_active: bool = True
    admin_email: Optional[EmailStr] = None
    admin_password: Optional[str] = Field(None, min_length=6, max_length=128)
    admin_name: Optional[str] = Field(None, max_length=200)

    @model_validator(mode="after")
    def validate_admin_user(self):
        if self.admin_email and not self.admin_password:
            raise ValueError("admin_password is required when admin_email is given")
        return self


class TenantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    slug: Optional[str] = Field(None, min_length=2, max_length=100, pattern=SLUG_PATTERN)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    logo_url: Optional[str] = Field(None, max_length=500)
    delivery_fee: Optional[Decimal] = Field(None, ge=0)
    plan: Optional[TenantPlan] = None
    is_active: Optional[bool] = None
    theme: Optional[Dict[str, Any]] = None
    branding: Optional[Dict[str, Any]] = None
    settings: Optional[Dict[str, Any]] = None


class TenantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    logo_url: Optional[str] = None
    delivery_fee: float
    plan: str
    is_active: bool
    theme: Optional[Dict[str, Any]] = None
    branding: Optional[Dict[str, Any]] = None
    settings: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime


class TenantSummary(TenantResponse):
    users_count: int = 0
    orders_count: int = 0
    products_count: int = 0


class TenantListResponse(BaseModel):
    tenants: List[TenantSummary]
    pagination: PaginationMeta


class TenantStatsResponse(BaseModel):
    total_tenants: int
    active_tenants: int
    inactive_tenants: int
    tenants_by_plan: Dict[str, int]
    total_users: int
    total_orders: int
    total_revenue: float


class SystemHealthResponse(BaseModel):
    status: str
    database: str
    realtime_backplane: str
    realtime_connections: int
    uptime_seconds: float
    timestamp: datetime


# ========== Bulk operations ==========


class BulkToggleStatusRequest(BaseModel):
    tenant_ids: List[int] = Field(..., min_length=1, max_length=500)
    active: bool


class BulkDeleteRequest(BaseModel):
    tenant_ids: List[int] = Field(..., min_length=1, max_length=500)


class BulkItemResult(BaseModel):
    tenant_id: int
    success: bool
    previous_active: Optional[bool] = None
    is_active: Optional[bool] = None
    error: Optional[str] = None


class BulkOperationResult(BaseModel):
    success: bool
    requested: int
    affected: int
    results: List[BulkItemResult]


# ========== Export / import ==========


class ExportFilters(BaseModel):
    status: TenantStatusFilter = TenantStatusFilter.ALL
    plan: Optional[TenantPlan] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @model_validator(mode="after")
    def validate_range(self):
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must be before date_to")
        return self


class ExportConfig(BaseModel):
    format: ExportFormat = ExportFormat.JSON
    include_users: bool = False
    include_orders: bool = False
    include_settings: bool = False
    include_branding: bool = False
    filters: ExportFilters = Field(default_factory=ExportFilters)


_TRUE_VALUES = {"true", "1", "yes", "y", "t", "on", "active"}
_FALSE_VALUES = {"false", "0", "no", "n", "f", "off", "inactive", ""}


class TenantImportRecord(BaseModel):
    """One tenant row coming from an uploaded file."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[int] = None
    name: str = Field(..., min_length=2, max_length=200)
    slug: str = Field(..., min_length=2, max_length=100, pattern=SLUG_PATTERN)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    logo_url: Optional[str] = Field(None, max_length=500)
    delivery_fee: Decimal = Field(Decimal("0"), ge=0)
    plan: TenantPlan = TenantPlan.BASIC
    is_active: bool = True
    theme: Optional[Dict[str, Any]] = None
    branding: Optional[Dict[str, Any]] = None
    settings: Optional[Dict[str, Any]] = None

    @model_validator(mode="before")
    @classmethod
    def drop_blank_values(cls, data: Any) -> Any:
        # Spreadsheet cells come through as "" for missing values
        if isinstance(data, dict):
            return {
                key: value
                for key, value in data.items()
                if not (isinstance(value, str) and value.strip() == "")
            }
        return data

    @field_validator("slug", mode="before")
    @classmethod
    def normalize_slug(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("plan", mode="before")
    @classmethod
    def normalize_plan(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("is_active", mode="before")
    @classmethod
    def parse_bool(cls, v):
        if isinstance(v, str):
            lowered = v.strip().lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
            raise ValueError(f"Cannot interpret '{v}' as a boolean")
        return v

    @field_validator("theme", "branding", "settings", mode="before")
    @classmethod
    def parse_json_object(cls, v):
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError:
                raise ValueError("must be a JSON object")
        if v is not None and not isinstance(v, dict):
            raise ValueError("must be a JSON object")
        return v


class ImportRowError(BaseModel):
    row: int
    field: Optional[str] = None
    message: str


class ImportRecordResult(BaseModel):
    row: int
    status: ImportRecordStatus
    tenant_id: Optional[int] = None
    slug: Optional[str] = None
    errors: List[str] = []


class ImportResult(BaseModel):
    success: bool
    dry_run: bool = False
    processed: int
    created: int
    updated: int
    failed: int
    errors: List[ImportRowError]
    warnings: List[str]
    results: List[ImportRecordResult]
