# backend/modules/settings/schemas/settings_schemas.py

"""
Schemas for tenant key/value settings and the tenant profile.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

SETTING_KEY_PATTERN = r"^[a-zA-Z0-9_.-]+$"


class SettingUpsert(BaseModel):
    value: Any = None
    is_public: bool = False


class BulkSettingItem(SettingUpsert):
    key: str = Field(..., min_length=1, max_length=100, pattern=SETTING_KEY_PATTERN)


class BulkSettingUpdate(BaseModel):
    settings: List[BulkSettingItem] = Field(..., min_length=1, max_length=200)


class SettingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    key: str
    value: Any = None
    is_public: bool
    created_at: datetime
    updated_at: datetime


class SettingListResponse(BaseModel):
    settings: List[SettingResponse]
    values: Dict[str, Any]


class TenantProfileResponse(BaseModel):
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
    theme: Optional[Dict[str, Any]] = None
    branding: Optional[Dict[str, Any]] = None


class TenantProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    delivery_fee: Optional[Decimal] = Field(None, ge=0)
    logo_url: Optional[str] = Field(None, max_length=500)
    theme: Optional[Dict[str, Any]] = None
    branding: Optional[Dict[str, Any]] = None
