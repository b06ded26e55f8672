# backend/modules/users/schemas/user_schemas.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from core.response_models import PaginationMeta
from modules.auth.enums.auth_enums import UserRole


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=8, max_length=128)
    role: UserRole = UserRole.VENDOR

    @field_validator("role")
    @classmethod
    def no_platform_role(cls, v):
        if v == UserRole.SUPER_ADMIN:
            raise ValueError("super_admin cannot be assigned to a tenant user")
        return v


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    password: Optional[str] = Field(None, min_length=8, max_length=128)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    @field_validator("role")
    @classmethod
    def no_platform_role(cls, v):
        if v == UserRole.SUPER_ADMIN:
            raise ValueError("super_admin cannot be assigned to a tenant user")
        return v


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: Optional[int] = None
    email: str
    name: str
    role: str
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class UserListResponse(BaseModel):
    users: List[UserResponse]
    pagination: PaginationMeta
