# backend/modules/users/routes/user_routes.py

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import CurrentUser
from core.database import get_db
from core.tenant_context import (ResolvedTenant, get_current_tenant,
                                 require_tenant_roles)
from modules.auth.enums.auth_enums import UserRole
from ..schemas.user_schemas import (UserCreate, UserListResponse,
                                    UserResponse, UserUpdate)
from ..services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["Users"])

user_managers = require_tenant_roles("admin", "manager")


@router.get("", response_model=UserListResponse)
async def list_users(
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(user_managers),
):
    users, pagination = UserService(db, tenant.id).list_users(
        role=role, is_active=is_active, search=search, page=page, limit=limit
    )
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users], pagination=pagination
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(user_managers),
):
    return UserService(db, tenant.id).get_user(user_id)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(user_managers),
):
    """
    Add a user to the tenant.

    Raises:
        403: Plan user limit reached, or a manager creating an admin
        409: Email already used in this tenant
    """
    return UserService(db, tenant.id).create_user(data, current_user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    data: UserUpdate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(user_managers),
):
    return UserService(db, tenant.id).update_user(user_id, data, current_user)


@router.delete("/{user_id}", response_model=UserResponse)
async def deactivate_user(
    user_id: int,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(user_managers),
):
    """Deactivate a user. Accounts are never hard-deleted."""
    return UserService(db, tenant.id).deactivate_user(user_id, current_user)
