# backend/modules/users/services/user_service.py

"""
Tenant-scoped staff and customer account management.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from core.auth import CurrentUser, get_password_hash
from core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from core.response_models import PaginationMeta, paginate
from core.tenant_context import apply_tenant_filter
from modules.auth.enums.auth_enums import UserRole
from modules.auth.models.user_models import User
from modules.billing.services.billing_service import BillingService
from ..schemas.user_schemas import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    def _users(self):
        return apply_tenant_filter(self.db.query(User), User, self.tenant_id)

    def list_users(
        self,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[User], PaginationMeta]:
        query = self._users()
        if role:
            query = query.filter(User.role == role.value)
        if is_active is not None:
            query = query.filter(User.is_active == is_active)
        if search:
            pattern = f"%{search}%"
            query = query.filter(User.name.ilike(pattern) | User.email.ilike(pattern))
        return paginate(query.order_by(User.name, User.id), page, limit)

    def get_user(self, user_id: int) -> User:
        user = self._users().filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def _check_authority(self, actor: CurrentUser, role: Optional[str]) -> None:
        # Managers cannot create or modify tenant admins
        if actor.role == UserRole.MANAGER.value and role == UserRole.ADMIN.value:
            logger.warning(
                f"Manager {actor.id} attempted to manage an admin in tenant {self.tenant_id}"
            )
            raise PermissionDeniedError("Managers cannot manage admin accounts")

    def create_user(self, data: UserCreate, actor: CurrentUser) -> User:
        self._check_authority(actor, data.role.value)
        email = data.email.lower()
        if self._users().filter(User.email == email).first():
            raise ConflictError(f"A user with email {email} already exists")

        BillingService(self.db).ensure_within_limit(self.tenant_id, "users")

        user = User(
            tenant_id=self.tenant_id,
            email=email,
            name=data.name,
            hashed_password=get_password_hash(data.password),
            role=data.role.value,
            is_active=True,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Tenant {self.tenant_id} created user {user.id} ({user.role})")
        return user

    def update_user(self, user_id: int, data: UserUpdate, actor: CurrentUser) -> User:
        user = self.get_user(user_id)
        self._check_authority(actor, user.role)
        changes = data.model_dump(exclude_unset=True)
        if "role" in changes and changes["role"] is not None:
            self._check_authority(actor, changes["role"].value)
            user.role = changes["role"].value
        if changes.get("name"):
            user.name = changes["name"]
        if changes.get("password"):
            user.hashed_password = get_password_hash(changes["password"])
        if changes.get("is_active") is not None:
            if user.id == actor.id and not changes["is_active"]:
                raise PermissionDeniedError("You cannot deactivate your own account")
            if changes["is_active"] and not user.is_active:
                BillingService(self.db).ensure_within_limit(self.tenant_id, "users")
            user.is_active = changes["is_active"]
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Tenant {self.tenant_id} updated user {user.id}: {sorted(changes)}")
        return user

    def deactivate_user(self, user_id: int, actor: CurrentUser) -> User:
        return self.update_user(user_id, UserUpdate(is_active=False), actor)
