# backend/modules/auth/services/auth_service.py

"""
Credential checks and token issuance for tenant users and platform admins.
"""

import logging
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.auth import (build_token_claims, create_access_token,
                       create_refresh_token, verify_password, verify_token)
from core.config import settings
from core.exceptions import (AuthenticationError, NotFoundError,
                             PermissionDeniedError, ValidationError)
from modules.tenants.models.tenant_models import Tenant
from ..models.user_models import User
from ..schemas.auth_schemas import (LoginRequest, TenantInfo, TokenResponse,
                                    UserInfo)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Email or password is incorrect"


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def _find_user(self, email: str, tenant_slug: Optional[str]) -> Tuple[Optional[User], Optional[Tenant]]:
        query = self.db.query(User).filter(func.lower(User.email) == email.lower())

        if tenant_slug:
            tenant = self.db.query(Tenant).filter(Tenant.slug == tenant_slug.lower()).first()
            if tenant is None:
                raise NotFoundError("Tenant", tenant_slug)
            user = query.filter(User.tenant_id == tenant.id).first()
            if user is None:
                # Platform admins may sign in through any storefront
                user = query.filter(User.tenant_id.is_(None)).first()
            return user, tenant

        users = query.all()
        platform = [u for u in users if u.tenant_id is None]
        if platform:
            return platform[0], None
        if len(users) > 1:
            raise ValidationError(
                "This email exists in several tenants; provide tenant_slug",
                error="Tenant not specified",
            )
        user = users[0] if users else None
        return user, user.tenant if user else None

    def login(self, data: LoginRequest) -> TokenResponse:
        user, tenant = self._find_user(data.email, data.tenant_slug)

        if user is None or not verify_password(data.password, user.hashed_password):
            logger.warning(f"Failed login for {data.email}")
            raise AuthenticationError(INVALID_CREDENTIALS, error="Invalid credentials")

        if not user.is_active:
            logger.warning(f"Login attempt by inactive user {user.id}")
            raise AuthenticationError("User account is disabled", error="Invalid credentials")

        if user.tenant_id is not None:
            tenant = user.tenant
            if not tenant.is_active:
                logger.warning(f"Login attempt for inactive tenant {tenant.slug}")
                raise PermissionDeniedError(
                    "This tenant account is inactive", error="Tenant inactive"
                )
        else:
            tenant = None

        user.last_login_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {user.id} logged in (tenant={user.tenant_id})")
        return self.issue_tokens(user, tenant)

    def issue_tokens(self, user: User, tenant: Optional[Tenant]) -> TokenResponse:
        claims = build_token_claims(user)
        return TokenResponse(
            access_token=create_access_token(claims),
            refresh_token=create_refresh_token(claims),
            expires_in=settings.jwt_access_token_expire_minutes * 60,
            user=UserInfo.model_validate(user),
            tenant=TenantInfo.model_validate(tenant) if tenant else None,
        )

    def refresh(self, refresh_token: str) -> TokenResponse:
        token_data = verify_token(refresh_token, token_type="refresh")
        if token_data is None:
            raise AuthenticationError("Invalid or expired refresh token")

        user = self.db.query(User).filter(User.id == token_data.user_id).first()
        if user is None or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        tenant = user.tenant
        if tenant is not None and not tenant.is_active:
            raise PermissionDeniedError(
                "This tenant account is inactive", error="Tenant inactive"
            )
        return self.issue_tokens(user, tenant)

    def get_user(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("User", user_id)
        return user
