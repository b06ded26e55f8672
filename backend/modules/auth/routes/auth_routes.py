# backend/modules/auth/routes/auth_routes.py

"""
Authentication routes.

Tokens are stateless JWTs; logout is acknowledged so clients can drop them.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import CurrentUser, get_current_user
from core.database import get_db
from core.response_models import MessageResponse
from ..schemas.auth_schemas import (LoginRequest, MeResponse,
                                    RefreshTokenRequest, TenantInfo,
                                    TokenResponse, UserInfo)
from ..services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, db: Session = Depends(get_db)):
    """
    Authenticate with email and password.

    ``tenant_slug`` picks the tenant when the same email exists in several.

    Raises:
        401: Wrong credentials or inactive user
        403: Tenant is inactive
    """
    return AuthService(db).login(data)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(data: RefreshTokenRequest, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new token pair."""
    return AuthService(db).refresh(data.refresh_token)


@router.get("/me", response_model=MeResponse)
async def read_current_user(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = AuthService(db).get_user(current_user.id)
    return MeResponse(
        user=UserInfo.model_validate(user),
        tenant=TenantInfo.model_validate(user.tenant) if user.tenant else None,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(current_user: CurrentUser = Depends(get_current_user)):
    logger.info(f"User {current_user.id} logged out")
    return MessageResponse(message="Logged out")
