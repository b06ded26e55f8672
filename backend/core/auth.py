"""
JWT authentication and role-based authorization.

Tokens carry the user's tenant and role so that both HTTP routes and the
realtime hub can scope a caller without another database round-trip.
"""

import secrets
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .exceptions import AuthenticationError, PermissionDeniedError

logger = logging.getLogger(__name__)

SECRET_KEY = settings.jwt_secret_key
ALGORITHM = settings.jwt_algorithm

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
security = HTTPBearer(auto_error=False)

# Roles allowed to act on every tenant
PLATFORM_ROLES = {"super_admin"}


class TokenData(BaseModel):
    """Token payload data."""

    user_id: int
    email: Optional[str] = None
    role: str
    tenant_id: Optional[int] = None
    token_id: Optional[str] = None


class CurrentUser(BaseModel):
    """Authenticated caller as seen by route handlers."""

    id: int
    email: str
    name: str
    role: str
    tenant_id: Optional[int] = None
    is_active: bool = True

    @property
    def is_platform_admin(self) -> bool:
        return self.role in PLATFORM_ROLES


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its bcrypt hash."""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("Stored password hash could not be parsed")
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def generate_token_id() -> str:
    """Generate a unique token ID for tracking."""
    return secrets.token_urlsafe(16)


def _encode(data: dict, token_type: str, expire: datetime) -> str:
    to_encode = data.copy()
    to_encode.update(
        {
            "exp": expire,
            "type": token_type,
            "jti": generate_token_id(),
            "iat": datetime.utcnow(),
            "iss": settings.jwt_issuer,
            "aud": settings.jwt_audience,
        }
    )
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def build_token_claims(user) -> dict:
    """Claims shared by access and refresh tokens for a user row."""
    return {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value if hasattr(user.role, "value") else user.role,
        "tenant_id": user.tenant_id,
    }


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed access token."""
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    )
    return _encode(data, "access", expire)


def create_refresh_token(data: dict) -> str:
    """Create a JWT refresh token with longer expiration."""
    expire = datetime.utcnow() + timedelta(days=settings.jwt_refresh_token_expire_days)
    return _encode(data, "refresh", expire)


def verify_token(token: str, token_type: str = "access") -> Optional[TokenData]:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token to verify
        token_type: Expected token type ("access" or "refresh")

    Returns:
        TokenData if valid, None otherwise
    """
    try:
        payload = jwt.decode(
            token,
            SECRET_KEY,
            algorithms=[ALGORITHM],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Token has expired")
        return None
    except JWTError as e:
        logger.warning(f"Token verification failed: {e}")
        return None

    if payload.get("type") != token_type:
        logger.warning(
            f"Token type mismatch: expected {token_type}, got {payload.get('type')}"
        )
        return None

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None

    role = payload.get("role")
    if not role:
        return None

    return TokenData(
        user_id=user_id,
        email=payload.get("email"),
        role=role,
        tenant_id=payload.get("tenant_id"),
        token_id=payload.get("jti"),
    )


def load_user(db: Session, user_id: int):
    from modules.auth.models.user_models import User

    return db.query(User).filter(User.id == user_id).first()


def to_current_user(user) -> CurrentUser:
    return CurrentUser(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role.value if hasattr(user.role, "value") else user.role,
        tenant_id=user.tenant_id,
        is_active=user.is_active,
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """Resolve the bearer token into an active user."""
    if credentials is None:
        raise AuthenticationError("Authentication token required")

    token_data = verify_token(credentials.credentials)
    if token_data is None:
        raise AuthenticationError("Invalid or expired token")

    user = load_user(db, token_data.user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("User not found or inactive")

    return to_current_user(user)


def require_roles(*roles: str) -> Callable:
    """
    Dependency factory restricting a route to the given roles.

    Platform roles are always allowed.
    """
    allowed = set(roles)

    async def role_checker(
        current_user: CurrentUser = Depends(get_current_user),
    ) -> CurrentUser:
        if current_user.role in allowed or current_user.is_platform_admin:
            return current_user
        logger.warning(
            "User %s with role %s denied; requires one of %s",
            current_user.id,
            current_user.role,
            sorted(allowed),
        )
        raise PermissionDeniedError(
            f"Requires one of roles: {', '.join(sorted(allowed))}"
        )

    return role_checker


require_platform_admin = require_roles(*PLATFORM_ROLES)
