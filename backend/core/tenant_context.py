"""Tenant Context Management for Multi-Tenant Isolation.

This module resolves the tenant for every API request and keeps it in a
context variable so services, the database session and the realtime emitter
all agree on which tenant a request belongs to.
"""

import logging
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Query, Session
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from core.auth import CurrentUser, get_current_user
from core.config import settings
from core.database import get_db
from core.exceptions import PermissionDeniedError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class ResolvedTenant:
    """Snapshot of the tenant row taken when the request was resolved."""

    id: int
    slug: str
    name: str
    plan: str
    is_active: bool
    source: str = "header"
    resolved_at: datetime = field(default_factory=datetime.utcnow)


# Context variable to store current tenant information
_tenant_context: ContextVar[Optional[Dict[str, Any]]] = ContextVar(
    "tenant_context", default=None
)


class TenantContext:
    """Manages tenant context for the current request"""

    @staticmethod
    def set(tenant: ResolvedTenant, user_id: Optional[int] = None):
        """Set the tenant context for the current request."""
        context = {
            "tenant_id": tenant.id,
            "tenant_slug": tenant.slug,
            "tenant": tenant,
            "user_id": user_id,
            "timestamp": datetime.utcnow(),
        }
        _tenant_context.set(context)
        return context

    @staticmethod
    def get() -> Optional[Dict[str, Any]]:
        """Get the current tenant context"""
        return _tenant_context.get()

    @staticmethod
    def get_tenant_id() -> Optional[int]:
        """Get the current tenant ID from context."""
        context = _tenant_context.get()
        return context.get("tenant_id") if context else None

    @staticmethod
    def get_tenant() -> Optional[ResolvedTenant]:
        context = _tenant_context.get()
        return context.get("tenant") if context else None

    @staticmethod
    def clear():
        """Clear the tenant context"""
        _tenant_context.set(None)

    @staticmethod
    def require_context() -> Dict[str, Any]:
        """Ensure tenant context is set, raise exception if not"""
        context = _tenant_context.get()
        if not context or context.get("tenant_id") is None:
            raise ValidationError(
                "Tenant context not established", error="Tenant not specified"
            )
        return context


def extract_subdomain(host: Optional[str]) -> Optional[str]:
    """Return the first hostname label when the host looks like ``slug.domain.tld``."""
    if not host:
        return None
    hostname = host.split(":", 1)[0].lower()
    if hostname in ("localhost", "127.0.0.1"):
        return None
    parts = hostname.split(".")
    if len(parts) > 2 and parts[0] not in ("www", "api"):
        return parts[0]
    return None


def _tenant_error(status_code: int, error: str, message: str, path: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "path": path},
    )


class TenantResolutionMiddleware(BaseHTTPMiddleware):
    """Resolve and validate the tenant for every tenant-scoped API request"""

    # Paths that don't require tenant context
    EXEMPT_PATHS = [
        "/api/auth",
        "/api/health",
        "/api/admin",
        "/api/public",
        "/ws",
        "/docs",
        "/redoc",
        "/openapi.json",
    ]

    def is_exempt(self, path: str) -> bool:
        if not path.startswith("/api"):
            return True
        return any(path.startswith(prefix) for prefix in self.EXEMPT_PATHS)

    def identify(self, request: Request) -> Optional[tuple]:
        """Return ``(identifier, source)`` from subdomain, header or dev default."""
        subdomain = extract_subdomain(request.headers.get("host"))
        if subdomain:
            return subdomain, "subdomain"

        header_value = request.headers.get("x-tenant-id")
        if header_value and header_value.strip():
            return header_value.strip(), "header"

        if settings.is_development and settings.default_tenant_slug:
            return settings.default_tenant_slug, "default"

        return None

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request and establish tenant context."""
        TenantContext.clear()

        path = request.url.path
        if request.method == "OPTIONS" or self.is_exempt(path):
            return await call_next(request)

        identified = self.identify(request)
        if identified is None:
            logger.warning("No tenant specified for %s %s", request.method, path)
            return _tenant_error(
                status.HTTP_400_BAD_REQUEST,
                "Tenant not specified",
                "Provide a tenant subdomain or the x-tenant-id header",
                path,
            )

        identifier, source = identified
        tenant = await run_in_threadpool(self._load_tenant, request, identifier, source)
        if tenant is None:
            logger.warning("Tenant %r not found (%s)", identifier, source)
            return _tenant_error(
                status.HTTP_404_NOT_FOUND,
                "Tenant not found",
                f"No tenant matches '{identifier}'",
                path,
            )

        if not tenant.is_active:
            logger.warning("Rejected request for inactive tenant %s", tenant.slug)
            return _tenant_error(
                status.HTTP_403_FORBIDDEN,
                "Tenant inactive",
                "This tenant account is inactive",
                path,
            )

        TenantContext.set(tenant)
        request.state.tenant = tenant
        request.state.tenant_id = tenant.id

        try:
            return await call_next(request)
        finally:
            TenantContext.clear()

    def _load_tenant(
        self, request: Request, identifier: str, source: str
    ) -> Optional[ResolvedTenant]:
        # Honour dependency overrides so the lookup uses the same session as routes
        provider = request.app.dependency_overrides.get(get_db, get_db)
        session_gen = provider()
        db = next(session_gen)
        try:
            return lookup_tenant(db, identifier, source)
        finally:
            session_gen.close()


def lookup_tenant(
    db: Session, identifier: str, source: str = "header"
) -> Optional[ResolvedTenant]:
    """Find a tenant by slug, falling back to numeric ID."""
    from modules.tenants.models.tenant_models import Tenant

    row = db.query(Tenant).filter(Tenant.slug == identifier.lower()).first()
    if row is None and identifier.isdigit():
        row = db.query(Tenant).filter(Tenant.id == int(identifier)).first()
    if row is None:
        return None
    return ResolvedTenant(
        id=row.id,
        slug=row.slug,
        name=row.name,
        plan=row.plan.value if hasattr(row.plan, "value") else row.plan,
        is_active=row.is_active,
        source=source,
    )


def get_current_tenant(request: Request) -> ResolvedTenant:
    """Dependency returning the tenant resolved by the middleware."""
    tenant = getattr(request.state, "tenant", None)
    if tenant is None:
        raise ValidationError(
            "Tenant context not established", error="Tenant not specified"
        )
    return tenant


async def get_tenant_user(
    tenant: ResolvedTenant = Depends(get_current_tenant),
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Authenticated user who belongs to the resolved tenant."""
    if current_user.is_platform_admin:
        return current_user
    if current_user.tenant_id != tenant.id:
        logger.warning(
            "User %s (tenant %s) attempted access to tenant %s",
            current_user.id,
            current_user.tenant_id,
            tenant.id,
        )
        raise PermissionDeniedError("Access denied for this tenant")
    return current_user


def require_tenant_roles(*roles: str):
    """Like ``require_roles`` but also enforces tenant membership."""
    allowed = set(roles)

    async def checker(
        current_user: CurrentUser = Depends(get_tenant_user),
    ) -> CurrentUser:
        if current_user.role in allowed or current_user.is_platform_admin:
            return current_user
        raise PermissionDeniedError(
            f"Requires one of roles: {', '.join(sorted(allowed))}"
        )

    return checker


def apply_tenant_filter(query: Query, model, tenant_id: Optional[int] = None) -> Query:
    """Scope a query to the given or current tenant."""
    effective = tenant_id if tenant_id is not None else TenantContext.get_tenant_id()
    if effective is None:
        raise ValidationError(
            "Tenant context not established", error="Tenant not specified"
        )
    return query.filter(model.tenant_id == effective)
