# backend/modules/tenants/routes/admin_routes.py

"""
Platform administration of tenants.

Every route here requires the platform ``super_admin`` role; tenant admins
manage only their own tenant through the tenant-scoped routers.
"""

import logging
import time
from datetime import datetime
from typing import Optional

from fastapi import (APIRouter, Depends, File, Query, Request, Response,
                     UploadFile, status)
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.auth import CurrentUser, require_platform_admin
from core.config import settings
from core.database import get_db
from core.exceptions import APIError, ValidationError
from core.response_models import MessageResponse
from modules.audit.enums.audit_enums import (AuditCategory, AuditOutcome,
                                             AuditSeverity)
from modules.audit.services.audit_service import AuditService, get_request_ip
from modules.realtime.services.hub import RealtimeHub, get_realtime_hub
from ..enums.tenant_enums import TenantPlan, TenantStatusFilter
from ..schemas.tenant_schemas import (BulkDeleteRequest, BulkOperationResult,
                                      BulkToggleStatusRequest, ExportConfig,
                                      ImportResult, SystemHealthResponse,
                                      TenantCreate, TenantListResponse,
                                      TenantResponse, TenantStatsResponse,
                                      TenantSummary, TenantUpdate)
from ..services.bulk_service import TenantBulkService
from ..services.export_service import TenantExportService
from ..services.import_service import TenantImportService
from ..services.tenant_service import TenantService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin - Tenants"])

PROCESS_STARTED_AT = time.monotonic()


@router.get("/stats", response_model=TenantStatsResponse)
async def get_platform_stats(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_platform_admin),
):
    """Platform-wide tenant, user, order and revenue totals."""
    return TenantService(db).get_stats()


@router.get("/system-health", response_model=SystemHealthResponse)
async def get_system_health(
    db: Session = Depends(get_db),
    hub: RealtimeHub = Depends(get_realtime_hub),
    current_user: CurrentUser = Depends(require_platform_admin),
):
    """Database reachability and realtime state for this instance."""
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Health check database error: {e}")
        database = "error"

    realtime = hub.stats()
    backplane = realtime["backplane"]
    healthy = database == "connected" and backplane != "error"
    return SystemHealthResponse(
        status="healthy" if healthy else "degraded",
        database=database,
        realtime_backplane=backplane,
        realtime_connections=realtime["connections"],
        uptime_seconds=round(time.monotonic() - PROCESS_STARTED_AT, 3),
        timestamp=datetime.utcnow(),
    )


@router.get("/tenants", response_model=TenantListResponse)
async def list_tenants(
    search: Optional[str] = Query(None, max_length=100),
    status_filter: TenantStatusFilter = Query(TenantStatusFilter.ALL, alias="status"),
    plan: Optional[TenantPlan] = Query(None),
    sort_by: str = Query("created_at", pattern="^(name|created_at|plan|slug)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_platform_admin),
):
    """
    List tenants with filtering, sorting and pagination.

    Each entry carries its user, order and product counts.
    """
    service = TenantService(db)
    tenants, pagination = service.list_tenants(
        search=search,
        status=status_filter,
        plan=plan,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    counts = service.get_counts([tenant.id for tenant in tenants])
    summaries = [
        TenantSummary.model_validate(tenant).model_copy(update=counts[tenant.id])
        for tenant in tenants
    ]
    return TenantListResponse(tenants=summaries, pagination=pagination)


def audit(
    db: Session, request: Request, actor: CurrentUser, action: str, description: str, **fields
) -> None:
    AuditService(db).record(
        action=action,
        description=description,
        actor=actor,
        client_ip=get_request_ip(request),
        **fields,
    )


@router.post("/tenants", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    data: TenantCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_platform_admin),
):
    """
    Create a tenant, optionally with its first admin user.

    Raises:
        409: If the slug is already taken
    """
    tenant = TenantService(db).create_tenant(data)
    audit(
        db, request, current_user,
        "tenant.create",
        f"Created tenant {tenant.slug}",
        category=AuditCategory.CREATE,
        severity=AuditSeverity.MEDIUM,
        entity_id=tenant.id,
        entity_name=tenant.slug,
        tenant_id=tenant.id,
        new_values=data.model_dump(mode="json", exclude={"admin_password"}),
    )
    return tenant


@router.post("/tenants/bulk-toggle-status", response_model=BulkOperationResult)
async def bulk_toggle_status(
    payload: BulkToggleStatusRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_platform_admin),
):
    """
    Activate or deactivate many tenants at once.

    The batch is all-or-nothing: one unknown ID fails it with 404 and the
    per-item report in ``details``.
    """
    logger.info(
        f"User {current_user.id} bulk toggling {len(payload.tenant_ids)} tenants "
        f"to active={payload.active}"
    )
    action = "tenant.bulk_activate" if payload.active else "tenant.bulk_deactivate"
    metadata = {"tenant_ids": payload.tenant_ids, "active": payload.active}
    try:
        result = TenantBulkService(db).bulk_toggle_status(payload.tenant_ids, payload.active)
    except APIError as e:
        audit(
            db, request, current_user, action,
            f"Bulk status change of {len(payload.tenant_ids)} tenants failed: {e.detail}",
            category=AuditCategory.UPDATE,
            severity=AuditSeverity.HIGH,
            outcome=AuditOutcome.FAILED,
            metadata=metadata,
        )
        raise

    audit(
        db, request, current_user, action,
        f"Set active={payload.active} on {result.requested} tenants ({result.affected} changed)",
        category=AuditCategory.UPDATE,
        severity=AuditSeverity.HIGH,
        metadata={**metadata, "affected": result.affected},
    )
    return result


@router.post("/tenants/bulk-delete", response_model=BulkOperationResult)
async def bulk_delete(
    payload: BulkDeleteRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_platform_admin),
):
    """Delete many tenants and all of their data in one transaction."""
    logger.info(f"User {current_user.id} bulk deleting tenants {payload.tenant_ids}")
    metadata = {"tenant_ids": payload.tenant_ids}
    try:
        result = TenantBulkService(db).bulk_delete(payload.tenant_ids)
    except APIError as e:
        audit(
            db, request, current_user, "tenant.bulk_delete",
            f"Bulk delete of {len(payload.tenant_ids)} tenants failed: {e.detail}",
            category=AuditCategory.DELETE,
            severity=AuditSeverity.CRITICAL,
            outcome=AuditOutcome.FAILED,
            metadata=metadata,
        )
        raise

    audit(
        db, request, current_user, "tenant.bulk_delete",
        f"Deleted {result.affected} tenants",
        category=AuditCategory.DELETE,
        severity=AuditSeverity.CRITICAL,
        metadata={**metadata, "affected": result.affected},
    )
    return result


@router.post("/tenants/export")
async def export_tenants(
    config: ExportConfig,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_platform_admin),
):
    """Download the filtered tenant list as CSV, JSON, SQL or XLSX."""
    export = TenantExportService(db).export(config)
    audit(
        db, request, current_user, "tenant.export",
        f"Exported {export.record_count} tenants as {config.format.value}",
        category=AuditCategory.SYSTEM,
        severity=AuditSeverity.MEDIUM,
        metadata=config.model_dump(mode="json"),
    )
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{export.filename}"',
            "X-Record-Count": str(export.record_count),
        },
    )


@router.post("/tenants/import", response_model=ImportResult)
async def import_tenants(
    request: Request,
    file: UploadFile = File(...),
    dry_run: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_platform_admin),
):
    """
    Upsert tenants from a CSV, JSON, SQL or XLSX file.

    Every row is validated and applied on its own; with ``dry_run`` nothing
    is kept.

    Raises:
        400: Unsupported extension, unreadable file or file too large
    """
    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    content = await file.read(max_bytes + 1)
    metadata = {"filename": file.filename, "bytes": len(content), "dry_run": dry_run}
    severity = AuditSeverity.LOW if dry_run else AuditSeverity.HIGH

    try:
        if len(content) > max_bytes:
            raise ValidationError(
                f"File exceeds the {settings.max_upload_size_mb} MB upload limit",
                error="File too large",
            )
        logger.info(
            f"User {current_user.id} importing tenants from {file.filename} "
            f"({len(content)} bytes, dry_run={dry_run})"
        )
        result = TenantImportService(db).import_file(content, file.filename, dry_run=dry_run)
    except APIError as e:
        audit(
            db, request, current_user, "tenant.import",
            f"Import of {file.filename} rejected: {e.detail}",
            category=AuditCategory.SYSTEM,
            severity=severity,
            outcome=AuditOutcome.FAILED,
            metadata=metadata,
        )
        raise

    audit(
        db, request, current_user, "tenant.import",
        f"Imported {file.filename}: {result.created} created, "
        f"{result.updated} updated, {result.failed} failed",
        category=AuditCategory.SYSTEM,
        severity=severity,
        outcome=AuditOutcome.SUCCESS if result.success else AuditOutcome.FAILED,
        metadata={
            **metadata,
            "created": result.created,
            "updated": result.updated,
            "failed": result.failed,
            "tenant_ids": [r.tenant_id for r in result.results if r.tenant_id is not None],
        },
    )
    return result


@router.get("/tenants/{tenant_id}", response_model=TenantSummary)
async def get_tenant(
    tenant_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_platform_admin),
):
    service = TenantService(db)
    tenant = service.get_tenant(tenant_id)
    counts = service.get_counts([tenant.id])[tenant.id]
    return TenantSummary.model_validate(tenant).model_copy(update=counts)


@router.put("/tenants/{tenant_id}", response_model=TenantResponse)
async def update_tenant(
    tenant_id: int,
    data: TenantUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_platform_admin),
):
    service = TenantService(db)
    changes = data.model_dump(mode="json", exclude_unset=True)
    before = TenantResponse.model_validate(service.get_tenant(tenant_id)).model_dump(mode="json")
    tenant = service.update_tenant(tenant_id, data)
    audit(
        db, request, current_user, "tenant.update",
        f"Updated tenant {tenant.slug}",
        category=AuditCategory.UPDATE,
        severity=AuditSeverity.MEDIUM,
        entity_id=tenant.id,
        entity_name=tenant.slug,
        tenant_id=tenant.id,
        old_values={key: before.get(key) for key in changes},
        new_values=changes,
    )
    return tenant


@router.delete("/tenants/{tenant_id}", response_model=MessageResponse)
async def delete_tenant(
    tenant_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_platform_admin),
):
    """Delete a tenant with all of its users, catalog, orders and records."""
    service = TenantService(db)
    tenant = service.get_tenant(tenant_id)
    slug, name = tenant.slug, tenant.name
    service.delete_tenant(tenant_id)
    audit(
        db, request, current_user, "tenant.delete",
        f"Deleted tenant {slug} ({name})",
        category=AuditCategory.DELETE,
        severity=AuditSeverity.CRITICAL,
        entity_id=tenant_id,
        entity_name=slug,
        tenant_id=tenant_id,
    )
    return MessageResponse(message=f"Tenant {tenant_id} deleted")


@router.patch("/tenants/{tenant_id}/toggle-status", response_model=TenantResponse)
async def toggle_tenant_status(
    tenant_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_platform_admin),
):
    tenant = TenantService(db).toggle_status(tenant_id)
    audit(
        db, request, current_user, "tenant.toggle_status",
        f"{'Activated' if tenant.is_active else 'Deactivated'} tenant {tenant.slug}",
        category=AuditCategory.UPDATE,
        severity=AuditSeverity.HIGH,
        entity_id=tenant.id,
        entity_name=tenant.slug,
        tenant_id=tenant.id,
        old_values={"is_active": not tenant.is_active},
        new_values={"is_active": tenant.is_active},
    )
    return tenant
