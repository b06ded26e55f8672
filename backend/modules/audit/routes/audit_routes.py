# backend/modules/audit/routes/audit_routes.py

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.auth import CurrentUser, require_platform_admin
from core.database import get_db
from ..enums.audit_enums import (AuditCategory, AuditEntity, AuditOutcome,
                                 AuditSeverity)
from ..schemas.audit_schemas import AuditLogListResponse, AuditLogResponse
from ..services.audit_service import AuditService

router = APIRouter(prefix="/api/admin/audit", tags=["Admin - Audit"])


@router.get("/logs", response_model=AuditLogListResponse)
async def list_audit_logs(
    search: Optional[str] = Query(None, max_length=100),
    category: Optional[AuditCategory] = Query(None),
    severity: Optional[AuditSeverity] = Query(None),
    entity: Optional[AuditEntity] = Query(None),
    outcome: Optional[AuditOutcome] = Query(None),
    tenant_id: Optional[int] = Query(None),
    user_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_platform_admin),
):
    """
    Audit trail of platform administration, newest first.

    Raises:
        400: If ``date_from`` is after ``date_to``
    """
    logs, pagination = AuditService(db).list_logs(
        search=search,
        category=category,
        severity=severity,
        entity=entity,
        outcome=outcome,
        tenant_id=tenant_id,
        user_id=user_id,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    return AuditLogListResponse(
        logs=[AuditLogResponse.model_validate(entry) for entry in logs],
        pagination=pagination,
    )


@router.get("/logs/{log_id}", response_model=AuditLogResponse)
async def get_audit_log(
    log_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_platform_admin),
):
    return AuditService(db).get_log(log_id)
