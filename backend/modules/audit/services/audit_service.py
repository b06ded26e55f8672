# backend/modules/audit/services/audit_service.py

"""
Audit trail for platform administration.

Entries are written to the ``audit_logs`` table and echoed as one JSON line
on the ``audit`` logger so a log shipper can keep a second copy.
"""

import json
import logging
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Request
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.auth import CurrentUser
from core.exceptions import NotFoundError, ValidationError
from core.response_models import PaginationMeta, paginate
from ..enums.audit_enums import (AuditCategory, AuditEntity, AuditOutcome,
                                 AuditSeverity)
from ..models.audit_models import AuditLog

logger = logging.getLogger(__name__)
audit_trail = logging.getLogger("audit")


def get_request_ip(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",", 1)[0].strip()[:45]
    return request.client.host if request.client else None


class AuditService:
    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        action: str,
        description: str,
        actor: Optional[CurrentUser] = None,
        category: AuditCategory = AuditCategory.SYSTEM,
        severity: AuditSeverity = AuditSeverity.MEDIUM,
        entity_type: AuditEntity = AuditEntity.TENANT,
        entity_id: Optional[Any] = None,
        entity_name: Optional[str] = None,
        tenant_id: Optional[int] = None,
        outcome: AuditOutcome = AuditOutcome.SUCCESS,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        client_ip: Optional[str] = None,
    ) -> AuditLog:
        """
        Persist one audit entry in its own commit.

        Call it after the audited change has been committed or rolled back,
        so a failed action still leaves a ``failed`` entry behind.
        """
        entry = AuditLog(
            timestamp=datetime.utcnow(),
            action=action,
            category=category.value,
            severity=severity.value,
            outcome=outcome.value,
            entity_type=entity_type.value,
            entity_id=str(entity_id) if entity_id is not None else None,
            entity_name=entity_name,
            description=description,
            tenant_id=tenant_id,
            user_id=actor.id if actor else None,
            user_email=actor.email if actor else None,
            client_ip=client_ip,
            old_values=old_values,
            new_values=new_values,
            audit_metadata=metadata,
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to write audit entry for {action}")
            raise
        self.db.refresh(entry)

        audit_trail.info(
            json.dumps(
                {
                    "id": entry.id,
                    "action": action,
                    "outcome": entry.outcome,
                    "severity": entry.severity,
                    "entity": f"{entry.entity_type}:{entry.entity_id}",
                    "user_id": entry.user_id,
                    "client_ip": client_ip,
                },
                default=str,
            )
        )
        return entry

    def list_logs(
        self,
        search: Optional[str] = None,
        category: Optional[AuditCategory] = None,
        severity: Optional[AuditSeverity] = None,
        entity: Optional[AuditEntity] = None,
        outcome: Optional[AuditOutcome] = None,
        tenant_id: Optional[int] = None,
        user_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[AuditLog], PaginationMeta]:
        """Newest first. ``date_to`` includes the whole day."""
        if date_from and date_to and date_from > date_to:
            raise ValidationError("date_from must not be after date_to", error="Invalid date range")

        query = self.db.query(AuditLog)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    AuditLog.action.ilike(pattern),
                    AuditLog.entity_name.ilike(pattern),
                    AuditLog.description.ilike(pattern),
                    AuditLog.user_email.ilike(pattern),
                )
            )
        if category:
            query = query.filter(AuditLog.category == category.value)
        if severity:
            query = query.filter(AuditLog.severity == severity.value)
        if entity:
            query = query.filter(AuditLog.entity_type == entity.value)
        if outcome:
            query = query.filter(AuditLog.outcome == outcome.value)
        if tenant_id is not None:
            query = query.filter(AuditLog.tenant_id == tenant_id)
        if user_id is not None:
            query = query.filter(AuditLog.user_id == user_id)
        if date_from:
            query = query.filter(AuditLog.timestamp >= datetime.combine(date_from, time.min))
        if date_to:
            query = query.filter(AuditLog.timestamp <= datetime.combine(date_to, time.max))

        return paginate(query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()), page, limit)

    def get_log(self, log_id: int) -> AuditLog:
        entry = self.db.query(AuditLog).filter(AuditLog.id == log_id).first()
        if not entry:
            raise NotFoundError("Audit log", log_id)
        return entry
