# backend/modules/audit/schemas/audit_schemas.py

import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.response_models import PaginationMeta


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: dt.datetime
    action: str
    category: str
    severity: str
    outcome: str
    entity_type: str
    entity_id: Optional[str] = None
    entity_name: Optional[str] = None
    description: str
    tenant_id: Optional[int] = None
    user_id: Optional[int] = None
    user_email: Optional[str] = None
    client_ip: Optional[str] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="audit_metadata")


class AuditLogListResponse(BaseModel):
    logs: List[AuditLogResponse]
    pagination: PaginationMeta
