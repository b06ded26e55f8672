# backend/modules/financial/routes/financial_routes.py

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import CurrentUser
from core.database import get_db
from core.exceptions import ValidationError
from core.response_models import MessageResponse
from core.tenant_context import (ResolvedTenant, get_current_tenant,
                                 require_tenant_roles)
from ..enums.financial_enums import FinancialRecordType
from ..schemas.financial_schemas import (FinancialRecordCreate,
                                         FinancialRecordListResponse,
                                         FinancialRecordResponse,
                                         FinancialRecordUpdate,
                                         FinancialSummaryResponse)
from ..services.financial_service import FinancialService

router = APIRouter(prefix="/api/financial", tags=["Financial"])

finance_users = require_tenant_roles("admin", "manager")


def _check_range(date_from: Optional[date], date_to: Optional[date]) -> None:
    if date_from and date_to and date_from > date_to:
        raise ValidationError("date_from must be before date_to")


@router.get("", response_model=FinancialRecordListResponse)
async def list_financial_records(
    type: Optional[FinancialRecordType] = Query(None),
    category: Optional[str] = Query(None, max_length=100),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(finance_users),
):
    _check_range(date_from, date_to)
    records, pagination = FinancialService(db, tenant.id).list_records(
        record_type=type,
        category=category,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    return FinancialRecordListResponse(
        records=[FinancialRecordResponse.model_validate(r) for r in records],
        pagination=pagination,
    )


@router.get("/summary", response_model=FinancialSummaryResponse)
async def get_financial_summary(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(finance_users),
):
    """Totals over the range; both bounds are inclusive and optional."""
    _check_range(date_from, date_to)
    return FinancialService(db, tenant.id).summary(date_from, date_to)


@router.get("/{record_id}", response_model=FinancialRecordResponse)
async def get_financial_record(
    record_id: int,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(finance_users),
):
    return FinancialService(db, tenant.id).get_record(record_id)


@router.post("", response_model=FinancialRecordResponse, status_code=status.HTTP_201_CREATED)
async def create_financial_record(
    data: FinancialRecordCreate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(finance_users),
):
    return FinancialService(db, tenant.id).create_record(data)


@router.put("/{record_id}", response_model=FinancialRecordResponse)
async def update_financial_record(
    record_id: int,
    data: FinancialRecordUpdate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(finance_users),
):
    return FinancialService(db, tenant.id).update_record(record_id, data)


@router.delete("/{record_id}", response_model=MessageResponse)
async def delete_financial_record(
    record_id: int,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(finance_users),
):
    FinancialService(db, tenant.id).delete_record(record_id)
    return MessageResponse(message=f"Financial record {record_id} deleted")
