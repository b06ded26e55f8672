# backend/modules/financial/schemas/financial_schemas.py

import datetime as dt
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.response_models import PaginationMeta
from ..enums.financial_enums import FinancialRecordType


class FinancialRecordCreate(BaseModel):
    type: FinancialRecordType
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    date: dt.date
    order_id: Optional[int] = None


class FinancialRecordUpdate(BaseModel):
    type: Optional[FinancialRecordType] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    date: Optional[dt.date] = None


class FinancialRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    type: str
    category: str
    description: Optional[str] = None
    amount: float
    date: dt.date
    order_id: Optional[int] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class FinancialRecordListResponse(BaseModel):
    records: List[FinancialRecordResponse]
    pagination: PaginationMeta


class CategoryTotals(BaseModel):
    income: float = 0
    expense: float = 0


class FinancialSummaryResponse(BaseModel):
    date_from: Optional[dt.date] = None
    date_to: Optional[dt.date] = None
    income: float
    expense: float
    net: float
    record_count: int
    by_category: Dict[str, CategoryTotals]
