# backend/modules/financial/services/financial_service.py

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError
from core.response_models import PaginationMeta, paginate
from core.tenant_context import apply_tenant_filter
from modules.orders.models.order_models import Order
from ..enums.financial_enums import FinancialRecordType
from ..models.financial_models import FinancialRecord
from ..schemas.financial_schemas import (FinancialRecordCreate,
                                         FinancialRecordUpdate)

logger = logging.getLogger(__name__)


class FinancialService:
    """Income and expense ledger for one tenant"""

    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    def _records(self):
        return apply_tenant_filter(
            self.db.query(FinancialRecord), FinancialRecord, self.tenant_id
        )

    def _in_range(self, query, date_from: Optional[date], date_to: Optional[date]):
        if date_from:
            query = query.filter(FinancialRecord.date >= date_from)
        if date_to:
            query = query.filter(FinancialRecord.date <= date_to)
        return query

    def list_records(
        self,
        record_type: Optional[FinancialRecordType] = None,
        category: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[FinancialRecord], PaginationMeta]:
        query = self._in_range(self._records(), date_from, date_to)
        if record_type:
            query = query.filter(FinancialRecord.type == record_type.value)
        if category:
            query = query.filter(func.lower(FinancialRecord.category) == category.lower())
        query = query.order_by(FinancialRecord.date.desc(), FinancialRecord.id.desc())
        return paginate(query, page, limit)

    def get_record(self, record_id: int) -> FinancialRecord:
        record = self._records().filter(FinancialRecord.id == record_id).first()
        if not record:
            raise NotFoundError("Financial record", record_id)
        return record

    def _check_order(self, order_id: Optional[int]) -> None:
        if order_id is None:
            return
        exists = (
            apply_tenant_filter(self.db.query(Order.id), Order, self.tenant_id)
            .filter(Order.id == order_id)
            .first()
        )
        if not exists:
            raise ValidationError(
                f"Order {order_id} does not exist for this tenant", error="Invalid order"
            )

    def create_record(self, data: FinancialRecordCreate) -> FinancialRecord:
        self._check_order(data.order_id)
        values = data.model_dump()
        values["type"] = data.type.value
        record = FinancialRecord(tenant_id=self.tenant_id, **values)
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        logger.info(
            f"Tenant {self.tenant_id} recorded {record.type} {record.amount} ({record.category})"
        )
        return record

    def update_record(self, record_id: int, data: FinancialRecordUpdate) -> FinancialRecord:
        record = self.get_record(record_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            if field == "type":
                value = FinancialRecordType(value).value
            setattr(record, field, value)
        self.db.commit()
        self.db.refresh(record)
        return record

    def delete_record(self, record_id: int) -> None:
        record = self.get_record(record_id)
        self.db.delete(record)
        self.db.commit()
        logger.info(f"Tenant {self.tenant_id} deleted financial record {record_id}")

    def summary(self, date_from: Optional[date] = None, date_to: Optional[date] = None) -> Dict:
        """Income, expense, net and per-category totals over a date range."""
        rows = (
            self._in_range(
                self.db.query(
                    FinancialRecord.type,
                    FinancialRecord.category,
                    func.coalesce(func.sum(FinancialRecord.amount), 0),
                    func.count(FinancialRecord.id),
                ).filter(FinancialRecord.tenant_id == self.tenant_id),
                date_from,
                date_to,
            )
            .group_by(FinancialRecord.type, FinancialRecord.category)
            .all()
        )

        income = Decimal("0")
        expense = Decimal("0")
        count = 0
        by_category: Dict[str, Dict[str, float]] = {}
        for record_type, category, total, n in rows:
            total = Decimal(total)
            count += n
            bucket = by_category.setdefault(category, {"income": 0.0, "expense": 0.0})
            if record_type == FinancialRecordType.INCOME.value:
                income += total
                bucket["income"] += float(total)
            else:
                expense += total
                bucket["expense"] += float(total)

        return {
            "date_from": date_from,
            "date_to": date_to,
            "income": float(income),
            "expense": float(expense),
            "net": float(income - expense),
            "record_count": count,
            "by_category": by_category,
        }
