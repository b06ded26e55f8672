# backend/modules/tenants/services/export_service.py

import csv
import io
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, List

import openpyxl
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from sqlalchemy import func
from sqlalchemy.orm import Session

from modules.auth.models.user_models import User
from modules.orders.models.order_models import Order
from modules.settings.models.settings_models import Setting
from ..enums.tenant_enums import ExportFormat, TenantStatusFilter
from ..models.tenant_models import Tenant
from ..schemas.tenant_schemas import ExportConfig

logger = logging.getLogger(__name__)

BASE_COLUMNS = [
    "id",
    "name",
    "slug",
    "email",
    "phone",
    "address",
    "logo_url",
    "delivery_fee",
    "plan",
    "is_active",
    "created_at",
    "updated_at",
]

# Columns written by the SQL export; the importer understands all of them
SQL_COLUMNS = BASE_COLUMNS[:10] + ["theme", "branding", "settings"]

MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.JSON: "application/json",
    ExportFormat.SQL: "application/sql",
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


@dataclass
class ExportFile:
    content: bytes
    media_type: str
    filename: str
    record_count: int


def sql_literal(value: Any) -> str:
    """Render a Python value as a standard SQL literal."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (dict, list)):
        value = json.dumps(value, sort_keys=True)
    elif isinstance(value, (datetime, date)):
        value = value.isoformat()
    return "'" + str(value).replace("'", "''") + "'"


def _flat_value(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class TenantExportService:
    """Serializes a filtered tenant list into a downloadable file"""

    def __init__(self, db: Session):
        self.db = db

    def _query_tenants(self, config: ExportConfig) -> List[Tenant]:
        filters = config.filters
        query = self.db.query(Tenant)
        if filters.status == TenantStatusFilter.ACTIVE:
            query = query.filter(Tenant.is_active.is_(True))
        elif filters.status == TenantStatusFilter.INACTIVE:
            query = query.filter(Tenant.is_active.is_(False))
        if filters.plan:
            query = query.filter(Tenant.plan == filters.plan.value)
        if filters.date_from:
            query = query.filter(
                Tenant.created_at >= datetime.combine(filters.date_from, time.min)
            )
        if filters.date_to:
            query = query.filter(
                Tenant.created_at
                < datetime.combine(filters.date_to + timedelta(days=1), time.min)
            )
        return query.order_by(Tenant.id.asc()).all()

    def build_records(self, config: ExportConfig) -> List[Dict[str, Any]]:
        """Tenant dictionaries with the optional related data requested."""
        tenants = self._query_tenants(config)
        records = []
        for tenant in tenants:
            record: Dict[str, Any] = {
                "id": tenant.id,
                "name": tenant.name,
                "slug": tenant.slug,
                "email": tenant.email,
                "phone": tenant.phone,
                "address": tenant.address,
                "logo_url": tenant.logo_url,
                "delivery_fee": tenant.delivery_fee,
                "plan": tenant.plan,
                "is_active": tenant.is_active,
                "created_at": tenant.created_at,
                "updated_at": tenant.updated_at,
            }
            if config.include_branding:
                record["theme"] = tenant.theme
                record["branding"] = tenant.branding
            if config.include_settings:
                record["settings"] = tenant.settings
                entries = (
                    self.db.query(Setting)
                    .filter(Setting.tenant_id == tenant.id)
                    .order_by(Setting.key)
                    .all()
                )
                record["setting_entries"] = {entry.key: entry.value for entry in entries}
            if config.include_users:
                users = (
                    self.db.query(User)
                    .filter(User.tenant_id == tenant.id)
                    .order_by(User.id)
                    .all()
                )
                record["users"] = [
                    {
                        "id": user.id,
                        "email": user.email,
                        "name": user.name,
                        "role": user.role,
                        "is_active": user.is_active,
                    }
                    for user in users
                ]
            if config.include_orders:
                orders = (
                    self.db.query(Order)
                    .filter(Order.tenant_id == tenant.id)
                    .order_by(Order.created_at.desc())
                    .all()
                )
                record["orders"] = [
                    {
                        "id": order.id,
                        "order_number": order.order_number,
                        "status": order.status,
                        "total_amount": order.total_amount,
                        "created_at": order.created_at,
                    }
                    for order in orders
                ]
                record["revenue"] = sum(
                    (order.total_amount for order in orders), Decimal("0")
                )
            records.append(record)
        return records

    def export(self, config: ExportConfig) -> ExportFile:
        records = self.build_records(config)
        stamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")
        filename = f"tenants_export_{stamp}.{config.format.value}"

        if config.format == ExportFormat.JSON:
            content = self._to_json(records, config)
        elif config.format == ExportFormat.CSV:
            content = self._to_csv(records, config)
        elif config.format == ExportFormat.SQL:
            content = self._to_sql(records)
        else:
            content = self._to_xlsx(records, config)

        logger.info(f"Exported {len(records)} tenants as {config.format.value}")
        return ExportFile(
            content=content,
            media_type=MEDIA_TYPES[config.format],
            filename=filename,
            record_count=len(records),
        )

    # ========== Formats ==========

    def _flat_columns(self, config: ExportConfig) -> List[str]:
        columns = list(BASE_COLUMNS)
        if config.include_branding:
            columns += ["theme", "branding"]
        if config.include_settings:
            columns += ["settings"]
        if config.include_users:
            columns += ["users_count"]
        if config.include_orders:
            columns += ["orders_count", "revenue"]
        return columns

    def _flat_row(self, record: Dict[str, Any], columns: List[str]) -> Dict[str, Any]:
        row = {}
        for column in columns:
            if column == "users_count":
                value = len(record.get("users", []))
            elif column == "orders_count":
                value = len(record.get("orders", []))
            else:
                value = record.get(column)
            row[column] = _flat_value(value)
        return row

    def _to_json(self, records: List[Dict[str, Any]], config: ExportConfig) -> bytes:
        document = {
            "exported_at": datetime.utcnow().isoformat(),
            "count": len(records),
            "config": config.model_dump(mode="json"),
            "tenants": records,
        }
        return json.dumps(document, indent=2, default=str).encode("utf-8")

    def _to_csv(self, records: List[Dict[str, Any]], config: ExportConfig) -> bytes:
        columns = self._flat_columns(config)
        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=columns)
        writer.writeheader()
        for record in records:
            writer.writerow(self._flat_row(record, columns))
        return output.getvalue().encode("utf-8")

    def _to_sql(self, records: List[Dict[str, Any]]) -> bytes:
        lines = [
            "-- Tenant export generated "
            + datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S"),
            f"-- {len(records)} tenants",
        ]
        column_list = ", ".join(SQL_COLUMNS)
        for record in records:
            values = ", ".join(sql_literal(record.get(column)) for column in SQL_COLUMNS)
            lines.append(f"INSERT INTO tenants ({column_list}) VALUES ({values});")
        return ("\n".join(lines) + "\n").encode("utf-8")

    def _to_xlsx(self, records: List[Dict[str, Any]], config: ExportConfig) -> bytes:
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Tenants"

        columns = self._flat_columns(config)
        self._write_sheet(ws, columns, [self._flat_row(r, columns) for r in records])

        if config.include_users:
            users_ws = wb.create_sheet("Users")
            user_columns = ["tenant_id", "id", "email", "name", "role", "is_active"]
            user_rows = [
                {"tenant_id": record["id"], **user}
                for record in records
                for user in record.get("users", [])
            ]
            self._write_sheet(users_ws, user_columns, user_rows)

        output = io.BytesIO()
        wb.save(output)
        return output.getvalue()

    def _write_sheet(self, ws, columns: List[str], rows: List[Dict[str, Any]]) -> None:
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(
            start_color="366092", end_color="366092", fill_type="solid"
        )
        center_alignment = Alignment(horizontal="center", vertical="center")

        for col, header in enumerate(columns, 1):
            cell = ws.cell(row=1, column=col)
            cell.value = header
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = center_alignment

        for row_idx, row in enumerate(rows, 2):
            for col_idx, column in enumerate(columns, 1):
                ws.cell(row=row_idx, column=col_idx, value=_flat_value(row.get(column)))

        # Auto-adjust column widths
        for col_idx, column in enumerate(columns, 1):
            values = [column] + [str(row.get(column) or "") for row in rows]
            width = min(max(len(value) for value in values) + 2, 50)
            ws.column_dimensions[get_column_letter(col_idx)].width = width
