# backend/modules/tenants/services/import_service.py

"""
Schema-validated tenant import.

Uploaded files are parsed into raw records, each record is validated
against ``TenantImportRecord`` and upserted inside its own savepoint so a
bad row never takes the good ones down with it.
"""

import csv
import io
import json
import logging
from typing import Any, Dict, List, Optional, Tuple
from zipfile import BadZipFile

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import ValidationError
from ..enums.tenant_enums import ImportRecordStatus
from ..models.tenant_models import Tenant
from ..schemas.tenant_schemas import (ImportRecordResult, ImportResult,
                                      ImportRowError, TenantImportRecord)
from .sql_parser import SQLParseError, parse_sql

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ("csv", "json", "sql", "xlsx")

# Record fields copied onto the tenant row on upsert
UPSERT_FIELDS = (
    "name",
    "slug",
    "email",
    "phone",
    "address",
    "logo_url",
    "delivery_fee",
    "plan",
    "is_active",
    "theme",
    "branding",
    "settings",
)

RawRecords = List[Tuple[int, Dict[str, Any]]]


def detect_format(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        raise ValidationError("Uploaded file has no extension", error="Unsupported format")
    extension = filename.rsplit(".", 1)[1].lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise ValidationError(
            f"Unsupported file format '.{extension}'. Use one of: "
            + ", ".join(f".{ext}" for ext in SUPPORTED_EXTENSIONS),
            error="Unsupported format",
        )
    return extension


class TenantImportParser:
    """Turns file contents into ``(row_number, raw_record)`` pairs"""

    def __init__(self):
        self.warnings: List[str] = []

    def parse(self, content: bytes, file_format: str) -> RawRecords:
        if file_format == "xlsx":
            return self.parse_xlsx(content)

        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise ValidationError("File is not valid UTF-8 text", error="Invalid file")

        if file_format == "csv":
            return self.parse_csv(text)
        if file_format == "json":
            return self.parse_json(text)
        return self.parse_sql(text)

    def parse_csv(self, text: str) -> RawRecords:
        reader = csv.DictReader(io.StringIO(text))
        if not reader.fieldnames:
            raise ValidationError("CSV file has no header row", error="Invalid file")
        records = []
        # Header is line 1, so data rows start at 2
        for row_number, row in enumerate(reader, 2):
            if None in row:
                self.warnings.append(f"Row {row_number}: extra values ignored")
                row.pop(None)
            if not any((value or "").strip() for value in row.values()):
                continue
            records.append((row_number, {k.strip(): v for k, v in row.items() if k}))
        return records

    def parse_json(self, text: str) -> RawRecords:
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON: {e.msg} at line {e.lineno}", error="Invalid file")

        if isinstance(document, dict):
            document = document.get("tenants", document.get("data"))
        if not isinstance(document, list):
            raise ValidationError(
                "JSON must be a list of tenants or an object with a 'tenants' list",
                error="Invalid file",
            )

        records = []
        for index, item in enumerate(document, 1):
            if not isinstance(item, dict):
                records.append((index, {"__invalid__": item}))
                continue
            records.append((index, item))
        return records

    def parse_sql(self, text: str) -> RawRecords:
        try:
            parsed = parse_sql(text)
        except SQLParseError as e:
            raise ValidationError(f"Invalid SQL: {e}", error="Invalid file")

        for line, keyword in parsed.skipped:
            self.warnings.append(f"Line {line}: skipped unsupported {keyword} statement")

        records = []
        for statement in parsed.inserts:
            if statement.table != "tenants":
                self.warnings.append(
                    f"Line {statement.line}: skipped INSERT into '{statement.table}'"
                )
                continue
            columns = [column.lower() for column in statement.columns]
            # SQL rows are numbered by their position among tenant records
            for values in statement.rows:
                records.append((len(records) + 1, dict(zip(columns, values))))
        return records

    def parse_xlsx(self, content: bytes) -> RawRecords:
        try:
            wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except (InvalidFileException, BadZipFile, KeyError, OSError) as e:
            raise ValidationError(f"Invalid XLSX file: {e}", error="Invalid file")

        ws = wb["Tenants"] if "Tenants" in wb.sheetnames else wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if not header:
            raise ValidationError("XLSX sheet has no header row", error="Invalid file")
        columns = [str(cell).strip() if cell is not None else "" for cell in header]

        records = []
        for row_number, values in enumerate(rows, 2):
            if not any(value not in (None, "") for value in values):
                continue
            records.append(
                (row_number, {col: val for col, val in zip(columns, values) if col})
            )
        wb.close()
        return records


class TenantImportService:
    """Validates and upserts tenant records"""

    def __init__(self, db: Session):
        self.db = db

    def import_file(
        self, content: bytes, filename: Optional[str], dry_run: bool = False
    ) -> ImportResult:
        file_format = detect_format(filename)
        parser = TenantImportParser()
        records = parser.parse(content, file_format)
        if not records:
            parser.warnings.append("File contained no tenant records")

        result = self.import_records(records, dry_run=dry_run)
        result.warnings = parser.warnings + result.warnings
        logger.info(
            f"Tenant import ({file_format}, dry_run={dry_run}): "
            f"{result.created} created, {result.updated} updated, {result.failed} failed"
        )
        return result

    def import_records(self, records: RawRecords, dry_run: bool = False) -> ImportResult:
        results: List[ImportRecordResult] = []
        errors: List[ImportRowError] = []
        warnings: List[str] = []
        seen_slugs: Dict[str, int] = {}

        for row_number, raw in records:
            if "__invalid__" in raw:
                message = "Record must be an object"
                errors.append(ImportRowError(row=row_number, message=message))
                results.append(
                    ImportRecordResult(
                        row=row_number, status=ImportRecordStatus.FAILED, errors=[message]
                    )
                )
                continue

            try:
                record = TenantImportRecord.model_validate(raw)
            except PydanticValidationError as e:
                row_errors = [
                    ImportRowError(
                        row=row_number,
                        field=".".join(str(part) for part in err["loc"]) or None,
                        message=err["msg"],
                    )
                    for err in e.errors()
                ]
                errors.extend(row_errors)
                results.append(
                    ImportRecordResult(
                        row=row_number,
                        status=ImportRecordStatus.FAILED,
                        slug=raw.get("slug") if isinstance(raw.get("slug"), str) else None,
                        errors=[
                            f"{err.field}: {err.message}" if err.field else err.message
                            for err in row_errors
                        ],
                    )
                )
                continue

            if record.slug in seen_slugs:
                warnings.append(
                    f"Row {row_number}: slug '{record.slug}' repeats row "
                    f"{seen_slugs[record.slug]}; later values win"
                )
            seen_slugs[record.slug] = row_number

            results.append(self._upsert(row_number, record, errors))

        if dry_run:
            self.db.rollback()
        else:
            self.db.commit()

        created = sum(1 for r in results if r.status == ImportRecordStatus.CREATED)
        updated = sum(1 for r in results if r.status == ImportRecordStatus.UPDATED)
        failed = sum(1 for r in results if r.status == ImportRecordStatus.FAILED)
        return ImportResult(
            success=failed == 0,
            dry_run=dry_run,
            processed=len(results),
            created=created,
            updated=updated,
            failed=failed,
            errors=errors,
            warnings=warnings,
            results=results,
        )

    def _find_existing(self, record: TenantImportRecord) -> Optional[Tenant]:
        """Match on id, then email, then slug."""
        if record.id is not None:
            tenant = self.db.query(Tenant).filter(Tenant.id == record.id).first()
            if tenant:
                return tenant
        if record.email:
            tenant = (
                self.db.query(Tenant)
                .filter(func.lower(Tenant.email) == record.email.lower())
                .first()
            )
            if tenant:
                return tenant
        return self.db.query(Tenant).filter(Tenant.slug == record.slug).first()

    def _upsert(
        self, row_number: int, record: TenantImportRecord, errors: List[ImportRowError]
    ) -> ImportRecordResult:
        savepoint = self.db.begin_nested()
        try:
            tenant = self._find_existing(record)

            if tenant is None:
                values = record.model_dump(include=set(UPSERT_FIELDS))
                values["plan"] = record.plan.value
                tenant = Tenant(**values)
                self.db.add(tenant)
                status = ImportRecordStatus.CREATED
            else:
                if tenant.slug != record.slug:
                    clash = (
                        self.db.query(Tenant)
                        .filter(Tenant.slug == record.slug, Tenant.id != tenant.id)
                        .first()
                    )
                    if clash:
                        raise ValueError(
                            f"slug '{record.slug}' already belongs to tenant {clash.id}"
                        )
                # Columns the file did not carry keep their stored value
                values = record.model_dump(include=set(UPSERT_FIELDS), exclude_unset=True)
                if "plan" in values:
                    values["plan"] = record.plan.value
                for field_name, value in values.items():
                    if value is None and field_name in ("theme", "branding", "settings"):
                        continue
                    setattr(tenant, field_name, value)
                status = ImportRecordStatus.UPDATED

            self.db.flush()
            savepoint.commit()
            return ImportRecordResult(
                row=row_number, status=status, tenant_id=tenant.id, slug=tenant.slug
            )
        except (SQLAlchemyError, ValueError) as e:
            savepoint.rollback()
            message = str(e.orig) if getattr(e, "orig", None) is not None else str(e)
            logger.warning(f"Import row {row_number} failed: {message}")
            errors.append(ImportRowError(row=row_number, message=message))
            return ImportRecordResult(
                row=row_number,
                status=ImportRecordStatus.FAILED,
                slug=record.slug,
                errors=[message],
            )
