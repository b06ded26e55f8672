from enum import Enum


class TenantPlan(str, Enum):
    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class TenantStatusFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    INACTIVE = "inactive"


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"
    SQL = "sql"
    XLSX = "xlsx"


class ImportRecordStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    FAILED = "failed"
