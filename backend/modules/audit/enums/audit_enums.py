from enum import Enum


class AuditCategory(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"
    SYSTEM = "system"
    SECURITY = "security"


class AuditSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AuditEntity(str, Enum):
    TENANT = "tenant"
    USER = "user"
    ORDER = "order"
    PRODUCT = "product"
    SYSTEM = "system"
    ADMIN = "admin"


class AuditOutcome(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
