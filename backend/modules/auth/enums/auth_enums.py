from enum import Enum


class UserRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MANAGER = "manager"
    VENDOR = "vendor"
    KITCHEN = "kitchen"
    CASHIER = "cashier"
    CUSTOMER = "customer"


# Roles that manage a tenant's own back office
TENANT_MANAGEMENT_ROLES = (UserRole.ADMIN.value, UserRole.MANAGER.value)

# Roles that operate the point of sale and kitchen
STAFF_ROLES = (
    UserRole.ADMIN.value,
    UserRole.MANAGER.value,
    UserRole.VENDOR.value,
    UserRole.KITCHEN.value,
    UserRole.CASHIER.value,
)
