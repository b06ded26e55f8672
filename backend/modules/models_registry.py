"""Import every ORM model so relationships and metadata are complete."""

from modules.tenants.models.tenant_models import Tenant  # noqa: F401
from modules.auth.models.user_models import User  # noqa: F401
from modules.catalog.models.catalog_models import (  # noqa: F401
    Category,
    Product,
    ProductCustomization,
)
from modules.orders.models.order_models import Order, OrderItem, Payment  # noqa: F401
from modules.inventory.models.inventory_models import InventoryItem  # noqa: F401
from modules.financial.models.financial_models import FinancialRecord  # noqa: F401
from modules.settings.models.settings_models import Setting  # noqa: F401
from modules.audit.models.audit_models import AuditLog  # noqa: F401
