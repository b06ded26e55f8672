# backend/tests/factories/back_office.py

from datetime import date
from decimal import Decimal

from factory import Sequence, SubFactory

from modules.financial.models.financial_models import FinancialRecord
from modules.inventory.models.inventory_models import InventoryItem
from modules.settings.models.settings_models import Setting
from .base import BaseFactory
from .tenant import TenantFactory


class InventoryItemFactory(BaseFactory):
    class Meta:
        model = InventoryItem

    tenant = SubFactory(TenantFactory)
    name = Sequence(lambda n: f"Ingredient {n}")
    quantity = Decimal("50")
    min_quantity = Decimal("10")
    unit = "kg"
    cost = Decimal("12.50")


class FinancialRecordFactory(BaseFactory):
    class Meta:
        model = FinancialRecord

    tenant = SubFactory(TenantFactory)
    type = "EXPENSE"
    category = "suppliers"
    description = "Weekly delivery"
    amount = Decimal("100.00")
    date = date(2026, 3, 10)


class SettingFactory(BaseFactory):
    class Meta:
        model = Setting

    tenant = SubFactory(TenantFactory)
    key = Sequence(lambda n: f"setting.{n}")
    value = {"enabled": True}
    is_public = False
