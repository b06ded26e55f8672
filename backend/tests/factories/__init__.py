# backend/tests/factories/__init__.py

"""
Shared test factories for the Tabletop backend.
"""

from .base import BaseFactory
from .tenant import TenantFactory
from .auth import DEFAULT_PASSWORD, UserFactory
from .catalog import CategoryFactory, CustomizationFactory, ProductFactory
from .order import OrderFactory, OrderItemFactory
from .back_office import FinancialRecordFactory, InventoryItemFactory, SettingFactory

__all__ = [
    'BaseFactory',
    'TenantFactory',
    'DEFAULT_PASSWORD',
    'UserFactory',
    'CategoryFactory',
    'CustomizationFactory',
    'ProductFactory',
    'OrderFactory',
    'OrderItemFactory',
    'FinancialRecordFactory',
    'InventoryItemFactory',
    'SettingFactory',
]
