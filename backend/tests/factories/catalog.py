# backend/tests/factories/catalog.py

from decimal import Decimal

import factory
from factory import Faker, Sequence, SubFactory

from modules.catalog.models.catalog_models import (Category, Product,
                                                   ProductCustomization)
from .base import BaseFactory
from .tenant import TenantFactory


class CategoryFactory(BaseFactory):
    """Factory for creating menu categories."""

    class Meta:
        model = Category

    tenant = SubFactory(TenantFactory)
    name = Faker("word")
    description = Faker("sentence")
    order_index = Sequence(lambda n: n)
    is_active = True


class ProductFactory(BaseFactory):
    class Meta:
        model = Product

    category = SubFactory(CategoryFactory)
    tenant = factory.SelfAttribute("category.tenant")
    name = Sequence(lambda n: f"Product {n}")
    description = Faker("sentence")
    price = Decimal("20.00")
    is_available = True
    order_index = Sequence(lambda n: n)
    preparation_time = 15


class CustomizationFactory(BaseFactory):
    class Meta:
        model = ProductCustomization

    product = SubFactory(ProductFactory)
    tenant_id = factory.SelfAttribute("product.tenant_id")
    name = "Extra cheese"
    type = "ADDITION"
    price = Decimal("3.50")
    is_available = True
