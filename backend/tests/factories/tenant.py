# backend/tests/factories/tenant.py

from decimal import Decimal

import factory
from factory import Faker, Sequence

from modules.tenants.models.tenant_models import Tenant
from .base import BaseFactory


class TenantFactory(BaseFactory):
    """Factory for creating tenants."""

    class Meta:
        model = Tenant

    name = Faker("company")
    slug = Sequence(lambda n: f"tenant-{n}")
    email = factory.LazyAttribute(lambda obj: f"contact@{obj.slug}.test")
    phone = "+55 11 99999-0000"
    delivery_fee = Decimal("5.00")
    plan = "basic"
    is_active = True
