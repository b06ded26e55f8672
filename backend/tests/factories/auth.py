# backend/tests/factories/auth.py

from functools import lru_cache

import factory
from factory import Faker, LazyFunction, Sequence

from core.auth import get_password_hash
from modules.auth.models.user_models import User
from .base import BaseFactory

DEFAULT_PASSWORD = "correct-horse-42"


@lru_cache(maxsize=None)
def default_password_hash() -> str:
    # bcrypt is slow; hash the shared test password once
    return get_password_hash(DEFAULT_PASSWORD)


class UserFactory(BaseFactory):
    """Factory for creating users."""

    class Meta:
        model = User

    tenant = None
    email = Sequence(lambda n: f"user{n}@example.test")
    name = Faker("name")
    role = "vendor"
    is_active = True
    hashed_password = LazyFunction(default_password_hash)

    @factory.lazy_attribute
    def tenant_id(self):
        return self.tenant.id if self.tenant is not None else None
