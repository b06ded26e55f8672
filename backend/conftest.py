"""
Pytest configuration file for backend testing.
"""
import os
import sys
from pathlib import Path

# Settings are read once at import time, so the test environment must be in
# place before anything under core/ or modules/ is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-pytest-only-0123456789")
os.environ.setdefault("REALTIME_BACKPLANE_ENABLED", "false")

# Add the backend directory to Python path so imports work correctly
backend_dir = Path(__file__).parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest
from fastapi.testclient import TestClient

from app.main import app
from core.auth import build_token_claims, create_access_token
from core.database import Base, SessionLocal, engine, get_db
from modules.realtime.services.emitter import RealtimeEmitter, get_realtime_emitter
from modules.realtime.services.hub import RealtimeHub, get_realtime_hub
from tests.factories import BaseFactory, TenantFactory, UserFactory


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    BaseFactory.bind_session(db)
    try:
        yield db
    finally:
        BaseFactory.reset_session()
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def hub():
    """Isolated realtime hub so sockets never leak between tests."""
    return RealtimeHub()


@pytest.fixture(scope="function")
def client(db_session, hub):
    """Create a test client with database and realtime overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    emitter = RealtimeEmitter(hub)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_realtime_hub] = lambda: hub
    app.dependency_overrides[get_realtime_emitter] = lambda: emitter
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_token(user) -> str:
    return create_access_token(build_token_claims(user))


@pytest.fixture
def access_token():
    """Bearer token factory for websocket handshakes."""
    return make_token


@pytest.fixture
def auth_headers():
    """Build request headers for a user, scoped to a tenant when given."""
    def _headers(user, tenant=None):
        headers = {"Authorization": f"Bearer {make_token(user)}"}
        target = tenant if tenant is not None else user.tenant
        if target is not None:
            headers["x-tenant-id"] = target.slug
        return headers

    return _headers


@pytest.fixture
def tenant(db_session):
    return TenantFactory(slug="burger-house", name="Burger House")


@pytest.fixture
def other_tenant(db_session):
    return TenantFactory(slug="pizza-place", name="Pizza Place")


@pytest.fixture
def admin_user(tenant):
    return UserFactory(tenant=tenant, role="admin", email="admin@burger.test")


@pytest.fixture
def manager_user(tenant):
    return UserFactory(tenant=tenant, role="manager", email="manager@burger.test")


@pytest.fixture
def kitchen_user(tenant):
    return UserFactory(tenant=tenant, role="kitchen", email="kitchen@burger.test")


@pytest.fixture
def cashier_user(tenant):
    return UserFactory(tenant=tenant, role="cashier", email="cashier@burger.test")


@pytest.fixture
def customer_user(tenant):
    return UserFactory(tenant=tenant, role="customer", email="customer@burger.test")


@pytest.fixture
def other_admin(other_tenant):
    return UserFactory(tenant=other_tenant, role="admin", email="admin@pizza.test")


@pytest.fixture
def super_admin(db_session):
    return UserFactory(tenant=None, role="super_admin", email="root@platform.test")
