# backend/core/database.py

import logging
from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url

# Create engine with optional echo for development
engine_kwargs = {
    "echo": settings.log_sql_queries,
    "pool_pre_ping": True,
}

if DATABASE_URL.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    if DATABASE_URL in {"sqlite://", "sqlite:///:memory:"}:
        engine_kwargs["poolclass"] = StaticPool
else:
    engine_kwargs["pool_size"] = settings.db_pool_size
    engine_kwargs["max_overflow"] = settings.db_max_overflow

engine = create_engine(
    DATABASE_URL,
    **engine_kwargs,
)

if engine.dialect.name == "sqlite":
    # Let SQLAlchemy own BEGIN so SAVEPOINT behaves on pysqlite

    @event.listens_for(engine, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _sqlite_begin(conn):
        conn.exec_driver_sql("BEGIN")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def set_session_tenant(db: Session, tenant_id: Optional[int]) -> None:
    """Expose the active tenant to row-level security policies.

    Only PostgreSQL understands ``app.current_tenant_id``; other dialects
    are left untouched.
    """
    if tenant_id is None:
        return
    bind = db.get_bind()
    if bind.dialect.name != "postgresql":
        return
    db.execute(
        text("SELECT set_config('app.current_tenant_id', :tenant_id, false)"),
        {"tenant_id": str(tenant_id)},
    )


def get_db():
    # Imported lazily: tenant_context depends on this module
    from .tenant_context import TenantContext

    db = SessionLocal()
    try:
        set_session_tenant(db, TenantContext.get_tenant_id())
        yield db
    finally:
        db.close()
