"""
Application startup validation and initialization.

Checks run once when the server boots; failures abort a production start
and are logged as warnings everywhere else.
"""

import logging
import sys
from typing import List, Tuple

import sqlalchemy as sa
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from core.config import settings
from core.database import engine

logger = logging.getLogger(__name__)

REQUIRED_TABLES = (
    "tenants",
    "users",
    "categories",
    "products",
    "orders",
    "inventory_items",
    "financial_records",
    "settings",
)


class StartupValidator:
    """Validates application startup requirements"""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def check_database_connection(self) -> bool:
        """Check database connectivity"""
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection successful")
            return True
        except SQLAlchemyError as e:
            self.errors.append(f"Database connection failed: {e}")
            return False

    def check_environment_config(self) -> bool:
        if settings.is_development and "dev-secret" in settings.jwt_secret_key:
            self.warnings.append("Using development JWT secret - change for production")
        if settings.realtime_backplane_enabled and not settings.redis_url:
            message = "Realtime backplane enabled but REDIS_URL is not set"
            if settings.is_production:
                self.errors.append(message)
                return False
            self.warnings.append(f"{message} - running single-node")
        return True

    def check_required_tables(self) -> bool:
        """Warn about tables that migrations have not created yet"""
        try:
            existing = set(sa.inspect(engine).get_table_names())
        except SQLAlchemyError as e:
            self.warnings.append(f"Could not check database tables: {e}")
            return True

        missing = [t for t in REQUIRED_TABLES if t not in existing]
        if missing:
            self.warnings.append(
                f"Missing database tables: {', '.join(missing)}. "
                "Run migrations with: alembic upgrade head"
            )
        return True

    def validate_all(self) -> Tuple[bool, List[str], List[str]]:
        """Run all validation checks"""
        checks = [
            ("Environment Configuration", self.check_environment_config),
            ("Database Connection", self.check_database_connection),
            ("Database Tables", self.check_required_tables),
        ]

        all_passed = True
        for check_name, check_func in checks:
            logger.info(f"Running check: {check_name}")
            if not check_func():
                all_passed = False

        return all_passed, self.errors, self.warnings


def run_startup_checks() -> Tuple[bool, List[str]]:
    """Run all startup validation checks"""
    logger.info("=" * 60)
    logger.info("Starting Tabletop backend")
    logger.info(f"Environment: {settings.environment}")
    logger.info("=" * 60)

    validator = StartupValidator()
    passed, errors, warnings = validator.validate_all()

    for warning in warnings:
        logger.warning(f"Startup warning: {warning}")
    for error in errors:
        logger.error(f"Startup error: {error}")

    if not passed and settings.is_production:
        logger.error("Cannot start in production with errors!")
        sys.exit(1)
    elif not passed:
        logger.warning(f"Starting in {settings.environment} mode despite errors")
    else:
        logger.info("All startup checks passed")

    return passed, warnings


def configure_startup_logging():
    """Configure logging for startup"""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
