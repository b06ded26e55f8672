import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import modules.models_registry  # noqa: F401
from app.startup import configure_startup_logging, run_startup_checks
from core.config import settings
from core.database import get_db
from core.exceptions import register_exception_handlers
from core.tenant_context import TenantResolutionMiddleware
from modules.realtime.services.backplane import RedisBackplane
from modules.realtime.services.hub import realtime_hub

# ========== Authentication & Users ==========
from modules.auth.routes.auth_routes import router as auth_router
from modules.users.routes.user_routes import router as user_router

# ========== Platform administration ==========
from modules.tenants.routes.admin_routes import router as admin_router
from modules.audit.routes.audit_routes import router as audit_router

# ========== Catalog & Orders ==========
from modules.catalog.routes.category_routes import router as category_router
from modules.catalog.routes.product_routes import router as product_router
from modules.orders.routes.order_routes import router as order_router
from modules.public.routes.public_routes import router as public_router

# ========== Back office ==========
from modules.inventory.routes.inventory_routes import router as inventory_router
from modules.financial.routes.financial_routes import router as financial_router
from modules.settings.routes.settings_routes import router as settings_router
from modules.billing.routes.billing_routes import router as billing_router

# ========== Realtime ==========
from modules.realtime.routes.realtime_routes import router as realtime_router

configure_startup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Tabletop API",
    description="""
    Multi-tenant restaurant ordering backend.

    ## Features

    * **Tenants** - Each restaurant is isolated by subdomain or `x-tenant-id`
    * **Catalog** - Categories, products and customizations
    * **Orders** - POS and storefront orders with payments
    * **Back office** - Inventory, financial records, settings and billing
    * **Realtime** - WebSocket rooms per tenant and role at `/ws`
    * **Platform admin** - Bulk tenant operations, export and import

    ## Authentication

    Use `/api/auth/login` to obtain a bearer token.
    """,
    version="1.0.0",
)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

# Middleware runs in reverse order of addition: CORS sees preflights first
app.add_middleware(TenantResolutionMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ========== Include all routers (auth first) ==========

app.include_router(auth_router)
app.include_router(user_router)

app.include_router(admin_router)
app.include_router(audit_router)

app.include_router(category_router)
app.include_router(product_router)
app.include_router(order_router)
app.include_router(public_router)

app.include_router(inventory_router)
app.include_router(financial_router)
app.include_router(settings_router)
app.include_router(billing_router)

app.include_router(realtime_router)


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Validate configuration and join the realtime backplane"""
    run_startup_checks()

    if settings.backplane_configured:
        backplane = RedisBackplane(realtime_hub.server_id)
        try:
            await realtime_hub.attach_backplane(backplane)
        except RedisError:
            if settings.is_production:
                raise
            logger.warning("Realtime backplane unavailable; running single-node")


@app.on_event("shutdown")
async def shutdown_event():
    await realtime_hub.detach_backplane()


@app.get("/api/health", tags=["Health"])
async def health_check(db: Session = Depends(get_db)):
    """Liveness probe; reports whether the database answers."""
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        database = "unavailable"
    return {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "environment": settings.environment,
    }


@app.get("/")
def read_root():
    return {"message": "Tabletop backend is running"}
