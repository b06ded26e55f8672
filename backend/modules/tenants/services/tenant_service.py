# backend/modules/tenants/services/tenant_service.py

"""
Core service for platform-level tenant management.
"""

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from core.auth import get_password_hash
from core.exceptions import ConflictError, NotFoundError
from core.response_models import PaginationMeta, paginate
from modules.auth.enums.auth_enums import UserRole
from modules.auth.models.user_models import User
from modules.catalog.models.catalog_models import Product
from modules.orders.enums.order_enums import OrderStatus
from modules.orders.models.order_models import Order
from ..enums.tenant_enums import TenantPlan, TenantStatusFilter
from ..models.tenant_models import Tenant
from ..schemas.tenant_schemas import TenantCreate, TenantUpdate

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "name": Tenant.name,
    "created_at": Tenant.created_at,
    "plan": Tenant.plan,
    "slug": Tenant.slug,
}


class TenantService:
    """Service for creating, listing and maintaining tenants"""

    def __init__(self, db: Session):
        self.db = db

    def get_tenant(self, tenant_id: int) -> Tenant:
        tenant = self.db.query(Tenant).filter(Tenant.id == tenant_id).first()
        if not tenant:
            raise NotFoundError("Tenant", tenant_id)
        return tenant

    def get_by_slug(self, slug: str) -> Optional[Tenant]:
        return self.db.query(Tenant).filter(Tenant.slug == slug.lower()).first()

    def list_tenants(
        self,
        search: Optional[str] = None,
        status: TenantStatusFilter = TenantStatusFilter.ALL,
        plan: Optional[TenantPlan] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Tenant], PaginationMeta]:
        query = self.db.query(Tenant)

        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                or_(
                    func.lower(Tenant.name).like(pattern),
                    func.lower(Tenant.slug).like(pattern),
                    func.lower(Tenant.email).like(pattern),
                )
            )
        if status == TenantStatusFilter.ACTIVE:
            query = query.filter(Tenant.is_active.is_(True))
        elif status == TenantStatusFilter.INACTIVE:
            query = query.filter(Tenant.is_active.is_(False))
        if plan:
            query = query.filter(Tenant.plan == plan.value)

        column = SORTABLE_FIELDS.get(sort_by, Tenant.created_at)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        query = query.order_by(ordering, Tenant.id.asc())

        return paginate(query, page, limit)

    def get_counts(self, tenant_ids: List[int]) -> Dict[int, Dict[str, int]]:
        """Users, orders and products per tenant for list views."""
        counts = {tid: {"users_count": 0, "orders_count": 0, "products_count": 0} for tid in tenant_ids}
        if not tenant_ids:
            return counts
        for model, key in ((User, "users_count"), (Order, "orders_count"), (Product, "products_count")):
            rows = (
                self.db.query(model.tenant_id, func.count(model.id))
                .filter(model.tenant_id.in_(tenant_ids))
                .group_by(model.tenant_id)
                .all()
            )
            for tenant_id, count in rows:
                counts[tenant_id][key] = count
        return counts

    def create_tenant(self, data: TenantCreate) -> Tenant:
        if self.get_by_slug(data.slug):
            raise ConflictError(f"Tenant slug '{data.slug}' already exists")

        tenant = Tenant(
            name=data.name,
            slug=data.slug,
            email=data.email,
            phone=data.phone,
            address=data.address,
            logo_url=data.logo_url,
            delivery_fee=data.delivery_fee,
            plan=data.plan.value,
            is_active=data.is_active,
            theme=data.theme,
            branding=data.branding,
            settings=data.settings,
        )
        self.db.add(tenant)
        self.db.flush()

        if data.admin_email:
            self.db.add(
                User(
                    tenant_id=tenant.id,
                    email=data.admin_email.lower(),
                    name=data.admin_name or f"{data.name} Admin",
                    hashed_password=get_password_hash(data.admin_password),
                    role=UserRole.ADMIN.value,
                )
            )

        self.db.commit()
        self.db.refresh(tenant)
        logger.info(f"Created tenant {tenant.slug} (id={tenant.id})")
        return tenant

    def update_tenant(self, tenant_id: int, data: TenantUpdate) -> Tenant:
        tenant = self.get_tenant(tenant_id)
        changes = data.model_dump(exclude_unset=True)

        new_slug = changes.get("slug")
        if new_slug and new_slug != tenant.slug:
            existing = self.get_by_slug(new_slug)
            if existing and existing.id != tenant.id:
                raise ConflictError(f"Tenant slug '{new_slug}' already exists")

        for field, value in changes.items():
            if field == "plan" and value is not None:
                value = TenantPlan(value).value
            setattr(tenant, field, value)

        self.db.commit()
        self.db.refresh(tenant)
        logger.info(f"Updated tenant {tenant.id}: {sorted(changes)}")
        return tenant

    def delete_tenant(self, tenant_id: int) -> None:
        tenant = self.get_tenant(tenant_id)
        self.db.delete(tenant)
        self.db.commit()
        logger.info(f"Deleted tenant {tenant_id}")

    def toggle_status(self, tenant_id: int) -> Tenant:
        tenant = self.get_tenant(tenant_id)
        tenant.is_active = not tenant.is_active
        self.db.commit()
        self.db.refresh(tenant)
        logger.info(f"Tenant {tenant.slug} is_active={tenant.is_active}")
        return tenant

    def get_stats(self) -> Dict:
        total = self.db.query(func.count(Tenant.id)).scalar() or 0
        active = (
            self.db.query(func.count(Tenant.id))
            .filter(Tenant.is_active.is_(True))
            .scalar()
            or 0
        )
        by_plan = {plan.value: 0 for plan in TenantPlan}
        for plan, count in (
            self.db.query(Tenant.plan, func.count(Tenant.id)).group_by(Tenant.plan).all()
        ):
            by_plan[plan] = count

        revenue = (
            self.db.query(func.coalesce(func.sum(Order.total_amount), 0))
            .filter(Order.status != OrderStatus.CANCELLED.value)
            .scalar()
        )

        return {
            "total_tenants": total,
            "active_tenants": active,
            "inactive_tenants": total - active,
            "tenants_by_plan": by_plan,
            "total_users": self.db.query(func.count(User.id)).scalar() or 0,
            "total_orders": self.db.query(func.count(Order.id)).scalar() or 0,
            "total_revenue": float(revenue or 0),
        }
