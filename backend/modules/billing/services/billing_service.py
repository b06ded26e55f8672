# backend/modules/billing/services/billing_service.py

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, PermissionDeniedError
from modules.auth.models.user_models import User
from modules.catalog.models.catalog_models import Product
from modules.orders.models.order_models import Order
from modules.tenants.enums.tenant_enums import TenantPlan
from modules.tenants.models.tenant_models import Tenant
from .plan_catalog import UNLIMITED, BillingPlan, get_plan

logger = logging.getLogger(__name__)


def month_start(now: datetime = None) -> datetime:
    now = now or datetime.utcnow()
    return datetime(now.year, now.month, 1)


class BillingService:
    """Plan lookups, usage counting and limit enforcement for one tenant"""

    def __init__(self, db: Session):
        self.db = db

    def _tenant(self, tenant_id: int) -> Tenant:
        tenant = self.db.query(Tenant).filter(Tenant.id == tenant_id).first()
        if tenant is None:
            raise NotFoundError("Tenant", tenant_id)
        return tenant

    def plan_for(self, tenant: Tenant) -> BillingPlan:
        plan = get_plan(tenant.plan)
        if plan is None:
            # Unknown stored plans fall back to the smallest one
            logger.warning(f"Tenant {tenant.id} has unknown plan '{tenant.plan}'")
            plan = get_plan(TenantPlan.BASIC.value)
        return plan

    def usage(self, tenant_id: int) -> Dict[str, int]:
        users = (
            self.db.query(func.count(User.id))
            .filter(User.tenant_id == tenant_id, User.is_active.is_(True))
            .scalar()
        )
        products = (
            self.db.query(func.count(Product.id))
            .filter(Product.tenant_id == tenant_id)
            .scalar()
        )
        orders = (
            self.db.query(func.count(Order.id))
            .filter(Order.tenant_id == tenant_id, Order.created_at >= month_start())
            .scalar()
        )
        return {
            "users": users or 0,
            "products": products or 0,
            "orders_this_month": orders or 0,
        }

    def summary(self, tenant_id: int) -> Dict:
        tenant = self._tenant(tenant_id)
        plan = self.plan_for(tenant)
        usage = self.usage(tenant_id)
        current = {
            "users": usage["users"],
            "products": usage["products"],
            "orders": usage["orders_this_month"],
        }
        over_limit: List[str] = [
            resource
            for resource, limit in plan.limits.items()
            if limit != UNLIMITED and current.get(resource, 0) > limit
        ]
        return {
            "tenant_id": tenant.id,
            "plan": asdict(plan),
            "amount": plan.amount,
            "currency": plan.currency,
            "usage": usage,
            "limits": dict(plan.limits),
            "over_limit": over_limit,
        }

    def change_plan(self, tenant_id: int, plan: TenantPlan) -> Dict:
        tenant = self._tenant(tenant_id)
        previous = tenant.plan
        tenant.plan = plan.value
        self.db.commit()
        logger.info(f"Tenant {tenant.id} plan changed {previous} -> {plan.value}")
        return self.summary(tenant_id)

    def ensure_within_limit(self, tenant_id: int, resource: str) -> None:
        """Raise 403 when adding one more ``resource`` would exceed the plan."""
        tenant = self._tenant(tenant_id)
        plan = self.plan_for(tenant)
        limit = plan.limit_for(resource)
        if limit == UNLIMITED:
            return

        usage = self.usage(tenant_id)
        current = usage["orders_this_month"] if resource == "orders" else usage[resource]
        if current >= limit:
            logger.warning(
                f"Tenant {tenant_id} reached {resource} limit {limit} on plan {plan.id}"
            )
            raise PermissionDeniedError(
                f"The {plan.name} plan allows at most {limit} {resource}; "
                "upgrade the plan to add more",
                error="Plan limit reached",
            )
