# backend/modules/billing/services/plan_catalog.py

"""
Static catalog of subscription plans and their resource limits.

A limit of ``UNLIMITED`` (-1) means the resource is not capped.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from modules.tenants.enums.tenant_enums import TenantPlan

UNLIMITED = -1


@dataclass(frozen=True)
class BillingPlan:
    id: str
    name: str
    description: str
    amount: int  # cents per interval
    currency: str
    interval: str
    features: List[str] = field(default_factory=list)
    limits: Dict[str, int] = field(default_factory=dict)

    def limit_for(self, resource: str) -> int:
        return self.limits.get(resource, UNLIMITED)


PLAN_CATALOG: Dict[str, BillingPlan] = {
    TenantPlan.BASIC.value: BillingPlan(
        id=TenantPlan.BASIC.value,
        name="Basic",
        description="For small restaurants getting started",
        amount=4900,
        currency="usd",
        interval="month",
        features=[
            "Up to 3 users",
            "Up to 50 products",
            "Up to 100 orders per month",
            "Basic dashboard",
            "Email support",
        ],
        limits={"users": 3, "products": 50, "orders": 100},
    ),
    TenantPlan.STANDARD.value: BillingPlan(
        id=TenantPlan.STANDARD.value,
        name="Standard",
        description="For growing restaurants",
        amount=9900,
        currency="usd",
        interval="month",
        features=[
            "Up to 10 users",
            "Up to 200 products",
            "Up to 500 orders per month",
            "Advanced dashboard",
            "Full point of sale",
            "Priority support",
        ],
        limits={"users": 10, "products": 200, "orders": 500},
    ),
    TenantPlan.PREMIUM.value: BillingPlan(
        id=TenantPlan.PREMIUM.value,
        name="Premium",
        description="For large operations",
        amount=19900,
        currency="usd",
        interval="month",
        features=[
            "Unlimited users",
            "Unlimited products",
            "Unlimited orders",
            "Multi-store point of sale",
            "Dedicated support",
        ],
        limits={"users": UNLIMITED, "products": UNLIMITED, "orders": UNLIMITED},
    ),
    TenantPlan.ENTERPRISE.value: BillingPlan(
        id=TenantPlan.ENTERPRISE.value,
        name="Enterprise",
        description="Custom deployments and integrations",
        amount=49900,
        currency="usd",
        interval="month",
        features=[
            "Everything in Premium",
            "Custom integrations",
            "White-label storefront",
            "Account manager",
        ],
        limits={"users": UNLIMITED, "products": UNLIMITED, "orders": UNLIMITED},
    ),
}


def get_plan(plan_id: str) -> Optional[BillingPlan]:
    return PLAN_CATALOG.get((plan_id or "").lower())


def list_plans() -> List[BillingPlan]:
    return list(PLAN_CATALOG.values())
