# backend/modules/billing/schemas/billing_schemas.py

from typing import Dict, List

from pydantic import BaseModel, ConfigDict

from modules.tenants.enums.tenant_enums import TenantPlan


class PlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    amount: int
    currency: str
    interval: str
    features: List[str]
    limits: Dict[str, int]


class PlanListResponse(BaseModel):
    plans: List[PlanResponse]


class UsageResponse(BaseModel):
    users: int
    products: int
    orders_this_month: int


class BillingSummaryResponse(BaseModel):
    tenant_id: int
    plan: PlanResponse
    amount: int
    currency: str
    usage: UsageResponse
    limits: Dict[str, int]
    over_limit: List[str]


class ChangePlanRequest(BaseModel):
    plan: TenantPlan
