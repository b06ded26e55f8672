# backend/modules/billing/routes/billing_routes.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import CurrentUser
from core.database import get_db
from core.exceptions import NotFoundError
from core.tenant_context import (ResolvedTenant, get_current_tenant,
                                 get_tenant_user, require_tenant_roles)
from ..schemas.billing_schemas import (BillingSummaryResponse,
                                       ChangePlanRequest, PlanListResponse,
                                       PlanResponse)
from ..services.billing_service import BillingService
from ..services.plan_catalog import get_plan, list_plans

router = APIRouter(prefix="/api/billing", tags=["Billing"])


@router.get("/plans", response_model=PlanListResponse)
async def get_plans(current_user: CurrentUser = Depends(get_tenant_user)):
    return PlanListResponse(plans=[PlanResponse.model_validate(p) for p in list_plans()])


@router.get("/plans/{plan_id}", response_model=PlanResponse)
async def get_plan_details(
    plan_id: str,
    current_user: CurrentUser = Depends(get_tenant_user),
):
    plan = get_plan(plan_id)
    if plan is None:
        raise NotFoundError("Plan", plan_id)
    return PlanResponse.model_validate(plan)


@router.get("/summary", response_model=BillingSummaryResponse)
async def get_billing_summary(
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_tenant_roles("admin", "manager")),
):
    """Current plan, usage this month and the plan's limits."""
    return BillingService(db).summary(tenant.id)


@router.put("/plan", response_model=BillingSummaryResponse)
async def change_plan(
    data: ChangePlanRequest,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_tenant_roles("admin")),
):
    """Switch the tenant to another plan. Takes effect immediately."""
    return BillingService(db).change_plan(tenant.id, data.plan)
