# backend/modules/settings/routes/settings_routes.py

"""
Routes for tenant settings and the tenant profile.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from core.auth import CurrentUser
from core.database import get_db
from core.response_models import MessageResponse
from core.tenant_context import (ResolvedTenant, get_current_tenant,
                                 get_tenant_user, require_tenant_roles)
from modules.realtime.services.emitter import (RealtimeEmitter,
                                               get_realtime_emitter)
from ..schemas.settings_schemas import (SETTING_KEY_PATTERN,
                                        BulkSettingUpdate, SettingListResponse,
                                        SettingResponse, SettingUpsert,
                                        TenantProfileResponse,
                                        TenantProfileUpdate)
from ..services.settings_service import SettingsService

router = APIRouter(prefix="/api/settings", tags=["Settings"])

settings_managers = require_tenant_roles("admin", "manager")

SettingKey = Path(..., min_length=1, max_length=100, pattern=SETTING_KEY_PATTERN)


# ========== Tenant profile ==========


@router.get("/tenant/profile", response_model=TenantProfileResponse)
async def get_tenant_profile(
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_tenant_user),
):
    return SettingsService(db, tenant.id).get_profile()


@router.put("/tenant/profile", response_model=TenantProfileResponse)
async def update_tenant_profile(
    data: TenantProfileUpdate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(require_tenant_roles("admin")),
):
    """
    Update the restaurant's name, contact details, delivery fee and look.

    Returns:
        The updated profile
    """
    profile = SettingsService(db, tenant.id).update_profile(data)
    payload = TenantProfileResponse.model_validate(profile).model_dump(mode="json")
    await emitter.broadcast_to_tenant(tenant.id, "settings-updated", {"profile": payload})
    return payload


# ========== Settings ==========


@router.get("", response_model=SettingListResponse)
async def list_settings(
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(settings_managers),
):
    settings = SettingsService(db, tenant.id).list_settings()
    return SettingListResponse(
        settings=[SettingResponse.model_validate(s) for s in settings],
        values={s.key: s.value for s in settings},
    )


@router.put("", response_model=SettingListResponse)
async def bulk_update_settings(
    data: BulkSettingUpdate,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(settings_managers),
):
    """Upsert several settings in one transaction."""
    settings = SettingsService(db, tenant.id).bulk_upsert(data.settings)
    values = {s.key: s.value for s in settings}
    await emitter.broadcast_to_tenant(tenant.id, "settings-updated", {"settings": values})
    return SettingListResponse(
        settings=[SettingResponse.model_validate(s) for s in settings],
        values=values,
    )


@router.get("/{key}", response_model=SettingResponse)
async def get_setting(
    key: str = SettingKey,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(settings_managers),
):
    return SettingsService(db, tenant.id).get_setting(key)


@router.put("/{key}", response_model=SettingResponse)
async def upsert_setting(
    data: SettingUpsert,
    key: str = SettingKey,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(settings_managers),
):
    setting = SettingsService(db, tenant.id).upsert_setting(key, data)
    await emitter.broadcast_to_tenant(
        tenant.id, "settings-updated", {"settings": {setting.key: setting.value}}
    )
    return setting


@router.delete("/{key}", response_model=MessageResponse)
async def delete_setting(
    key: str = SettingKey,
    tenant: ResolvedTenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    emitter: RealtimeEmitter = Depends(get_realtime_emitter),
    current_user: CurrentUser = Depends(settings_managers),
):
    SettingsService(db, tenant.id).delete_setting(key)
    await emitter.broadcast_to_tenant(tenant.id, "settings-updated", {"deleted": key})
    return MessageResponse(message=f"Setting '{key}' deleted")
