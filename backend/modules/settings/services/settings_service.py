# backend/modules/settings/services/settings_service.py

"""
Core service for tenant settings and profile management.
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from core.tenant_context import apply_tenant_filter
from modules.tenants.models.tenant_models import Tenant
from ..models.settings_models import Setting
from ..schemas.settings_schemas import (BulkSettingItem, SettingUpsert,
                                        TenantProfileUpdate)

logger = logging.getLogger(__name__)


class SettingsService:
    """Service for one tenant's key/value settings and profile"""

    def __init__(self, db: Session, tenant_id: int):
        self.db = db
        self.tenant_id = tenant_id

    def _settings(self):
        return apply_tenant_filter(self.db.query(Setting), Setting, self.tenant_id)

    # ========== Settings CRUD ==========

    def list_settings(self) -> List[Setting]:
        return self._settings().order_by(Setting.key).all()

    def get_setting(self, key: str) -> Setting:
        setting = self._settings().filter(Setting.key == key).first()
        if not setting:
            raise NotFoundError("Setting", key)
        return setting

    def _upsert(self, key: str, data: SettingUpsert) -> Setting:
        setting = self._settings().filter(Setting.key == key).first()
        if setting is None:
            setting = Setting(tenant_id=self.tenant_id, key=key)
            self.db.add(setting)
        setting.value = data.value
        setting.is_public = data.is_public
        return setting

    def upsert_setting(self, key: str, data: SettingUpsert) -> Setting:
        setting = self._upsert(key, data)
        self.db.commit()
        self.db.refresh(setting)
        logger.info(f"Tenant {self.tenant_id} set setting '{key}'")
        return setting

    def bulk_upsert(self, items: List[BulkSettingItem]) -> List[Setting]:
        """Upsert every item in one transaction; later duplicates win."""
        latest = {item.key: item for item in items}
        settings = [self._upsert(key, item) for key, item in latest.items()]
        self.db.commit()
        for setting in settings:
            self.db.refresh(setting)
        logger.info(f"Tenant {self.tenant_id} bulk-updated {len(settings)} settings")
        return settings

    def delete_setting(self, key: str) -> None:
        setting = self.get_setting(key)
        self.db.delete(setting)
        self.db.commit()
        logger.info(f"Tenant {self.tenant_id} deleted setting '{key}'")

    # ========== Tenant profile ==========

    def get_profile(self) -> Tenant:
        tenant = self.db.query(Tenant).filter(Tenant.id == self.tenant_id).first()
        if not tenant:
            raise NotFoundError("Tenant", self.tenant_id)
        return tenant

    def update_profile(self, data: TenantProfileUpdate) -> Tenant:
        tenant = self.get_profile()
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if value is None and field in ("name", "delivery_fee"):
                continue
            setattr(tenant, field, value)
        self.db.commit()
        self.db.refresh(tenant)
        logger.info(f"Tenant {self.tenant_id} profile updated: {sorted(changes)}")
        return tenant
