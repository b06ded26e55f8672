from sqlalchemy import Boolean, Column, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import relationship

from core.database import Base
from core.mixins import TenantMixin, TimestampMixin


class Setting(Base, TimestampMixin, TenantMixin):
    """Tenant-scoped key/value configuration entry"""

    __tablename__ = "settings"
    __table_args__ = (
        UniqueConstraint("tenant_id", "key", name="uq_settings_tenant_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), nullable=False, index=True)
    value = Column(JSON, nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)

    tenant = relationship("Tenant", back_populates="setting_entries")
