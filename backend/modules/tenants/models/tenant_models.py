from sqlalchemy import Boolean, Column, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import relationship

from core.database import Base
from core.mixins import TimestampMixin
from ..enums.tenant_enums import TenantPlan


class Tenant(Base, TimestampMixin):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    logo_url = Column(String(500), nullable=True)
    delivery_fee = Column(Numeric(10, 2), nullable=False, default=0)
    plan = Column(String(20), nullable=False, default=TenantPlan.BASIC.value, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    theme = Column(JSON, nullable=True)
    branding = Column(JSON, nullable=True)
    settings = Column(JSON, nullable=True)

    # Child rows go with the tenant
    users = relationship("User", back_populates="tenant", cascade="all, delete-orphan")
    categories = relationship(
        "Category", back_populates="tenant", cascade="all, delete-orphan"
    )
    products = relationship(
        "Product", back_populates="tenant", cascade="all, delete-orphan"
    )
    orders = relationship("Order", back_populates="tenant", cascade="all, delete-orphan")
    inventory_items = relationship(
        "InventoryItem", back_populates="tenant", cascade="all, delete-orphan"
    )
    financial_records = relationship(
        "FinancialRecord", back_populates="tenant", cascade="all, delete-orphan"
    )
    setting_entries = relationship(
        "Setting", back_populates="tenant", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Tenant(id={self.id}, slug='{self.slug}', active={self.is_active})>"
