from sqlalchemy import Column, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from core.database import Base
from core.mixins import TenantMixin, TimestampMixin


class InventoryItem(Base, TimestampMixin, TenantMixin):
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    quantity = Column(Numeric(12, 3), nullable=False, default=0)
    min_quantity = Column(Numeric(12, 3), nullable=False, default=0)
    unit = Column(String(20), nullable=False, default="un")
    cost = Column(Numeric(10, 2), nullable=True)
    supplier = Column(String(200), nullable=True)

    tenant = relationship("Tenant", back_populates="inventory_items")

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_quantity
