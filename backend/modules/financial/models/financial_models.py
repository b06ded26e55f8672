from sqlalchemy import Column, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from core.database import Base
from core.mixins import TenantMixin, TimestampMixin


class FinancialRecord(Base, TimestampMixin, TenantMixin):
    __tablename__ = "financial_records"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(10), nullable=False, index=True)
    category = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)
    order_id = Column(
        Integer, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True
    )

    tenant = relationship("Tenant", back_populates="financial_records")
    order = relationship("Order")
