from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text

from core.database import Base
from core.mixins import TimestampMixin


class AuditLog(Base, TimestampMixin):
    """
    Record of a platform administration action.

    ``tenant_id`` is a plain column rather than a foreign key so the trail
    outlives the tenants it describes.
    """

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    action = Column(String(100), nullable=False, index=True)
    category = Column(String(20), nullable=False, index=True)
    severity = Column(String(20), nullable=False, index=True)
    outcome = Column(String(20), nullable=False, default="success")
    entity_type = Column(String(20), nullable=False, index=True)
    entity_id = Column(String(100), nullable=True)
    entity_name = Column(String(200), nullable=True)
    description = Column(Text, nullable=False)
    tenant_id = Column(Integer, nullable=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    user_email = Column(String(255), nullable=True)
    client_ip = Column(String(45), nullable=True)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    audit_metadata = Column(JSON, nullable=True)

    __table_args__ = (
        Index("idx_audit_timestamp_category", "timestamp", "category"),
    )

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', outcome='{self.outcome}')>"
