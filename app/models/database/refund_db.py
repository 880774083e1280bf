"""
Refund policy table
"""

from sqlalchemy import Column, String, Text, Boolean, DateTime, JSON
from sqlalchemy.sql import func
from app.core.database import Base


class RefundPolicyDB(Base):
    """Cancellation refund policies"""

    __tablename__ = "refund_policies"

    id = Column(String(50), primary_key=True, comment="Policy ID")
    name = Column(String(200), nullable=False, comment="Policy name")
    description = Column(Text, comment="Policy description")
    # [{"days_before_session": 7, "refund_percentage": "100"}, ...]
    rules = Column(JSON, nullable=False, comment="Refund rules")
    is_default = Column(Boolean, nullable=False, default=False, index=True, comment="Default policy flag")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), comment="Created at")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), comment="Updated at")

    __table_args__ = (
        {'comment': 'Refund policies'}
    )
