"""
Discount rule table
"""

from sqlalchemy import Column, String, Integer, Numeric, Text, Boolean, DateTime
from sqlalchemy.sql import func
from app.core.database import Base


class DiscountRuleDB(Base):
    """Automatic discount rules"""

    __tablename__ = "discount_rules"

    # Identity
    id = Column(String(50), primary_key=True, comment="Rule ID")
    name = Column(String(200), nullable=False, comment="Rule name")
    description = Column(Text, comment="Rule description")
    rule_type = Column(String(20), nullable=False, comment="sibling / bulk / early_bird")

    # Conditions
    min_children = Column(Integer, comment="Sibling: distinct children required")
    min_quantity = Column(Integer, comment="Bulk: items required")
    days_before_session = Column(Integer, comment="Early bird: lead time in days")

    # Discount
    discount_type = Column(String(20), nullable=False, comment="percentage / fixed")
    discount_value = Column(Numeric(10, 2), nullable=False, comment="Percentage or pence")
    applies_to = Column(String(20), nullable=False, default="all", comment="all / additional")

    # Evaluation
    is_active = Column(Boolean, nullable=False, default=True, index=True, comment="Active flag")
    priority = Column(Integer, nullable=False, default=0, index=True, comment="Higher applies first")

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), comment="Created at")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), comment="Updated at")

    __table_args__ = (
        {'comment': 'Automatic discount rules'}
    )
