"""
Coupon tables
"""

from sqlalchemy import Column, String, Integer, Numeric, Text, Boolean, DateTime, JSON
from sqlalchemy.sql import func
from app.core.database import Base


class CouponDB(Base):
    """Coupon codes"""

    __tablename__ = "coupons"

    # Identity
    id = Column(String(50), primary_key=True, comment="Coupon ID")
    code = Column(String(50), nullable=False, unique=True, index=True, comment="Upper-case code")
    description = Column(Text, comment="Admin description")

    # Discount
    discount_type = Column(String(20), nullable=False, comment="percentage / fixed")
    discount_value = Column(Numeric(10, 2), nullable=False, comment="Percentage or pence")
    min_purchase = Column(Integer, comment="Minimum cart total in pence")

    # Usage
    max_uses = Column(Integer, comment="Total redemptions allowed")
    used_count = Column(Integer, nullable=False, default=0, comment="Redemptions so far")

    # Validity
    valid_from = Column(DateTime(timezone=True), index=True, comment="Valid from")
    valid_until = Column(DateTime(timezone=True), index=True, comment="Valid until")
    applicable_sessions = Column(JSON, comment="Session IDs, empty for all")
    is_active = Column(Boolean, nullable=False, default=True, index=True, comment="Active flag")

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), comment="Created at")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), comment="Updated at")

    __table_args__ = (
        {'comment': 'Coupon codes'}
    )


class CouponUseDB(Base):
    """One row per redemption"""

    __tablename__ = "coupon_uses"

    id = Column(String(50), primary_key=True, comment="Use ID")
    coupon_id = Column(String(50), nullable=False, index=True, comment="Coupon ID")
    coupon_code = Column(String(50), nullable=False, comment="Code at redemption time")
    booking_id = Column(String(50), nullable=False, index=True, comment="Booking ID")
    discount_applied = Column(Integer, nullable=False, comment="Discount in pence")
    used_at = Column(DateTime(timezone=True), server_default=func.now(), comment="Redeemed at")

    __table_args__ = (
        {'comment': 'Coupon redemptions'}
    )
