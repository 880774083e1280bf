"""
Repositories - database access layer
"""

from .discount_repository import DiscountRuleRepository
from .coupon_repository import CouponRepository
from .refund_policy_repository import RefundPolicyRepository

__all__ = [
    "DiscountRuleRepository",
    "CouponRepository",
    "RefundPolicyRepository"
]
