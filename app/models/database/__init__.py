"""
Database table models
"""

from .discount_db import DiscountRuleDB
from .coupon_db import CouponDB, CouponUseDB
from .refund_db import RefundPolicyDB

__all__ = [
    "DiscountRuleDB",
    "CouponDB",
    "CouponUseDB",
    "RefundPolicyDB"
]
