"""
Pricing services
"""

from .common_cache import SimpleCache, discount_rule_cache, coupon_cache
from .discount_calculator import DiscountService, calculate_discounts
from .coupon_service import CouponService, evaluate_coupon
from .refund_calculator import RefundService, calculate_refund, DEFAULT_REFUND_POLICY
from .price_calculator_service import PriceCalculatorService

__all__ = [
    "SimpleCache",
    "discount_rule_cache",
    "coupon_cache",
    "DiscountService",
    "calculate_discounts",
    "CouponService",
    "evaluate_coupon",
    "RefundService",
    "calculate_refund",
    "DEFAULT_REFUND_POLICY",
    "PriceCalculatorService"
]
