"""
Pricing data models
"""

from .discount import (
    DiscountRuleType,
    DiscountType,
    DiscountAppliesTo,
    DiscountConditions,
    RuleDiscount,
    DiscountRule,
    DiscountRuleCreate,
    DiscountRuleUpdate,
    DiscountCartItem,
    AppliedDiscount,
    DiscountResult,
)
from .coupon import (
    Coupon,
    CouponCreate,
    CouponUpdate,
    CouponUse,
    CouponValidation,
    CouponErrorCode,
    CouponStatusFilter,
)
from .refund import (
    RefundRule,
    RefundRuleInput,
    RefundPolicy,
    RefundPolicyCreate,
    RefundPolicyUpdate,
    RefundCalculationResult,
    BookingPayment,
    PaymentType,
    PaymentStatus,
)
from .checkout import CheckoutQuote

__all__ = [
    "DiscountRuleType",
    "DiscountType",
    "DiscountAppliesTo",
    "DiscountConditions",
    "RuleDiscount",
    "DiscountRule",
    "DiscountRuleCreate",
    "DiscountRuleUpdate",
    "DiscountCartItem",
    "AppliedDiscount",
    "DiscountResult",
    "Coupon",
    "CouponCreate",
    "CouponUpdate",
    "CouponUse",
    "CouponValidation",
    "CouponErrorCode",
    "CouponStatusFilter",
    "RefundRule",
    "RefundRuleInput",
    "RefundPolicy",
    "RefundPolicyCreate",
    "RefundPolicyUpdate",
    "RefundCalculationResult",
    "BookingPayment",
    "PaymentType",
    "PaymentStatus",
    "CheckoutQuote"
]
