"""
Checkout quote models - automatic discounts followed by a coupon
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from app.models.coupon import CouponErrorCode, CouponSummary
from app.models.discount import AppliedRuleSummary, DiscountCartItem


class CheckoutQuoteRequest(BaseModel):
    """Body of POST /api/checkout/quote"""

    items: List[DiscountCartItem]
    coupon_code: Optional[str] = None


class CheckoutQuote(BaseModel):
    """Amounts shown on the checkout page, all in pence"""

    original_total: int = Field(..., ge=0)
    automatic_discount: int = Field(..., ge=0)
    coupon_discount: int = Field(default=0, ge=0)
    final_total: int = Field(..., ge=0)
    applied_rules: List[AppliedRuleSummary] = Field(default_factory=list)
    coupon: Optional[CouponSummary] = None
    coupon_error: Optional[str] = None
    coupon_error_code: Optional[CouponErrorCode] = None

    @property
    def discount_total(self) -> int:
        return self.automatic_discount + self.coupon_discount
