"""
Checkout pricing service
Joins automatic discounts and an optional coupon into one checkout quote
"""

import logging
from typing import List, Optional

from app.models.checkout import CheckoutQuote
from app.models.coupon import CouponSummary, normalize_coupon_code
from app.models.discount import DiscountCartItem
from app.services.coupon_service import CouponService
from app.services.discount_calculator import DiscountService, summarize_applied_rules

logger = logging.getLogger(__name__)


class PriceCalculatorService:
    """Checkout pricing - automatic discounts first, then the coupon"""

    def __init__(self, discount_service: DiscountService, coupon_service: CouponService):
        self.discount_service = discount_service
        self.coupon_service = coupon_service

    async def quote_checkout(
        self,
        items: List[DiscountCartItem],
        coupon_code: Optional[str] = None
    ) -> CheckoutQuote:
        """
        Price a cart for checkout.

        The coupon is checked against the total left after automatic
        discounts. A rejected coupon does not fail the quote; the rejection
        is returned next to the discounted amounts.
        """
        discount_result = await self.discount_service.calculate_discounts(items)
        quote = CheckoutQuote(
            original_total=discount_result.original_total,
            automatic_discount=discount_result.discount_amount,
            final_total=discount_result.final_total,
            applied_rules=summarize_applied_rules(discount_result.applied_rules)
        )

        if not normalize_coupon_code(coupon_code):
            return quote

        session_ids = [item.session_id for item in items]
        validation = await self.coupon_service.validate_coupon(
            coupon_code, discount_result.final_total, session_ids
        )

        if not validation.valid:
            quote.coupon_error = validation.error
            quote.coupon_error_code = validation.error_code
            return quote

        quote.coupon = CouponSummary.from_coupon(validation.coupon)
        quote.coupon_discount = validation.discount
        quote.final_total = max(0, discount_result.final_total - validation.discount)

        logger.info(
            f"Checkout quote: {quote.original_total}p - {quote.discount_total}p = {quote.final_total}p "
            f"(coupon {quote.coupon.code})"
        )
        return quote
