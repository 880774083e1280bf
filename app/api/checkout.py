"""
Checkout routes - coupon validation and the combined checkout quote
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_coupon_service, get_price_calculator_service
from app.api.responses import ok
from app.models.checkout import CheckoutQuoteRequest
from app.models.coupon import CouponSummary, CouponValidateRequest, CouponValidateResponse
from app.services.coupon_service import CouponService
from app.services.price_calculator_service import PriceCalculatorService

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


@router.post("/validate-coupon")
async def validate_coupon(
    request: CouponValidateRequest,
    coupon_service: CouponService = Depends(get_coupon_service)
):
    """Rejections are reported in the body with valid=false, not as HTTP errors"""
    validation = await coupon_service.validate_coupon(request.code, request.cart_total, request.session_ids)

    response = CouponValidateResponse(
        valid=validation.valid,
        discount=validation.discount,
        coupon=CouponSummary.from_coupon(validation.coupon) if validation.coupon else None,
        error=validation.error,
        error_code=validation.error_code
    )
    return ok(response)


@router.post("/quote")
async def quote_checkout(
    request: CheckoutQuoteRequest,
    price_service: PriceCalculatorService = Depends(get_price_calculator_service)
):
    quote = await price_service.quote_checkout(request.items, request.coupon_code)
    data = quote.model_dump(mode="json")
    data["discount_total"] = quote.discount_total
    return ok(data)
