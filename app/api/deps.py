"""
FastAPI dependencies building services on top of the request's DB session
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.database import get_db_session
from app.repositories import CouponRepository, DiscountRuleRepository, RefundPolicyRepository
from app.services.coupon_service import CouponService
from app.services.discount_calculator import DiscountService
from app.services.price_calculator_service import PriceCalculatorService
from app.services.refund_calculator import RefundService


def get_clock() -> Clock:
    return system_clock


def get_discount_service(
    db: AsyncSession = Depends(get_db_session),
    clock: Clock = Depends(get_clock)
) -> DiscountService:
    return DiscountService(DiscountRuleRepository(db), clock=clock)


def get_coupon_service(
    db: AsyncSession = Depends(get_db_session),
    clock: Clock = Depends(get_clock)
) -> CouponService:
    return CouponService(CouponRepository(db), clock=clock)


def get_refund_service(
    db: AsyncSession = Depends(get_db_session),
    clock: Clock = Depends(get_clock)
) -> RefundService:
    return RefundService(RefundPolicyRepository(db), clock=clock)


def get_price_calculator_service(
    discount_service: DiscountService = Depends(get_discount_service),
    coupon_service: CouponService = Depends(get_coupon_service)
) -> PriceCalculatorService:
    return PriceCalculatorService(discount_service, coupon_service)
