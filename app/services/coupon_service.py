"""
Coupon validation and administration
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from pydantic import ValidationError

from app.core.clock import Clock, system_clock, ensure_aware
from app.core.config import settings
from app.core.money import percent_of, format_pence
from app.api.exceptions import ConflictError, NotFoundError, PricingValidationError
from app.models.coupon import (
    Coupon,
    CouponCreate,
    CouponErrorCode,
    CouponStatusFilter,
    CouponUpdate,
    CouponUse,
    CouponValidation,
    normalize_coupon_code,
)
from app.models.discount import DiscountType
from app.repositories.coupon_repository import CouponRepository
from app.services.common_cache import SimpleCache, coupon_cache

logger = logging.getLogger(__name__)


def coupon_discount(coupon: Coupon, cart_total: int) -> int:
    """Coupon saving on a cart, never more than the cart itself"""
    if coupon.discount_type == DiscountType.PERCENTAGE:
        amount = percent_of(cart_total, coupon.discount_value)
    else:
        amount = int(coupon.discount_value)
    return max(0, min(amount, cart_total))


def evaluate_coupon(
    coupon: Optional[Coupon],
    cart_total: int,
    session_ids: Sequence[str],
    now: datetime
) -> CouponValidation:
    """
    Check a loaded coupon against a cart.

    Checks run in a fixed order and the first failure is reported:
    active, validity window, usage cap, minimum purchase, session scope.
    """
    if cart_total < 0:
        return CouponValidation.rejected(CouponErrorCode.INVALID_INPUT, "Invalid cart total")

    if coupon is None or not coupon.is_active:
        return CouponValidation.rejected(CouponErrorCode.NOT_FOUND, "Invalid coupon code")

    now = ensure_aware(now)
    valid_from = ensure_aware(coupon.valid_from)
    valid_until = ensure_aware(coupon.valid_until)

    if valid_from is not None and now < valid_from:
        return CouponValidation.rejected(CouponErrorCode.NOT_YET_VALID, "This coupon is not yet valid")
    if valid_until is not None and now > valid_until:
        return CouponValidation.rejected(CouponErrorCode.EXPIRED, "This coupon has expired")

    if coupon.max_uses is not None and coupon.used_count >= coupon.max_uses:
        return CouponValidation.rejected(
            CouponErrorCode.USAGE_LIMIT_REACHED,
            "This coupon has reached its usage limit"
        )

    if coupon.min_purchase and cart_total < coupon.min_purchase:
        return CouponValidation.rejected(
            CouponErrorCode.MINIMUM_NOT_MET,
            f"Minimum purchase of {format_pence(coupon.min_purchase)} required for this coupon"
        )

    if not coupon.is_applicable_to(list(session_ids)):
        return CouponValidation.rejected(
            CouponErrorCode.NOT_APPLICABLE,
            "This coupon is not valid for the items in your cart"
        )

    return CouponValidation.accepted(coupon, coupon_discount(coupon, cart_total))


class CouponService:
    """Coupon lookups, validation and admin operations"""

    def __init__(
        self,
        coupon_repo: CouponRepository,
        clock: Clock = system_clock,
        cache: Optional[SimpleCache] = None
    ):
        self.coupon_repo = coupon_repo
        self.clock = clock
        self.cache = cache or coupon_cache
        self.cache_ttl = settings.coupon_cache_ttl

    async def get_coupon_by_code(self, code: str) -> Optional[Coupon]:
        """
        Coupon by code, served from cache when possible.

        Only coupons without a usage cap are cached. A capped coupon's
        used_count changes on every redemption, so it is always read from
        the database.
        """
        code = normalize_coupon_code(code)
        cached_coupon = await self.cache.get(code)
        if cached_coupon is not None and cached_coupon.get("max_uses") is None:
            return Coupon(**cached_coupon)

        db_coupon = await self.coupon_repo.get_by_code(code)
        if not db_coupon:
            return None

        coupon = self.coupon_repo.to_model(db_coupon)
        if coupon.max_uses is None:
            await self.cache.set(code, coupon.model_dump(mode="json"), ttl=self.cache_ttl)
        return coupon

    async def validate_coupon(
        self,
        code: Optional[str],
        cart_total: int,
        session_ids: Optional[List[str]] = None
    ) -> CouponValidation:
        """Validate a code against a cart total; never changes the usage count"""
        normalized = normalize_coupon_code(code)
        if not normalized:
            return CouponValidation.rejected(CouponErrorCode.INVALID_INPUT, "Please enter a coupon code")
        if cart_total < 0:
            return CouponValidation.rejected(CouponErrorCode.INVALID_INPUT, "Invalid cart total")

        coupon = await self.get_coupon_by_code(normalized)
        validation = evaluate_coupon(coupon, cart_total, session_ids or [], self.clock.now())

        if validation.valid:
            logger.info(f"Coupon {normalized} accepted: {validation.discount}p off {cart_total}p")
        else:
            logger.info(f"Coupon {normalized} rejected: {validation.error_code.value}")
        return validation

    async def redeem_coupon(
        self,
        coupon_id: str,
        code: str,
        booking_id: str,
        discount_applied: int
    ) -> bool:
        """Count a redemption for a paid booking; False once the cap is reached"""
        redeemed = await self.coupon_repo.record_coupon_use(
            coupon_id=coupon_id,
            coupon_code=code,
            booking_id=booking_id,
            discount_applied=discount_applied
        )
        await self.cache.delete(normalize_coupon_code(code))

        if redeemed:
            logger.info(f"Coupon {normalize_coupon_code(code)} redeemed for booking {booking_id}")
        else:
            logger.info(f"Coupon {normalize_coupon_code(code)} not redeemed for booking {booking_id}: limit reached")
        return redeemed

    async def get_coupon(self, coupon_id: str) -> Coupon:
        db_coupon = await self.coupon_repo.get_by_id(coupon_id)
        if not db_coupon:
            raise NotFoundError("Coupon not found")
        return self.coupon_repo.to_model(db_coupon)

    async def list_coupons(
        self,
        status_filter: Optional[CouponStatusFilter] = None,
        limit: int = 50
    ) -> List[Coupon]:
        db_coupons = await self.coupon_repo.list_coupons(
            status_filter=status_filter,
            limit=limit,
            current_time=self.clock.now()
        )
        return [self.coupon_repo.to_model(db_coupon) for db_coupon in db_coupons]

    async def get_usage_history(self, coupon_id: str, limit: int = 50) -> List[CouponUse]:
        await self.get_coupon(coupon_id)
        db_uses = await self.coupon_repo.get_usage_history(coupon_id, limit=limit)
        return [self.coupon_repo.use_to_model(db_use) for db_use in db_uses]

    async def create_coupon(self, coupon_data: CouponCreate) -> Coupon:
        """Create a coupon; codes are unique regardless of case"""
        if await self.coupon_repo.get_by_code(coupon_data.code):
            raise ConflictError("A coupon with this code already exists")

        db_coupon = await self.coupon_repo.create(coupon_data)
        logger.info(f"Created coupon {db_coupon.code}")
        return self.coupon_repo.to_model(db_coupon)

    async def update_coupon(self, coupon_id: str, coupon_data: CouponUpdate) -> Coupon:
        """Apply a partial update after checking the merged coupon is still consistent"""
        current = await self.get_coupon(coupon_id)
        merged = {**current.model_dump(), **coupon_data.model_dump(exclude_unset=True)}

        try:
            merged_coupon = Coupon(**merged)
        except ValidationError as e:
            raise PricingValidationError(
                "Invalid coupon update",
                details={"errors": [error["msg"] for error in e.errors()]}
            )
        _check_window(merged_coupon)

        db_coupon = await self.coupon_repo.update(coupon_id, coupon_data)
        if not db_coupon:
            raise NotFoundError("Coupon not found")
        await self.cache.delete(current.code)

        logger.info(f"Updated coupon {current.code}")
        return self.coupon_repo.to_model(db_coupon)

    async def deactivate_coupon(self, coupon_id: str) -> None:
        current = await self.get_coupon(coupon_id)
        await self.coupon_repo.deactivate(coupon_id)
        await self.cache.delete(current.code)
        logger.info(f"Deactivated coupon {current.code}")


def _check_window(coupon: Coupon) -> None:
    valid_from = ensure_aware(coupon.valid_from)
    valid_until = ensure_aware(coupon.valid_until)
    if valid_from is not None and valid_until is not None and valid_until <= valid_from:
        raise PricingValidationError("valid_until must be after valid_from")
