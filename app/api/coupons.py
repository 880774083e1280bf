"""
Coupon administration routes
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_coupon_service
from app.api.responses import ok
from app.models.coupon import CouponCreate, CouponStatusFilter, CouponUpdate
from app.services.coupon_service import CouponService

admin_router = APIRouter(prefix="/api/admin/coupons", tags=["admin"])


@admin_router.get("")
async def list_coupons(
    status: Optional[CouponStatusFilter] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    coupon_service: CouponService = Depends(get_coupon_service)
):
    return ok(await coupon_service.list_coupons(status_filter=status, limit=limit))


@admin_router.post("", status_code=201)
async def create_coupon(
    coupon_data: CouponCreate,
    coupon_service: CouponService = Depends(get_coupon_service)
):
    return ok(await coupon_service.create_coupon(coupon_data))


@admin_router.get("/{coupon_id}")
async def get_coupon(
    coupon_id: str,
    coupon_service: CouponService = Depends(get_coupon_service)
):
    return ok(await coupon_service.get_coupon(coupon_id))


@admin_router.get("/{coupon_id}/uses")
async def get_coupon_uses(
    coupon_id: str,
    limit: int = Query(50, ge=1, le=200),
    coupon_service: CouponService = Depends(get_coupon_service)
):
    return ok(await coupon_service.get_usage_history(coupon_id, limit=limit))


@admin_router.patch("/{coupon_id}")
async def update_coupon(
    coupon_id: str,
    coupon_data: CouponUpdate,
    coupon_service: CouponService = Depends(get_coupon_service)
):
    return ok(await coupon_service.update_coupon(coupon_id, coupon_data))


@admin_router.delete("/{coupon_id}")
async def deactivate_coupon(
    coupon_id: str,
    coupon_service: CouponService = Depends(get_coupon_service)
):
    """Coupons are never hard-deleted so their usage history survives"""
    await coupon_service.deactivate_coupon(coupon_id)
    return ok(message="Coupon deactivated")
