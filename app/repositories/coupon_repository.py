"""
Coupon data access
"""

import uuid
from typing import List, Optional
from datetime import datetime, timezone

from sqlalchemy import select, update, or_, desc
from sqlalchemy.sql import func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import ensure_aware
from app.models.coupon import (
    Coupon,
    CouponCreate,
    CouponUpdate,
    CouponUse,
    CouponStatusFilter,
    normalize_coupon_code,
)
from app.models.database.coupon_db import CouponDB, CouponUseDB


class CouponRepository:
    """Coupon data access"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_code(self, code: str) -> Optional[CouponDB]:
        """Look a coupon up by its normalised code"""
        result = await self.db.execute(
            select(CouponDB)
            .where(CouponDB.code == normalize_coupon_code(code))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, coupon_id: str) -> Optional[CouponDB]:
        result = await self.db.execute(
            select(CouponDB)
            .where(CouponDB.id == coupon_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_coupons(
        self,
        status_filter: Optional[CouponStatusFilter] = None,
        limit: int = 50,
        current_time: Optional[datetime] = None
    ) -> List[CouponDB]:
        """Newest first, optionally filtered by active / inactive / expired"""
        query = select(CouponDB).order_by(desc(CouponDB.created_at), CouponDB.code)

        if status_filter == CouponStatusFilter.ACTIVE:
            query = query.where(CouponDB.is_active.is_(True))
        elif status_filter == CouponStatusFilter.INACTIVE:
            query = query.where(CouponDB.is_active.is_(False))
        elif status_filter == CouponStatusFilter.EXPIRED:
            query = query.where(CouponDB.valid_until.is_not(None))

        result = await self.db.execute(query.limit(limit))
        coupons = list(result.scalars().all())

        if status_filter == CouponStatusFilter.EXPIRED:
            # Compared in Python so naive timestamps from any driver are read as UTC
            now = ensure_aware(current_time or datetime.now(timezone.utc))
            coupons = [c for c in coupons if ensure_aware(c.valid_until) < now]

        return coupons

    async def create(self, coupon_data: CouponCreate) -> CouponDB:
        """Insert a coupon with a zero usage count"""
        data = coupon_data.model_dump()
        db_coupon = CouponDB(
            id=f"coupon_{uuid.uuid4().hex[:12]}",
            code=data["code"],
            description=data["description"],
            discount_type=data["discount_type"].value,
            discount_value=data["discount_value"],
            min_purchase=data["min_purchase"],
            max_uses=data["max_uses"],
            used_count=0,
            valid_from=data["valid_from"],
            valid_until=data["valid_until"],
            applicable_sessions=data["applicable_sessions"],
            is_active=data["is_active"]
        )

        self.db.add(db_coupon)
        await self.db.flush()
        await self.db.refresh(db_coupon)
        return db_coupon

    async def update(self, coupon_id: str, coupon_data: CouponUpdate) -> Optional[CouponDB]:
        """Apply the fields set on the update payload"""
        db_coupon = await self.get_by_id(coupon_id)
        if not db_coupon:
            return None

        for field, value in coupon_data.model_dump(exclude_unset=True).items():
            setattr(db_coupon, field, getattr(value, "value", value))

        await self.db.flush()
        await self.db.refresh(db_coupon)
        return db_coupon

    async def deactivate(self, coupon_id: str) -> bool:
        result = await self.db.execute(
            update(CouponDB)
            .where(CouponDB.id == coupon_id)
            .values(is_active=False, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def record_coupon_use(
        self,
        coupon_id: str,
        coupon_code: str,
        booking_id: str,
        discount_applied: int
    ) -> bool:
        """
        Count one redemption and log it.

        The increment is a single conditional UPDATE, so two bookings racing
        for the last use cannot both succeed. Returns False when the coupon
        is missing or already at max_uses.
        """
        result = await self.db.execute(
            update(CouponDB)
            .where(
                CouponDB.id == coupon_id,
                or_(
                    CouponDB.max_uses.is_(None),
                    CouponDB.used_count < CouponDB.max_uses
                )
            )
            .values(used_count=CouponDB.used_count + 1, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return False

        self.db.add(CouponUseDB(
            id=f"use_{uuid.uuid4().hex[:12]}",
            coupon_id=coupon_id,
            coupon_code=normalize_coupon_code(coupon_code),
            booking_id=booking_id,
            discount_applied=discount_applied,
            used_at=datetime.now(timezone.utc)
        ))
        await self.db.flush()
        return True

    async def get_usage_history(self, coupon_id: str, limit: int = 50) -> List[CouponUseDB]:
        """Redemptions of a coupon, newest first"""
        result = await self.db.execute(
            select(CouponUseDB)
            .where(CouponUseDB.coupon_id == coupon_id)
            .order_by(desc(CouponUseDB.used_at))
            .limit(limit)
        )
        return list(result.scalars().all())

    def to_model(self, db_coupon: CouponDB) -> Coupon:
        """Convert to the pydantic model"""
        return Coupon(
            id=db_coupon.id,
            code=db_coupon.code,
            description=db_coupon.description,
            discount_type=db_coupon.discount_type,
            discount_value=db_coupon.discount_value,
            min_purchase=db_coupon.min_purchase,
            max_uses=db_coupon.max_uses,
            used_count=db_coupon.used_count or 0,
            valid_from=ensure_aware(db_coupon.valid_from),
            valid_until=ensure_aware(db_coupon.valid_until),
            applicable_sessions=db_coupon.applicable_sessions or [],
            is_active=db_coupon.is_active,
            created_at=db_coupon.created_at,
            updated_at=db_coupon.updated_at
        )

    def use_to_model(self, db_use: CouponUseDB) -> CouponUse:
        return CouponUse(
            id=db_use.id,
            coupon_id=db_use.coupon_id,
            coupon_code=db_use.coupon_code,
            booking_id=db_use.booking_id,
            discount_applied=db_use.discount_applied,
            used_at=ensure_aware(db_use.used_at)
        )
