"""
Coupon repository tests against an in-memory database
"""

import pytest
from datetime import timedelta
from decimal import Decimal

from app.models.coupon import CouponCreate, CouponStatusFilter, CouponUpdate
from app.models.discount import DiscountType
from app.repositories.coupon_repository import CouponRepository


@pytest.mark.asyncio
class TestCouponRepository:

    @pytest.fixture
    def coupon_repo(self, db_session):
        return CouponRepository(db_session)

    async def _create(self, coupon_repo, code="SUMMER10", **overrides):
        data = {
            "code": code,
            "discount_type": DiscountType.PERCENTAGE,
            "discount_value": Decimal("10"),
        }
        data.update(overrides)
        return await coupon_repo.create(CouponCreate(**data))

    async def test_create_and_get_by_code(self, coupon_repo):
        created = await self._create(coupon_repo, code="summer10", applicable_sessions=["s1", "s2"])

        fetched = await coupon_repo.get_by_code(" Summer10 ")

        assert fetched is not None
        assert fetched.id == created.id
        assert fetched.code == "SUMMER10"
        assert fetched.used_count == 0

        coupon = coupon_repo.to_model(fetched)
        assert coupon.discount_type == DiscountType.PERCENTAGE
        assert coupon.discount_value == Decimal("10")
        assert coupon.applicable_sessions == ["s1", "s2"]

    async def test_get_unknown_code(self, coupon_repo):
        assert await coupon_repo.get_by_code("NOPE") is None

    async def test_record_use_stops_at_max_uses(self, coupon_repo):
        created = await self._create(coupon_repo, max_uses=2)

        assert await coupon_repo.record_coupon_use(created.id, "SUMMER10", "booking_1", 300) is True
        assert await coupon_repo.record_coupon_use(created.id, "SUMMER10", "booking_2", 300) is True
        assert await coupon_repo.record_coupon_use(created.id, "SUMMER10", "booking_3", 300) is False

        fetched = await coupon_repo.get_by_id(created.id)
        assert fetched.used_count == 2

        history = await coupon_repo.get_usage_history(created.id)
        assert sorted(use.booking_id for use in history) == ["booking_1", "booking_2"]
        assert coupon_repo.use_to_model(history[0]).used_at.tzinfo is not None

    async def test_record_use_without_limit(self, coupon_repo):
        created = await self._create(coupon_repo)

        for i in range(3):
            assert await coupon_repo.record_coupon_use(created.id, "SUMMER10", f"booking_{i}", 100) is True

        assert (await coupon_repo.get_by_id(created.id)).used_count == 3

    async def test_record_use_for_missing_coupon(self, coupon_repo):
        assert await coupon_repo.record_coupon_use("coupon_missing", "NOPE", "booking_1", 100) is False

    async def test_update_and_deactivate(self, coupon_repo):
        created = await self._create(coupon_repo)

        updated = await coupon_repo.update(created.id, CouponUpdate(max_uses=5, description="Half term"))
        assert updated.max_uses == 5
        assert updated.description == "Half term"

        assert await coupon_repo.deactivate(created.id) is True
        assert (await coupon_repo.get_by_id(created.id)).is_active is False

    async def test_list_by_status(self, coupon_repo, now):
        await self._create(coupon_repo, code="ACTIVE1")
        await self._create(coupon_repo, code="OFF1", is_active=False)
        await self._create(
            coupon_repo,
            code="OLD1",
            valid_from=now - timedelta(days=60),
            valid_until=now - timedelta(days=1)
        )

        active = await coupon_repo.list_coupons(CouponStatusFilter.ACTIVE, current_time=now)
        inactive = await coupon_repo.list_coupons(CouponStatusFilter.INACTIVE, current_time=now)
        expired = await coupon_repo.list_coupons(CouponStatusFilter.EXPIRED, current_time=now)

        assert sorted(c.code for c in active) == ["ACTIVE1", "OLD1"]
        assert [c.code for c in inactive] == ["OFF1"]
        assert [c.code for c in expired] == ["OLD1"]
        assert len(await coupon_repo.list_coupons(current_time=now)) == 3
