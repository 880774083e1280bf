"""
Shared pytest fixtures - fixed clock, model factories and an in-memory database
"""

import pytest
import pytest_asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.clock import FixedClock
from app.core.database import Base
from app.models.database import DiscountRuleDB, CouponDB, CouponUseDB, RefundPolicyDB  # noqa: F401
from app.models.discount import (
    DiscountAppliesTo,
    DiscountCartItem,
    DiscountConditions,
    DiscountRule,
    DiscountRuleType,
    DiscountType,
    RuleDiscount,
)
from app.models.coupon import Coupon


FIXED_NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def clock():
    """Clock frozen at FIXED_NOW"""
    return FixedClock(FIXED_NOW)


@pytest.fixture
def make_rule():
    """Factory for DiscountRule objects"""
    def _make_rule(
        rule_id: str = "rule_a",
        rule_type: DiscountRuleType = DiscountRuleType.BULK,
        discount_type: DiscountType = DiscountType.PERCENTAGE,
        value=10,
        applies_to: DiscountAppliesTo = DiscountAppliesTo.ALL,
        priority: int = 0,
        is_active: bool = True,
        **conditions
    ) -> DiscountRule:
        return DiscountRule(
            id=rule_id,
            name=f"Rule {rule_id}",
            type=rule_type,
            conditions=DiscountConditions(**conditions),
            discount=RuleDiscount(type=discount_type, value=Decimal(str(value)), applies_to=applies_to),
            is_active=is_active,
            priority=priority
        )
    return _make_rule


@pytest.fixture
def make_item():
    """Factory for cart items; start is given as days from FIXED_NOW"""
    def _make_item(
        session_id: str = "session_1",
        child_name: str = "Alice",
        price: int = 3000,
        days_ahead=None,
        **delta
    ) -> DiscountCartItem:
        start = None
        if days_ahead is not None or delta:
            start = FIXED_NOW + timedelta(days=days_ahead or 0, **delta)
        return DiscountCartItem(
            session_id=session_id,
            child_name=child_name,
            price=price,
            session_start_date=start
        )
    return _make_item


@pytest.fixture
def make_coupon():
    """Factory for Coupon objects, active and unrestricted by default"""
    def _make_coupon(**overrides) -> Coupon:
        data = {
            "id": "coupon_001",
            "code": "SUMMER10",
            "description": "Summer holiday camps",
            "discount_type": DiscountType.PERCENTAGE,
            "discount_value": Decimal("10"),
            "min_purchase": None,
            "max_uses": None,
            "used_count": 0,
            "valid_from": FIXED_NOW - timedelta(days=30),
            "valid_until": FIXED_NOW + timedelta(days=30),
            "applicable_sessions": [],
            "is_active": True
        }
        data.update(overrides)
        return Coupon(**data)
    return _make_coupon


@pytest.fixture
def mock_cache():
    """Cache double that always misses"""
    from unittest.mock import AsyncMock

    cache = AsyncMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock(return_value=True)
    cache.delete = AsyncMock(return_value=True)
    return cache


@pytest_asyncio.fixture
async def test_db_engine():
    """In-memory SQLite engine with every table created"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Session over the in-memory database"""
    async_session_maker = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
