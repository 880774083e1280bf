"""
Pricing database setup script
Creates the database and tables, then seeds the standard refund policy and starter discount rules
"""

import asyncio
import sys
from pathlib import Path

# Make the app package importable when run as a script
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy import text
from app.core.config import settings
from app.core.database import Base

# Register every table on Base.metadata
from app.models.database import DiscountRuleDB, CouponDB, CouponUseDB, RefundPolicyDB  # noqa: F401
from app.models.discount import (
    DiscountAppliesTo,
    DiscountConditions,
    DiscountRuleCreate,
    DiscountRuleType,
    DiscountType,
    RuleDiscount,
)
from app.models.refund import RefundPolicyCreate
from app.repositories import DiscountRuleRepository, RefundPolicyRepository
from app.services.refund_calculator import DEFAULT_REFUND_POLICY


async def create_database_if_not_exists():
    """Create the database on the PostgreSQL server if it is missing"""
    server_url = settings.database_url_computed.replace(f"/{settings.db_name}", "/postgres")

    engine = create_async_engine(server_url, isolation_level="AUTOCOMMIT")

    async with engine.connect() as conn:
        result = await conn.execute(
            text("SELECT 1 FROM pg_database WHERE datname = :db_name"),
            {"db_name": settings.db_name}
        )

        if not result.fetchone():
            await conn.execute(text(f'CREATE DATABASE "{settings.db_name}"'))
            print(f"Database '{settings.db_name}' created")
        else:
            print(f"Database '{settings.db_name}' already exists")

    await engine.dispose()


async def create_tables():
    """Create every table"""
    engine = create_async_engine(settings.database_url_computed)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        print("All tables created")

    await engine.dispose()


STARTER_RULES = [
    DiscountRuleCreate(
        name="Sibling discount",
        description="10% off for each additional child",
        type=DiscountRuleType.SIBLING,
        conditions=DiscountConditions(min_children=2),
        discount=RuleDiscount(type=DiscountType.PERCENTAGE, value=10, applies_to=DiscountAppliesTo.ADDITIONAL),
        priority=20
    ),
    DiscountRuleCreate(
        name="Multi-session discount",
        description="£5 off every session when booking 3 or more",
        type=DiscountRuleType.BULK,
        conditions=DiscountConditions(min_quantity=3),
        discount=RuleDiscount(type=DiscountType.FIXED, value=500, applies_to=DiscountAppliesTo.ALL),
        priority=10,
        is_active=False
    ),
]


async def seed_pricing_data():
    """Insert the standard refund policy and starter rules if the tables are empty"""
    engine = create_async_engine(settings.database_url_computed)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_maker() as session:
        policy_repo = RefundPolicyRepository(session)
        if await policy_repo.get_default_policy():
            print("Default refund policy already exists")
        else:
            await policy_repo.create(RefundPolicyCreate(
                name=DEFAULT_REFUND_POLICY.name,
                description=DEFAULT_REFUND_POLICY.description,
                rules=DEFAULT_REFUND_POLICY.rules,
                is_default=True
            ))
            print(f"Inserted refund policy: {DEFAULT_REFUND_POLICY.name}")

        rule_repo = DiscountRuleRepository(session)
        if await rule_repo.list_rules():
            print("Discount rules already exist")
        else:
            for rule in STARTER_RULES:
                await rule_repo.create(rule)
                print(f"Inserted discount rule: {rule.name} (active={rule.is_active})")

        await session.commit()

    await engine.dispose()


async def main():
    print("Setting up the pricing database...")

    try:
        await create_database_if_not_exists()
        await create_tables()
        await seed_pricing_data()
        print("Pricing database ready")

    except Exception as e:
        print(f"Setup failed: {e}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
