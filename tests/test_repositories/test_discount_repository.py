"""
Discount rule repository tests against an in-memory database
"""

import pytest
from decimal import Decimal

from app.models.discount import (
    DiscountAppliesTo,
    DiscountConditions,
    DiscountRuleCreate,
    DiscountRuleType,
    DiscountRuleUpdate,
    DiscountType,
    RuleDiscount,
)
from app.repositories.discount_repository import DiscountRuleRepository


def _rule_data(name, priority=0, is_active=True):
    return DiscountRuleCreate(
        name=name,
        type=DiscountRuleType.SIBLING,
        conditions=DiscountConditions(min_children=2),
        discount=RuleDiscount(type=DiscountType.PERCENTAGE, value=Decimal("10"),
                              applies_to=DiscountAppliesTo.ADDITIONAL),
        priority=priority,
        is_active=is_active
    )


@pytest.mark.asyncio
class TestDiscountRuleRepository:

    @pytest.fixture
    def rule_repo(self, db_session):
        return DiscountRuleRepository(db_session)

    async def test_create_and_convert(self, rule_repo):
        created = await rule_repo.create(_rule_data("Siblings", priority=5))

        rule = rule_repo.to_model(await rule_repo.get_by_id(created.id))

        assert rule.id.startswith("rule_")
        assert rule.type == DiscountRuleType.SIBLING
        assert rule.conditions.min_children == 2
        assert rule.discount.value == Decimal("10")
        assert rule.discount.applies_to == DiscountAppliesTo.ADDITIONAL
        assert rule.priority == 5

    async def test_active_rules_in_priority_order(self, rule_repo):
        low = await rule_repo.create(_rule_data("Low", priority=1))
        high = await rule_repo.create(_rule_data("High", priority=10))
        await rule_repo.create(_rule_data("Off", priority=50, is_active=False))

        active = await rule_repo.list_active_rules()

        assert [rule.id for rule in active] == [high.id, low.id]
        assert len(await rule_repo.list_rules()) == 3

    async def test_update_discount(self, rule_repo):
        created = await rule_repo.create(_rule_data("Siblings"))

        updated = await rule_repo.update(created.id, DiscountRuleUpdate(
            discount=RuleDiscount(type=DiscountType.FIXED, value=Decimal("250"))
        ))

        rule = rule_repo.to_model(updated)
        assert rule.discount.type == DiscountType.FIXED
        assert rule.discount.value == Decimal("250")
        assert rule.discount.applies_to == DiscountAppliesTo.ALL
        assert rule.conditions.min_children == 2

    async def test_delete(self, rule_repo):
        created = await rule_repo.create(_rule_data("Siblings"))

        assert await rule_repo.delete(created.id) is True
        assert await rule_repo.get_by_id(created.id) is None
        assert await rule_repo.delete(created.id) is False
