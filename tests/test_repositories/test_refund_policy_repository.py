"""
Refund policy repository tests against an in-memory database
"""

import pytest
from decimal import Decimal

from app.models.refund import RefundPolicyCreate, RefundPolicyUpdate, RefundRule
from app.repositories.refund_policy_repository import RefundPolicyRepository


def _rules(*pairs):
    return [RefundRule(days_before_session=days, refund_percentage=Decimal(str(pct))) for days, pct in pairs]


@pytest.mark.asyncio
class TestRefundPolicyRepository:

    @pytest.fixture
    def policy_repo(self, db_session):
        return RefundPolicyRepository(db_session)

    async def test_create_and_read_back(self, policy_repo):
        created = await policy_repo.create(RefundPolicyCreate(
            name="  Holiday camps ",
            rules=_rules((14, 100), (0, "12.5"))
        ))

        policy = policy_repo.to_model(await policy_repo.get_by_policy_id(created.id))

        assert policy.name == "Holiday camps"
        assert policy.rules[1].refund_percentage == Decimal("12.5")
        assert policy.is_default is False

    async def test_no_default_policy(self, policy_repo):
        await policy_repo.create(RefundPolicyCreate(name="Plain", rules=_rules((0, 0))))

        assert await policy_repo.get_default_policy() is None

    async def test_new_default_takes_the_flag(self, policy_repo):
        first = await policy_repo.create(RefundPolicyCreate(name="First", rules=_rules((0, 0)), is_default=True))
        second = await policy_repo.create(RefundPolicyCreate(name="Second", rules=_rules((0, 0)), is_default=True))

        default = await policy_repo.get_default_policy()

        assert default.id == second.id
        assert (await policy_repo.get_by_policy_id(first.id)).is_default is False

    async def test_set_default(self, policy_repo):
        first = await policy_repo.create(RefundPolicyCreate(name="First", rules=_rules((0, 0)), is_default=True))
        second = await policy_repo.create(RefundPolicyCreate(name="Second", rules=_rules((0, 0))))

        result = await policy_repo.set_default(second.id)

        assert result.is_default is True
        assert (await policy_repo.get_default_policy()).id == second.id
        assert (await policy_repo.get_by_policy_id(first.id)).is_default is False

        # Setting it again keeps exactly one default
        await policy_repo.set_default(second.id)
        defaults = [p for p in await policy_repo.list_policies() if p.is_default]
        assert [p.id for p in defaults] == [second.id]

    async def test_set_default_unknown_policy(self, policy_repo):
        assert await policy_repo.set_default("policy_missing") is None

    async def test_update_rules(self, policy_repo):
        created = await policy_repo.create(RefundPolicyCreate(name="Plain", rules=_rules((0, 0))))

        updated = await policy_repo.update(created.id, RefundPolicyUpdate(rules=_rules((3, 50), (0, 0))))

        assert policy_repo.to_model(updated).rules == _rules((3, 50), (0, 0))
