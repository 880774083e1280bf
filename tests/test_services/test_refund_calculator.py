"""
Refund calculation tests
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock
from pydantic import ValidationError

from app.api.exceptions import NotFoundError, PricingValidationError
from app.models.database.refund_db import RefundPolicyDB
from app.models.refund import (
    BookingPayment,
    PaymentStatus,
    PaymentType,
    RefundPolicy,
    RefundPolicyCreate,
    RefundPolicyUpdate,
    RefundRule,
    RefundRuleInput,
)
from app.repositories.refund_policy_repository import RefundPolicyRepository
from app.services.refund_calculator import (
    DEFAULT_REFUND_POLICY,
    RefundService,
    amount_paid,
    calculate_refund,
    refund_schedule_preview,
    validate_refund_policy,
)


def _policy(*rules, name="Custom policy"):
    return RefundPolicy(
        id="policy_custom",
        name=name,
        rules=[RefundRule(days_before_session=days, refund_percentage=Decimal(str(pct))) for days, pct in rules]
    )


class TestCalculateRefund:

    def test_full_refund(self, now):
        result = calculate_refund(DEFAULT_REFUND_POLICY, now + timedelta(days=10), now, 3000)

        assert result.refund_amount == 3000
        assert result.refund_percentage == 100
        assert result.days_until_session == 10
        assert result.reason == "Full refund of £30.00. Cancelled 10 days before the session."

    def test_exactly_three_days_gets_partial_refund(self, now):
        result = calculate_refund(DEFAULT_REFUND_POLICY, now + timedelta(days=3), now, 3000)

        assert result.refund_amount == 1500
        assert result.applied_rule.days_before_session == 3
        assert result.reason == "50% refund (£15.00 of £30.00). Cancelled 3 days before the session."

    def test_partial_days_are_floored(self, now):
        result = calculate_refund(DEFAULT_REFUND_POLICY, now + timedelta(days=2, hours=23), now, 3000)

        assert result.days_until_session == 2
        assert result.refund_amount == 0
        assert result.reason == "No refund available. Cancelled only 2 days before the session."

    def test_same_day_cancellation(self, now):
        result = calculate_refund(DEFAULT_REFUND_POLICY, now + timedelta(hours=5), now, 3000)

        assert result.days_until_session == 0
        assert result.refund_amount == 0
        assert result.applied_rule.days_before_session == 0

    def test_session_already_started(self, now):
        result = calculate_refund(DEFAULT_REFUND_POLICY, now - timedelta(hours=1), now, 3000)

        assert result.days_until_session == -1
        assert result.refund_amount == 0
        assert result.applied_rule is None
        assert result.reason == "Session has already occurred. No refund available."

    def test_no_applicable_rule(self, now):
        result = calculate_refund(_policy((7, 100)), now + timedelta(days=3), now, 3000)

        assert result.refund_amount == 0
        assert result.reason == "No applicable refund rule found."

    def test_refund_rounds_half_up(self, now):
        result = calculate_refund(DEFAULT_REFUND_POLICY, now + timedelta(days=4), now, 2001)

        assert result.refund_amount == 1001

    def test_naive_session_start_is_utc(self, now):
        naive_start = datetime(2026, 3, 9, 9, 0)

        result = calculate_refund(DEFAULT_REFUND_POLICY, naive_start, now, 3000)

        assert result.days_until_session == 7
        assert result.refund_amount == 3000

    def test_fractional_percentage_in_reason(self, now):
        result = calculate_refund(_policy((0, "12.5")), now + timedelta(days=1), now, 4000)

        assert result.refund_amount == 500
        assert result.reason == "12.5% refund (£5.00 of £40.00). Cancelled 1 days before the session."


class TestRefundSchedule:

    def test_schedule_longest_lead_time_first(self):
        schedule = refund_schedule_preview(_policy((0, 0), (7, 100), (3, 50)), 3000)

        assert [entry.days_before_session for entry in schedule] == [7, 3, 0]
        assert [entry.refund_amount for entry in schedule] == [3000, 1500, 0]


class TestValidateRefundPolicy:

    def test_default_policy_is_valid(self):
        assert validate_refund_policy(DEFAULT_REFUND_POLICY) == []

    def test_missing_name_and_rules(self):
        errors = validate_refund_policy(RefundPolicyCreate(name="  "))

        assert errors == ["Policy name is required", "At least one refund rule is required"]

    def test_rule_errors(self):
        policy = RefundPolicyCreate(
            name="Broken",
            rules=[
                RefundRuleInput(days_before_session=-1, refund_percentage=Decimal("50")),
                RefundRuleInput(days_before_session=3, refund_percentage=Decimal("150")),
                RefundRuleInput(days_before_session=3, refund_percentage=Decimal("10")),
            ]
        )

        assert validate_refund_policy(policy) == [
            "Rule 1: Days before session cannot be negative",
            "Rule 2: Refund percentage must be between 0 and 100",
            "A rule for 0 days before session is required",
            "Duplicate days before session values are not allowed",
        ]


class TestAmountPaid:

    def test_full_payment(self):
        assert amount_paid(BookingPayment(amount=3000)) == 3000

    def test_deposit_with_balance_outstanding(self):
        booking = BookingPayment(
            amount=3000,
            payment_type=PaymentType.DEPOSIT,
            payment_status=PaymentStatus.DEPOSIT_PAID,
            deposit_paid=1000
        )
        assert amount_paid(booking) == 1000

    def test_deposit_with_balance_paid(self):
        booking = BookingPayment(
            amount=3000,
            payment_type=PaymentType.DEPOSIT,
            payment_status=PaymentStatus.PAID,
            deposit_paid=1000,
            balance_paid_at=datetime(2026, 2, 1, tzinfo=timezone.utc)
        )
        assert amount_paid(booking) == 3000

    def test_deposit_paid_status_on_full_booking(self):
        booking = BookingPayment(amount=3000, payment_status=PaymentStatus.DEPOSIT_PAID, deposit_paid=500)
        assert amount_paid(booking) == 500

    def test_pending_falls_back_to_amount(self):
        assert amount_paid(BookingPayment(amount=3000, payment_status=PaymentStatus.PENDING)) == 3000


@pytest.mark.asyncio
class TestRefundService:
    """RefundService with a mocked repository"""

    @pytest.fixture
    def mock_policy_repo(self):
        return AsyncMock(spec=RefundPolicyRepository)

    @pytest.fixture
    def refund_service(self, mock_policy_repo, clock):
        return RefundService(mock_policy_repo, clock=clock)

    @pytest.fixture
    def sample_policy_db(self):
        return RefundPolicyDB(id="policy_custom", name="Custom policy",
                              rules=[{"days_before_session": 0, "refund_percentage": "25"}], is_default=True)

    async def test_falls_back_to_built_in_policy(self, refund_service, mock_policy_repo, now):
        mock_policy_repo.get_default_policy.return_value = None

        quote = await refund_service.quote_cancellation(now + timedelta(days=8), 3000)

        assert quote.policy_id == "default"
        assert quote.result.refund_amount == 3000
        assert [entry.refund_amount for entry in quote.schedule] == [3000, 1500, 0]

    async def test_uses_stored_default_policy(self, refund_service, mock_policy_repo, sample_policy_db, now):
        mock_policy_repo.get_default_policy.return_value = sample_policy_db
        mock_policy_repo.to_model.side_effect = RefundPolicyRepository(None).to_model

        quote = await refund_service.quote_cancellation(now + timedelta(days=8), 3000)

        assert quote.policy_id == "policy_custom"
        assert quote.result.refund_amount == 750

    async def test_unknown_policy_id(self, refund_service, mock_policy_repo, now):
        mock_policy_repo.get_by_policy_id.return_value = None

        with pytest.raises(NotFoundError):
            await refund_service.quote_cancellation(now + timedelta(days=8), 3000, policy_id="policy_missing")

    async def test_create_invalid_policy(self, refund_service, mock_policy_repo):
        with pytest.raises(PricingValidationError) as exc_info:
            await refund_service.create_policy(RefundPolicyCreate(name="No rules"))

        assert exc_info.value.message == "At least one refund rule is required"
        mock_policy_repo.create.assert_not_called()

    async def test_update_validates_merged_policy(self, refund_service, mock_policy_repo, sample_policy_db):
        mock_policy_repo.get_by_policy_id.return_value = sample_policy_db
        mock_policy_repo.to_model.side_effect = RefundPolicyRepository(None).to_model
        update = RefundPolicyUpdate(rules=[RefundRule(days_before_session=5, refund_percentage=Decimal("50"))])

        with pytest.raises(PricingValidationError) as exc_info:
            await refund_service.update_policy("policy_custom", update)

        assert exc_info.value.message == "A rule for 0 days before session is required"
        mock_policy_repo.update.assert_not_called()

    async def test_set_default_missing_policy(self, refund_service, mock_policy_repo):
        mock_policy_repo.set_default.return_value = None

        with pytest.raises(NotFoundError):
            await refund_service.set_default_policy("policy_missing")

    async def test_update_rejects_percentage_over_100(self, refund_service, mock_policy_repo, sample_policy_db):
        mock_policy_repo.get_by_policy_id.return_value = sample_policy_db
        mock_policy_repo.to_model.side_effect = RefundPolicyRepository(None).to_model
        update = RefundPolicyUpdate(rules=[
            RefundRuleInput(days_before_session=0, refund_percentage=Decimal("150"))
        ])

        with pytest.raises(PricingValidationError) as exc_info:
            await refund_service.update_policy("policy_custom", update)

        assert exc_info.value.message == "Rule 1: Refund percentage must be between 0 and 100"
        mock_policy_repo.update.assert_not_called()


class TestRefundRuleBounds:

    @pytest.mark.parametrize("percentage", ["150", "100.01", "-10"])
    def test_percentage_out_of_range(self, percentage):
        with pytest.raises(ValidationError):
            RefundRule(days_before_session=0, refund_percentage=Decimal(percentage))

    def test_negative_days(self):
        with pytest.raises(ValidationError):
            RefundRule(days_before_session=-1, refund_percentage=Decimal("50"))

    def test_boundaries_are_allowed(self):
        assert RefundRule(days_before_session=0, refund_percentage=Decimal("0")).refund_percentage == 0
        assert RefundRule(days_before_session=0, refund_percentage=Decimal("100")).refund_percentage == 100

    def test_policy_cannot_hold_out_of_range_rule(self):
        with pytest.raises(ValidationError):
            _policy((0, 150))

    def test_refund_never_exceeds_amount_paid(self, now):
        result = calculate_refund(_policy((0, 100)), now + timedelta(days=1), now, 1000)

        assert result.refund_amount == 1000
