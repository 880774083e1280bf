"""
Refund calculation for parent-initiated cancellations.

A policy maps lead time (whole days before the session) to a refund
percentage. The rule with the largest lead time the cancellation still
satisfies wins.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence, Union

from app.core.clock import Clock, system_clock, whole_days_between
from app.core.money import percent_of, format_pence, format_percent
from app.api.exceptions import NotFoundError, PricingValidationError
from app.models.refund import (
    BookingPayment,
    PaymentStatus,
    PaymentType,
    RefundCalculationResult,
    RefundPolicy,
    RefundPolicyCreate,
    RefundPolicyUpdate,
    RefundQuoteResponse,
    RefundRule,
    RefundScheduleEntry,
)
from app.repositories.refund_policy_repository import RefundPolicyRepository

logger = logging.getLogger(__name__)

# Used when no policy has been configured
DEFAULT_REFUND_POLICY = RefundPolicy(
    id="default",
    name="Standard Refund Policy",
    description="Default refund policy for session cancellations",
    rules=[
        RefundRule(days_before_session=7, refund_percentage=Decimal("100")),
        RefundRule(days_before_session=3, refund_percentage=Decimal("50")),
        RefundRule(days_before_session=0, refund_percentage=Decimal("0")),
    ],
    is_default=True
)


def calculate_days_until_session(session_start: datetime, now: datetime) -> int:
    """Whole days left before the session; negative once it has started"""
    return whole_days_between(now, session_start)


def find_applicable_rule(days_until_session: int, rules: Sequence[RefundRule]) -> Optional[RefundRule]:
    for rule in sorted(rules, key=lambda r: r.days_before_session, reverse=True):
        if days_until_session >= rule.days_before_session:
            return rule
    return None


def calculate_refund(
    policy: RefundPolicy,
    session_start: datetime,
    cancelled_at: datetime,
    original_amount: int
) -> RefundCalculationResult:
    """Refund owed when a booking is cancelled at cancelled_at"""
    days_until_session = calculate_days_until_session(session_start, cancelled_at)

    if days_until_session < 0:
        return RefundCalculationResult(
            refund_amount=0,
            refund_percentage=Decimal("0"),
            reason="Session has already occurred. No refund available.",
            days_until_session=days_until_session
        )

    rule = find_applicable_rule(days_until_session, policy.rules)
    if rule is None:
        return RefundCalculationResult(
            refund_amount=0,
            refund_percentage=Decimal("0"),
            reason="No applicable refund rule found.",
            days_until_session=days_until_session
        )

    refund_amount = percent_of(original_amount, rule.refund_percentage)

    return RefundCalculationResult(
        refund_amount=refund_amount,
        refund_percentage=rule.refund_percentage,
        reason=refund_reason(days_until_session, rule.refund_percentage, refund_amount, original_amount),
        applied_rule=rule,
        days_until_session=days_until_session
    )


def refund_reason(days_until_session: int, percentage: Decimal, refund_amount: int, amount_paid: int) -> str:
    if percentage == 100:
        return (
            f"Full refund of {format_pence(refund_amount)}. "
            f"Cancelled {days_until_session} days before the session."
        )
    if percentage == 0:
        return f"No refund available. Cancelled only {days_until_session} days before the session."
    return (
        f"{format_percent(percentage)} refund ({format_pence(refund_amount)} of {format_pence(amount_paid)}). "
        f"Cancelled {days_until_session} days before the session."
    )


def amount_paid(booking: BookingPayment) -> int:
    """What the parent has actually paid so far, deposit or full amount"""
    if booking.payment_type == PaymentType.DEPOSIT and booking.deposit_paid and not booking.balance_paid_at:
        return booking.deposit_paid

    if booking.payment_status == PaymentStatus.PAID or booking.balance_paid_at:
        return booking.amount

    if booking.payment_status == PaymentStatus.DEPOSIT_PAID and booking.deposit_paid:
        return booking.deposit_paid

    return booking.amount


def refund_schedule_preview(policy: RefundPolicy, original_amount: int) -> List[RefundScheduleEntry]:
    """Refund available at each lead time, longest first"""
    return [
        RefundScheduleEntry(
            days_before_session=rule.days_before_session,
            refund_percentage=rule.refund_percentage,
            refund_amount=percent_of(original_amount, rule.refund_percentage)
        )
        for rule in policy.sorted_rules()
    ]


def validate_refund_policy(policy: Union[RefundPolicy, RefundPolicyCreate]) -> List[str]:
    """All problems with a policy; empty when it is usable"""
    errors: List[str] = []

    if not policy.name or not policy.name.strip():
        errors.append("Policy name is required")

    if not policy.rules:
        errors.append("At least one refund rule is required")
        return errors

    for index, rule in enumerate(policy.rules, start=1):
        if rule.days_before_session < 0:
            errors.append(f"Rule {index}: Days before session cannot be negative")
        if rule.refund_percentage < 0 or rule.refund_percentage > 100:
            errors.append(f"Rule {index}: Refund percentage must be between 0 and 100")

    days = [rule.days_before_session for rule in policy.rules]
    if 0 not in days:
        errors.append("A rule for 0 days before session is required")
    if len(days) != len(set(days)):
        errors.append("Duplicate days before session values are not allowed")

    return errors


def _raise_if_invalid(policy: Union[RefundPolicy, RefundPolicyCreate]) -> None:
    errors = validate_refund_policy(policy)
    if errors:
        raise PricingValidationError(errors[0], details={"errors": errors})


class RefundService:
    """Refund quotes and refund policy administration"""

    def __init__(self, policy_repo: RefundPolicyRepository, clock: Clock = system_clock):
        self.policy_repo = policy_repo
        self.clock = clock

    async def get_policy(self, policy_id: Optional[str] = None) -> RefundPolicy:
        """
        Policy used for a quote.

        An explicit id must exist. Without one, the stored default policy is
        used, or the built-in standard policy if none is stored.
        """
        if policy_id:
            db_policy = await self.policy_repo.get_by_policy_id(policy_id)
            if not db_policy:
                raise NotFoundError("Refund policy not found")
            return self.policy_repo.to_model(db_policy)

        db_policy = await self.policy_repo.get_default_policy()
        if db_policy:
            return self.policy_repo.to_model(db_policy)
        return DEFAULT_REFUND_POLICY

    async def quote_cancellation(
        self,
        session_start: datetime,
        original_amount: int,
        policy_id: Optional[str] = None
    ) -> RefundQuoteResponse:
        """Refund for cancelling now, with the full schedule for context"""
        policy = await self.get_policy(policy_id)
        result = calculate_refund(policy, session_start, self.clock.now(), original_amount)

        logger.info(
            f"Refund quote under {policy.id}: {result.refund_amount}p of {original_amount}p "
            f"({result.days_until_session} days ahead)"
        )
        return RefundQuoteResponse(
            policy_id=policy.id,
            policy_name=policy.name,
            amount_paid=original_amount,
            result=result,
            schedule=refund_schedule_preview(policy, original_amount)
        )

    async def list_policies(self) -> List[RefundPolicy]:
        db_policies = await self.policy_repo.list_policies()
        return [self.policy_repo.to_model(db_policy) for db_policy in db_policies]

    async def create_policy(self, policy_data: RefundPolicyCreate) -> RefundPolicy:
        _raise_if_invalid(policy_data)
        db_policy = await self.policy_repo.create(policy_data)
        logger.info(f"Created refund policy {db_policy.id}")
        return self.policy_repo.to_model(db_policy)

    async def update_policy(self, policy_id: str, policy_data: RefundPolicyUpdate) -> RefundPolicy:
        current = await self.get_policy(policy_id)
        changes = policy_data.model_dump(exclude_unset=True, exclude_none=True)
        _raise_if_invalid(current.model_copy(update={
            "name": changes.get("name", current.name),
            "rules": policy_data.rules if policy_data.rules is not None else current.rules
        }))

        db_policy = await self.policy_repo.update(policy_id, policy_data)
        if not db_policy:
            raise NotFoundError("Refund policy not found")
        logger.info(f"Updated refund policy {policy_id}")
        return self.policy_repo.to_model(db_policy)

    async def set_default_policy(self, policy_id: str) -> RefundPolicy:
        db_policy = await self.policy_repo.set_default(policy_id)
        if not db_policy:
            raise NotFoundError("Refund policy not found")
        logger.info(f"Refund policy {policy_id} is now the default")
        return self.policy_repo.to_model(db_policy)
