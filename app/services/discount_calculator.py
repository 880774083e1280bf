"""
Automatic discount calculation - sibling, bulk and early-bird rules.

Rules are applied one after another in priority order. Eligibility is judged
on the cart as submitted, while each rule's savings are taken from the line
prices left over by the rules before it, so discounts stack sequentially.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from app.core.clock import Clock, system_clock, whole_days_between
from app.core.config import settings
from app.core.money import percent_of, format_pence, format_percent
from app.api.exceptions import NotFoundError, PricingValidationError
from app.models.discount import (
    AppliedDiscount,
    AppliedRuleSummary,
    DiscountAppliesTo,
    DiscountCalculationResponse,
    DiscountCartItem,
    DiscountResult,
    DiscountRule,
    DiscountRuleCreate,
    DiscountRuleType,
    DiscountRuleUpdate,
    DiscountType,
    RuleDiscount,
)
from app.repositories.discount_repository import DiscountRuleRepository
from app.services.common_cache import SimpleCache, discount_rule_cache

logger = logging.getLogger(__name__)

DEFAULT_MIN_CHILDREN = 2
DEFAULT_MIN_QUANTITY = 2


def order_rules(rules: Sequence[DiscountRule]) -> List[DiscountRule]:
    """Active rules, highest priority first, rule id breaking ties"""
    return sorted((rule for rule in rules if rule.is_active), key=lambda rule: rule.sort_key())


def calculate_discounts(
    items: Sequence[DiscountCartItem],
    rules: Sequence[DiscountRule],
    now: Optional[datetime] = None
) -> DiscountResult:
    """Run every active rule over the cart and total the savings"""
    if not items:
        return DiscountResult.no_discount()

    original_total = sum(item.price for item in items)
    ordered_rules = order_rules(rules)
    if not ordered_rules:
        return DiscountResult.no_discount(original_total)

    if now is None:
        now = system_clock.now()

    running_prices = [item.price for item in items]
    applied_rules: List[AppliedDiscount] = []

    for rule in ordered_rules:
        affected = select_affected_items(rule, items, running_prices, now)
        line_savings = {
            index: item_savings(rule.discount, running_prices[index])
            for index in affected
        }
        savings = sum(line_savings.values())
        if savings <= 0:
            continue

        for index, amount in line_savings.items():
            running_prices[index] -= amount

        applied_rules.append(AppliedDiscount(
            rule=rule,
            savings=savings,
            items_affected=sum(1 for amount in line_savings.values() if amount > 0)
        ))
        logger.debug(f"Rule {rule.id} ({rule.type.value}) saved {savings}p on {len(affected)} item(s)")

    discount_amount = sum(applied.savings for applied in applied_rules)

    return DiscountResult(
        original_total=original_total,
        discount_amount=discount_amount,
        final_total=max(0, original_total - discount_amount),
        applied_rules=applied_rules
    )


def select_affected_items(
    rule: DiscountRule,
    items: Sequence[DiscountCartItem],
    running_prices: Sequence[int],
    now: datetime
) -> List[int]:
    """Indexes of the cart items a rule discounts, empty when it does not apply"""
    applies_to = rule.discount.applies_to
    conditions = rule.conditions

    if rule.type == DiscountRuleType.SIBLING:
        children = _distinct_children(items)
        min_children = conditions.min_children or DEFAULT_MIN_CHILDREN
        if len(children) < min_children:
            return []
        if applies_to == DiscountAppliesTo.ALL:
            return list(range(len(items)))

        # The child with the largest running total pays full price
        totals: Dict[str, int] = {child: 0 for child in children}
        for index, item in enumerate(items):
            totals[item.child_key] += running_prices[index]
        ranked = sorted(children, key=lambda child: -totals[child])
        discounted = set(ranked[1:])
        return [index for index, item in enumerate(items) if item.child_key in discounted]

    if rule.type == DiscountRuleType.BULK:
        min_quantity = conditions.min_quantity or DEFAULT_MIN_QUANTITY
        if len(items) < min_quantity:
            return []
        indexes = list(range(len(items)))
        if applies_to == DiscountAppliesTo.ALL:
            return indexes
        return _all_but_most_expensive(indexes, running_prices)

    if rule.type == DiscountRuleType.EARLY_BIRD:
        if conditions.days_before_session is None:
            return []
        qualifying = [
            index for index, item in enumerate(items)
            if item.session_start_date is not None
            and whole_days_between(now, item.session_start_date) >= conditions.days_before_session
        ]
        if applies_to == DiscountAppliesTo.ALL:
            return qualifying
        return _all_but_most_expensive(qualifying, running_prices)

    return []


def item_savings(discount: RuleDiscount, price: int) -> int:
    """Saving on one line, never more than what is left of its price"""
    if price <= 0:
        return 0
    if discount.type == DiscountType.PERCENTAGE:
        amount = percent_of(price, discount.value)
    else:
        amount = int(discount.value)
    return max(0, min(amount, price))


def _distinct_children(items: Sequence[DiscountCartItem]) -> List[str]:
    """Child keys in order of first appearance"""
    seen: List[str] = []
    for item in items:
        if item.child_key not in seen:
            seen.append(item.child_key)
    return seen


def _all_but_most_expensive(indexes: Sequence[int], running_prices: Sequence[int]) -> List[int]:
    """Drop the most expensive line; cart order breaks ties"""
    ranked = sorted(indexes, key=lambda index: -running_prices[index])
    return sorted(ranked[1:])


def format_discount_value(rule: DiscountRule) -> str:
    """'10%' or '£5.00'"""
    if rule.discount.type == DiscountType.PERCENTAGE:
        return format_percent(rule.discount.value)
    return format_pence(int(rule.discount.value))


def describe_discount_rule(rule: DiscountRule) -> str:
    """Customer-facing wording of a rule"""
    discount_text = f"{format_discount_value(rule)} off"
    applies_text = (
        "additional bookings"
        if rule.discount.applies_to == DiscountAppliesTo.ADDITIONAL
        else "all bookings"
    )
    conditions = rule.conditions

    if rule.type == DiscountRuleType.SIBLING:
        min_children = conditions.min_children or DEFAULT_MIN_CHILDREN
        return f"{discount_text} {applies_text} when booking for {min_children}+ children"
    if rule.type == DiscountRuleType.BULK:
        min_quantity = conditions.min_quantity or DEFAULT_MIN_QUANTITY
        return f"{discount_text} {applies_text} when booking {min_quantity}+ sessions"
    if rule.type == DiscountRuleType.EARLY_BIRD:
        return f"{discount_text} when booking {conditions.days_before_session}+ days in advance"
    return f"{discount_text} {applies_text}"


def summarize_applied_rules(applied_rules: Sequence[AppliedDiscount]) -> List[AppliedRuleSummary]:
    return [
        AppliedRuleSummary(
            rule_id=applied.rule.id,
            rule_name=applied.rule.name,
            rule_type=applied.rule.type,
            savings=applied.savings,
            items_affected=applied.items_affected,
            discount_description=describe_discount_rule(applied.rule)
        )
        for applied in applied_rules
    ]


def check_rule_conditions(rule_type: DiscountRuleType, conditions) -> None:
    """Reject rules whose type has no usable condition"""
    if rule_type == DiscountRuleType.EARLY_BIRD and (conditions is None or conditions.days_before_session is None):
        raise PricingValidationError("Early bird rules need days_before_session")


class DiscountService:
    """Loads discount rules and prices carts with them"""

    def __init__(
        self,
        rule_repo: DiscountRuleRepository,
        clock: Clock = system_clock,
        cache: Optional[SimpleCache] = None
    ):
        self.rule_repo = rule_repo
        self.clock = clock
        self.cache = cache or discount_rule_cache
        self.cache_key = "active"
        self.cache_ttl = settings.discount_rule_cache_ttl

    async def get_active_rules(self, use_cache: bool = True) -> List[DiscountRule]:
        """Active rules in evaluation order"""
        if use_cache:
            cached_rules = await self.cache.get(self.cache_key)
            if cached_rules is not None:
                return [DiscountRule(**rule_data) for rule_data in cached_rules]

        db_rules = await self.rule_repo.list_active_rules()
        rules = order_rules([self.rule_repo.to_model(db_rule) for db_rule in db_rules])

        if use_cache:
            await self.cache.set(
                self.cache_key,
                [rule.model_dump(mode="json") for rule in rules],
                ttl=self.cache_ttl
            )

        return rules

    async def calculate_discounts(self, items: List[DiscountCartItem]) -> DiscountResult:
        """Price a cart against the active rules at the current time"""
        if not items:
            return DiscountResult.no_discount()

        rules = await self.get_active_rules()
        result = calculate_discounts(items, rules, now=self.clock.now())

        logger.info(
            f"Priced {len(items)} item(s): {result.original_total}p - {result.discount_amount}p "
            f"= {result.final_total}p ({len(result.applied_rules)} rule(s))"
        )
        return result

    async def calculate_for_display(self, items: List[DiscountCartItem]) -> DiscountCalculationResponse:
        result = await self.calculate_discounts(items)
        return DiscountCalculationResponse(
            original_total=result.original_total,
            discount_amount=result.discount_amount,
            final_total=result.final_total,
            applied_rules=summarize_applied_rules(result.applied_rules)
        )

    async def list_rules(self, active_only: bool = False) -> List[DiscountRule]:
        db_rules = await self.rule_repo.list_rules(active_only=active_only)
        return [self.rule_repo.to_model(db_rule) for db_rule in db_rules]

    async def get_rule(self, rule_id: str) -> DiscountRule:
        db_rule = await self.rule_repo.get_by_id(rule_id)
        if not db_rule:
            raise NotFoundError("Discount rule not found")
        return self.rule_repo.to_model(db_rule)

    async def create_rule(self, rule_data: DiscountRuleCreate) -> DiscountRule:
        check_rule_conditions(rule_data.type, rule_data.conditions)

        db_rule = await self.rule_repo.create(rule_data)
        await self._clear_rule_cache()

        logger.info(f"Created discount rule {db_rule.id} ({rule_data.type.value})")
        return self.rule_repo.to_model(db_rule)

    async def update_rule(self, rule_id: str, rule_data: DiscountRuleUpdate) -> DiscountRule:
        current = await self.get_rule(rule_id)
        check_rule_conditions(
            rule_data.type or current.type,
            rule_data.conditions if rule_data.conditions is not None else current.conditions
        )

        db_rule = await self.rule_repo.update(rule_id, rule_data)
        if not db_rule:
            raise NotFoundError("Discount rule not found")
        await self._clear_rule_cache()

        logger.info(f"Updated discount rule {rule_id}")
        return self.rule_repo.to_model(db_rule)

    async def delete_rule(self, rule_id: str) -> None:
        if not await self.rule_repo.delete(rule_id):
            raise NotFoundError("Discount rule not found")
        await self._clear_rule_cache()
        logger.info(f"Deleted discount rule {rule_id}")

    async def _clear_rule_cache(self) -> None:
        await self.cache.delete(self.cache_key)
