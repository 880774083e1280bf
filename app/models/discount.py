"""
Automatic discount rule models - sibling, bulk and early-bird pricing
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ValidationInfo, field_validator
from enum import Enum


class DiscountRuleType(str, Enum):
    """What triggers a rule"""
    SIBLING = "sibling"  # several children in one cart
    BULK = "bulk"  # minimum number of sessions
    EARLY_BIRD = "early_bird"  # booked far enough ahead


class DiscountType(str, Enum):
    """How the discount value is applied"""
    PERCENTAGE = "percentage"  # value is 0-100
    FIXED = "fixed"  # value is pence per affected item


class DiscountAppliesTo(str, Enum):
    """Which items of an eligible cart are discounted"""
    ALL = "all"
    ADDITIONAL = "additional"  # everything except the first/most expensive


def check_discount_value(value: Optional[Decimal], discount_type: Optional[DiscountType]) -> Optional[Decimal]:
    """Shared range check for percentage and fixed discount values"""
    if value is None or discount_type is None:
        return value
    if discount_type == DiscountType.PERCENTAGE and value > Decimal("100"):
        raise ValueError("Percentage discount must be between 0 and 100")
    if discount_type == DiscountType.FIXED and value != value.to_integral_value():
        raise ValueError("Fixed discount must be a whole number of pence")
    return value


def reject_null(value, info: ValidationInfo):
    """Partial updates may omit a field but not clear a required one"""
    if value is None:
        raise ValueError(f"{info.field_name} cannot be null")
    return value


class DiscountConditions(BaseModel):
    """Rule conditions, only the field matching the rule type is read"""

    min_children: Optional[int] = Field(None, ge=1, description="Sibling: distinct children required")
    min_quantity: Optional[int] = Field(None, ge=1, description="Bulk: items required")
    days_before_session: Optional[int] = Field(None, ge=0, description="Early bird: lead time in days")


class RuleDiscount(BaseModel):
    """Discount granted by a rule"""

    type: DiscountType = Field(..., description="Percentage or fixed")
    value: Decimal = Field(..., ge=0, description="Percentage (0-100) or pence")
    applies_to: DiscountAppliesTo = Field(default=DiscountAppliesTo.ALL)

    @field_validator("value")
    @classmethod
    def validate_value(cls, v, info: ValidationInfo):
        return check_discount_value(v, info.data.get("type"))


class DiscountRule(BaseModel):
    """An admin-defined automatic discount rule"""

    id: str = Field(..., description="Rule ID")
    name: str = Field(..., min_length=1, description="Rule name")
    description: Optional[str] = Field(None, max_length=500)
    type: DiscountRuleType = Field(..., description="Rule type")
    conditions: DiscountConditions = Field(default_factory=DiscountConditions)
    discount: RuleDiscount = Field(..., description="Discount granted")
    is_active: bool = Field(default=True)
    priority: int = Field(default=0, description="Higher priorities apply first")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def sort_key(self):
        """Evaluation order: priority descending, then id ascending"""
        return (-self.priority, self.id)


class DiscountRuleCreate(BaseModel):
    """Payload for creating a rule"""

    name: str = Field(..., min_length=1)
    description: Optional[str] = Field(None, max_length=500)
    type: DiscountRuleType
    conditions: DiscountConditions = Field(default_factory=DiscountConditions)
    discount: RuleDiscount
    is_active: bool = True
    priority: int = 0


class DiscountRuleUpdate(BaseModel):
    """Partial update of a rule"""

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, max_length=500)
    type: Optional[DiscountRuleType] = None
    conditions: Optional[DiscountConditions] = None
    discount: Optional[RuleDiscount] = None
    is_active: Optional[bool] = None
    priority: Optional[int] = None

    @field_validator("name", "type", "conditions", "discount", "is_active", "priority")
    @classmethod
    def validate_not_null(cls, v, info: ValidationInfo):
        return reject_null(v, info)


class DiscountCartItem(BaseModel):
    """One session booking in the cart"""

    session_id: str = Field(..., min_length=1)
    child_name: str = Field(default="Unknown")
    price: int = Field(..., ge=0, description="Price in pence")
    session_start_date: Optional[datetime] = None

    @property
    def child_key(self) -> str:
        """Child identity used for sibling grouping"""
        return self.child_name.strip().lower()


class AppliedDiscount(BaseModel):
    """A rule that produced savings"""

    rule: DiscountRule
    savings: int = Field(..., ge=0, description="Savings in pence")
    items_affected: int = Field(..., ge=0)


class DiscountResult(BaseModel):
    """Outcome of running the rules over a cart"""

    original_total: int = Field(..., ge=0)
    discount_amount: int = Field(..., ge=0)
    final_total: int = Field(..., ge=0)
    applied_rules: List[AppliedDiscount] = Field(default_factory=list)

    @classmethod
    def no_discount(cls, original_total: int = 0) -> "DiscountResult":
        return cls(
            original_total=original_total,
            discount_amount=0,
            final_total=original_total,
            applied_rules=[]
        )


class DiscountCalculationRequest(BaseModel):
    """Body of POST /api/discounts/calculate"""

    items: List[DiscountCartItem]


class AppliedRuleSummary(BaseModel):
    """Customer-facing view of an applied rule"""

    rule_id: str
    rule_name: str
    rule_type: DiscountRuleType
    savings: int
    items_affected: int
    discount_description: str


class DiscountCalculationResponse(BaseModel):
    """Response of POST /api/discounts/calculate"""

    original_total: int
    discount_amount: int
    final_total: int
    applied_rules: List[AppliedRuleSummary] = Field(default_factory=list)
