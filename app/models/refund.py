"""
Refund policy models for parent-initiated cancellations
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from enum import Enum


class RefundRuleInput(BaseModel):
    """Rule as submitted by an admin, checked by validate_refund_policy()"""

    days_before_session: int = Field(..., description="Minimum whole days before the session")
    refund_percentage: Decimal = Field(..., description="Refund percentage (0-100)")


class RefundRule(RefundRuleInput):
    """Refund percentage granted when cancelling at least N days ahead"""

    days_before_session: int = Field(..., ge=0, description="Minimum whole days before the session")
    refund_percentage: Decimal = Field(..., ge=0, le=100, description="Refund percentage (0-100)")


class RefundPolicy(BaseModel):
    """Lookup table from lead time to refund percentage"""

    id: str
    name: str
    description: Optional[str] = None
    rules: List[RefundRule] = Field(default_factory=list)
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def sorted_rules(self) -> List[RefundRule]:
        """Rules from the longest lead time to the shortest"""
        return sorted(self.rules, key=lambda rule: rule.days_before_session, reverse=True)


class RefundPolicyCreate(BaseModel):
    """Payload for creating a policy, checked by validate_refund_policy()"""

    name: str = ""
    description: Optional[str] = None
    rules: List[RefundRuleInput] = Field(default_factory=list)
    is_default: bool = False


class RefundPolicyUpdate(BaseModel):
    """Partial policy update"""

    name: Optional[str] = None
    description: Optional[str] = None
    rules: Optional[List[RefundRuleInput]] = None


class RefundCalculationResult(BaseModel):
    """Outcome of applying a policy to a cancellation"""

    refund_amount: int = Field(..., ge=0, description="Refund in pence")
    refund_percentage: Decimal
    reason: str
    applied_rule: Optional[RefundRule] = None
    days_until_session: int


class RefundScheduleEntry(BaseModel):
    """One row of the refund schedule shown to parents"""

    days_before_session: int
    refund_percentage: Decimal
    refund_amount: int


class PaymentType(str, Enum):
    FULL = "full"
    DEPOSIT = "deposit"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    DEPOSIT_PAID = "deposit_paid"
    PAID = "paid"
    PARTIALLY_REFUNDED = "partially_refunded"
    REFUNDED = "refunded"


class BookingPayment(BaseModel):
    """Payment facts of a booking, enough to know what was actually paid"""

    amount: int = Field(..., ge=0, description="Full booking price in pence")
    payment_type: PaymentType = PaymentType.FULL
    payment_status: PaymentStatus = PaymentStatus.PAID
    deposit_paid: Optional[int] = Field(None, ge=0)
    balance_paid_at: Optional[datetime] = None


class RefundQuoteRequest(BaseModel):
    """Body of POST /api/refunds/quote"""

    session_start_date: datetime
    booking: BookingPayment
    policy_id: Optional[str] = None


class RefundQuoteResponse(BaseModel):
    """Refund quote plus the schedule it came from"""

    policy_id: str
    policy_name: str
    amount_paid: int
    result: RefundCalculationResult
    schedule: List[RefundScheduleEntry] = Field(default_factory=list)
