"""
Coupon models
"""

import re
from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ValidationInfo, field_validator
from enum import Enum

from app.core.clock import ensure_aware
from app.models.discount import DiscountType, check_discount_value, reject_null

COUPON_CODE_PATTERN = re.compile(r"^[A-Z0-9-]+$")


def normalize_coupon_code(code: Optional[str]) -> str:
    """Codes are case-insensitive and stored upper-case"""
    return (code or "").strip().upper()


class CouponStatusFilter(str, Enum):
    """Admin list filter"""
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"


class CouponErrorCode(str, Enum):
    """Why a coupon was rejected"""
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    USAGE_LIMIT_REACHED = "usage_limit_reached"
    MINIMUM_NOT_MET = "minimum_not_met"
    NOT_APPLICABLE = "not_applicable"


class Coupon(BaseModel):
    """Admin-issued discount code"""

    id: str = Field(..., description="Coupon ID")
    code: str = Field(..., min_length=1, max_length=50, description="Upper-case code")
    description: Optional[str] = Field(None, max_length=500)
    discount_type: DiscountType = Field(...)
    discount_value: Decimal = Field(..., ge=0, description="Percentage (0-100) or pence")
    min_purchase: Optional[int] = Field(None, ge=0, description="Minimum cart total in pence")
    max_uses: Optional[int] = Field(None, ge=1, description="Total redemptions allowed")
    used_count: int = Field(default=0, ge=0)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    applicable_sessions: List[str] = Field(default_factory=list, description="Empty means every session")
    is_active: bool = Field(default=True)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("discount_value")
    @classmethod
    def validate_discount_value(cls, v, info: ValidationInfo):
        return check_discount_value(v, info.data.get("discount_type"))

    def is_applicable_to(self, session_ids: List[str]) -> bool:
        """True when the coupon is unrestricted or any session matches"""
        if not self.applicable_sessions:
            return True
        allowed = set(self.applicable_sessions)
        return any(session_id in allowed for session_id in session_ids)


class CouponCreate(BaseModel):
    """Payload for creating a coupon"""

    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    discount_type: DiscountType
    discount_value: Decimal = Field(..., ge=0)
    min_purchase: Optional[int] = Field(None, ge=0)
    max_uses: Optional[int] = Field(None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    applicable_sessions: List[str] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def validate_code(cls, v):
        code = normalize_coupon_code(v)
        if not COUPON_CODE_PATTERN.match(code):
            raise ValueError("Coupon code can only contain letters, numbers, and hyphens")
        return code

    @field_validator("discount_value")
    @classmethod
    def validate_discount_value(cls, v, info: ValidationInfo):
        return check_discount_value(v, info.data.get("discount_type"))

    @field_validator("valid_until")
    @classmethod
    def validate_window(cls, v, info: ValidationInfo):
        valid_from = info.data.get("valid_from")
        if v is not None and valid_from is not None and ensure_aware(v) <= ensure_aware(valid_from):
            raise ValueError("valid_until must be after valid_from")
        return v


class CouponUpdate(BaseModel):
    """Partial coupon update; the code itself is immutable"""

    description: Optional[str] = Field(None, max_length=500)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    min_purchase: Optional[int] = Field(None, ge=0)
    max_uses: Optional[int] = Field(None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    applicable_sessions: Optional[List[str]] = None
    is_active: Optional[bool] = None

    @field_validator("discount_type", "discount_value", "applicable_sessions", "is_active")
    @classmethod
    def validate_not_null(cls, v, info: ValidationInfo):
        return reject_null(v, info)

    @field_validator("discount_value")
    @classmethod
    def validate_discount_value(cls, v, info: ValidationInfo):
        return check_discount_value(v, info.data.get("discount_type"))


class CouponValidation(BaseModel):
    """Result of validating a code against a cart"""

    valid: bool
    discount: Optional[int] = Field(None, ge=0, description="Discount in pence")
    coupon: Optional[Coupon] = None
    error: Optional[str] = None
    error_code: Optional[CouponErrorCode] = None

    @classmethod
    def accepted(cls, coupon: Coupon, discount: int) -> "CouponValidation":
        return cls(valid=True, discount=discount, coupon=coupon)

    @classmethod
    def rejected(cls, error_code: CouponErrorCode, error: str) -> "CouponValidation":
        return cls(valid=False, error=error, error_code=error_code)


class CouponUse(BaseModel):
    """A single redemption"""

    id: str
    coupon_id: str
    coupon_code: str
    booking_id: str
    discount_applied: int = Field(..., ge=0)
    used_at: datetime


class CouponValidateRequest(BaseModel):
    """Body of POST /api/checkout/validate-coupon"""

    code: str = ""
    cart_total: int
    session_ids: List[str] = Field(default_factory=list)


class CouponSummary(BaseModel):
    """Public view of a coupon returned at checkout"""

    id: str
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    description: Optional[str] = None

    @classmethod
    def from_coupon(cls, coupon: Coupon) -> "CouponSummary":
        return cls(
            id=coupon.id,
            code=coupon.code,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
            description=coupon.description
        )


class CouponValidateResponse(BaseModel):
    """Response of POST /api/checkout/validate-coupon"""

    valid: bool
    discount: Optional[int] = None
    coupon: Optional[CouponSummary] = None
    error: Optional[str] = None
    error_code: Optional[CouponErrorCode] = None
