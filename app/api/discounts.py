"""
Discount routes - cart discount calculation and rule administration
"""

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_discount_service
from app.api.responses import ok
from app.models.discount import DiscountCalculationRequest, DiscountRuleCreate, DiscountRuleUpdate
from app.services.discount_calculator import DiscountService

router = APIRouter(prefix="/api/discounts", tags=["discounts"])
admin_router = APIRouter(prefix="/api/admin/discounts", tags=["admin"])


@router.post("/calculate")
async def calculate_discounts(
    request: DiscountCalculationRequest,
    discount_service: DiscountService = Depends(get_discount_service)
):
    """Automatic discounts for a cart"""
    return ok(await discount_service.calculate_for_display(request.items))


@admin_router.get("")
async def list_discount_rules(
    active_only: bool = Query(False),
    discount_service: DiscountService = Depends(get_discount_service)
):
    return ok(await discount_service.list_rules(active_only=active_only))


@admin_router.post("", status_code=201)
async def create_discount_rule(
    rule_data: DiscountRuleCreate,
    discount_service: DiscountService = Depends(get_discount_service)
):
    return ok(await discount_service.create_rule(rule_data))


@admin_router.get("/{rule_id}")
async def get_discount_rule(
    rule_id: str,
    discount_service: DiscountService = Depends(get_discount_service)
):
    return ok(await discount_service.get_rule(rule_id))


@admin_router.patch("/{rule_id}")
async def update_discount_rule(
    rule_id: str,
    rule_data: DiscountRuleUpdate,
    discount_service: DiscountService = Depends(get_discount_service)
):
    return ok(await discount_service.update_rule(rule_id, rule_data))


@admin_router.delete("/{rule_id}")
async def delete_discount_rule(
    rule_id: str,
    discount_service: DiscountService = Depends(get_discount_service)
):
    await discount_service.delete_rule(rule_id)
    return ok(message="Discount rule deleted")
