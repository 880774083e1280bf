"""
Refund routes - cancellation quotes and refund policy administration
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_refund_service
from app.api.responses import ok
from app.models.refund import RefundPolicyCreate, RefundPolicyUpdate, RefundQuoteRequest
from app.services.refund_calculator import RefundService, amount_paid

router = APIRouter(prefix="/api/refunds", tags=["refunds"])
admin_router = APIRouter(prefix="/api/admin/refund-policies", tags=["admin"])


@router.post("/quote")
async def quote_refund(
    request: RefundQuoteRequest,
    refund_service: RefundService = Depends(get_refund_service)
):
    """Refund a parent would get for cancelling now"""
    quote = await refund_service.quote_cancellation(
        session_start=request.session_start_date,
        original_amount=amount_paid(request.booking),
        policy_id=request.policy_id
    )
    return ok(quote)


@admin_router.get("")
async def list_refund_policies(refund_service: RefundService = Depends(get_refund_service)):
    return ok(await refund_service.list_policies())


@admin_router.post("", status_code=201)
async def create_refund_policy(
    policy_data: RefundPolicyCreate,
    refund_service: RefundService = Depends(get_refund_service)
):
    return ok(await refund_service.create_policy(policy_data))


@admin_router.get("/{policy_id}")
async def get_refund_policy(
    policy_id: str,
    refund_service: RefundService = Depends(get_refund_service)
):
    return ok(await refund_service.get_policy(policy_id))


@admin_router.patch("/{policy_id}")
async def update_refund_policy(
    policy_id: str,
    policy_data: RefundPolicyUpdate,
    refund_service: RefundService = Depends(get_refund_service)
):
    return ok(await refund_service.update_policy(policy_id, policy_data))


@admin_router.post("/{policy_id}/default")
async def set_default_refund_policy(
    policy_id: str,
    refund_service: RefundService = Depends(get_refund_service)
):
    return ok(await refund_service.set_default_policy(policy_id))
