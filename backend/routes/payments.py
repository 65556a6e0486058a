"""
Matchmaker CRM - Routes Payments
Payment requests and their accept / cancel decisions.
All status changes go through services.payment_workflow.
"""

from fastapi import APIRouter, Depends, Request

from models import Actor, PaymentRequestCreate
from routes.auth import get_actor, get_current_user
from services.activity_logger import log_activity
from services.payment_workflow import (
    accept_payment,
    cancel_payment,
    create_payment_request,
    get_payment,
    list_pending_payments,
    reconcile_paid_traffic,
)
from services.permissions import Action, require_action

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", status_code=201)
async def create_payment(
    data: PaymentRequestCreate,
    user: dict = Depends(get_current_user),
    actor: Actor = Depends(get_actor),
):
    """Create a pending payment request for one of the caller's leads."""
    payment = await create_payment_request(actor, data)
    await log_activity(
        user=user,
        action="create",
        entity_type="payment",
        entity_id=payment["id"],
        details={"traffic_id": payment["traffic_id"], "total_amount": payment["total_amount"]}
    )
    return payment


@router.get("/pending")
async def pending_payments(actor: Actor = Depends(get_actor)):
    """Pending requests with the lead name."""
    return await list_pending_payments(actor)


@router.post("/reconcile")
async def reconcile(
    user: dict = Depends(get_current_user),
    actor: Actor = Depends(require_action(Action.PAYMENT_RECONCILE)),
):
    """Promote to paid every lead with an accepted payment that is not paid yet."""
    result = await reconcile_paid_traffic()
    await log_activity(user=user, action="reconcile", entity_type="payment", details=result)
    return result


@router.get("/{payment_id}")
async def payment_detail(payment_id: str, actor: Actor = Depends(get_actor)):
    payment = await get_payment(actor, payment_id)
    return payment


@router.post("/{payment_id}/accept")
async def accept(
    payment_id: str,
    request: Request,
    user: dict = Depends(get_current_user),
    actor: Actor = Depends(get_actor),
):
    """pending -> accepted (super_admin). 404 unknown, 409 already decided."""
    payment = await accept_payment(payment_id, actor)
    await log_activity(
        user=user,
        action="accept",
        entity_type="payment",
        entity_id=payment_id,
        details={"traffic_id": payment["traffic_id"]},
        ip_address=request.client.host if request.client else None
    )
    return payment


@router.post("/{payment_id}/cancel")
async def cancel(
    payment_id: str,
    request: Request,
    user: dict = Depends(get_current_user),
    actor: Actor = Depends(get_actor),
):
    """pending -> cancelled (super_admin). 404 unknown, 409 already decided."""
    payment = await cancel_payment(payment_id, actor)
    await log_activity(
        user=user,
        action="cancel",
        entity_type="payment",
        entity_id=payment_id,
        details={"traffic_id": payment["traffic_id"]},
        ip_address=request.client.host if request.client else None
    )
    return payment
