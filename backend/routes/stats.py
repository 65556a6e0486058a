"""
Dashboard statistics route
"""

from decimal import Decimal
from fastapi import APIRouter, Depends

from config import db
from models import Actor, PaidClientFilters, PaymentStatus
from models.common import format_amount
from routes.auth import get_actor
from routes.traffic import TRAFFIC_OWNER_FIELDS
from services.paid_clients import count_paid_clients
from services.permissions import Action, authorize, scope_filter

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats")
async def get_dashboard_stats(actor: Actor = Depends(get_actor)):
    """
    Headline numbers, scoped like the lists they summarise:
    - traffic_count: leads the caller can see
    - paid_clients_count: distinct leads with an accepted payment
    - pending_payments_count / total_payments: payments on the caller's leads
    """
    authorize(actor, Action.DASHBOARD_VIEW)

    traffic_count = await db.traffic.count_documents(
        scope_filter(actor, {}, owner_fields=TRAFFIC_OWNER_FIELDS)
    )
    paid_clients_count = await count_paid_clients(actor, PaidClientFilters())

    payment_scope = {}
    if not actor.is_super_admin:
        own = await db.traffic.find(
            scope_filter(actor, {}, owner_fields=("assigned_by",)),
            {"_id": 0, "id": 1}
        ).to_list(None)
        payment_scope = {"traffic_id": {"$in": [t["id"] for t in own]}}

    pending_payments_count = await db.payments.count_documents(
        {**payment_scope, "status": PaymentStatus.PENDING.value}
    )

    accepted = await db.payments.find(
        {**payment_scope, "status": PaymentStatus.ACCEPTED.value},
        {"_id": 0, "paid_amount": 1}
    ).to_list(None)
    total = sum((Decimal(p.get("paid_amount") or "0") for p in accepted), Decimal("0"))

    return {
        "traffic_count": traffic_count,
        "paid_clients_count": paid_clients_count,
        "pending_payments_count": pending_payments_count,
        "total_payments": format_amount(total),
    }
