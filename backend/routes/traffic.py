"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Matchmaker CRM - Routes Traffic (leads)                                     ║
║                                                                              ║
║  Multi-step intake: basic info + profile + optional payment request          ║
║  Agents see and edit their own leads, super_admin sees everything           ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional
import re
import uuid

from config import db, now_iso
from models import (
    Actor,
    PaymentRequestCreate,
    Priority,
    TrafficCreate,
    TrafficStatus,
    TrafficUpdate,
)
from routes.auth import get_actor, get_current_user
from services.activity_logger import log_activity
from services.errors import Conflict, NotFound
from services.payment_workflow import create_payment_request
from services.permissions import Action, authorize, scope_filter

router = APIRouter(prefix="/traffic", tags=["Traffic"])

TRAFFIC_OWNER_FIELDS = ("created_by", "assigned_by")


async def _get_traffic_or_404(traffic_id: str) -> dict:
    traffic = await db.traffic.find_one({"id": traffic_id}, {"_id": 0})
    if not traffic:
        raise NotFound("Traffic not found")
    return traffic


@router.get("")
async def list_traffic(
    status: Optional[TrafficStatus] = None,
    priority: Optional[Priority] = None,
    q: Optional[str] = Query(None, description="Search name / contact / email"),
    limit: int = Query(500, ge=1, le=1000),
    actor: Actor = Depends(get_actor),
):
    """Traffic list, newest first. Non-admins only get their own records."""
    authorize(actor, Action.TRAFFIC_READ)

    query = {}
    if status:
        query["status"] = status.value
    if priority:
        query["priority"] = priority.value
    if q and q.strip():
        pattern = {"$regex": re.escape(q.strip()), "$options": "i"}
        query["$or"] = [{"name": pattern}, {"contact_number": pattern}, {"email": pattern}]

    query = scope_filter(actor, query, owner_fields=TRAFFIC_OWNER_FIELDS)
    return await db.traffic.find(query, {"_id": 0}) \
        .sort([("created_at", -1), ("id", 1)]) \
        .to_list(limit)


@router.post("", status_code=201)
async def create_traffic(
    data: TrafficCreate,
    user: dict = Depends(get_current_user),
    actor: Actor = Depends(get_actor),
):
    """
    Create a lead. created_by / assigned_by are always the caller.
    An optional `payment` block creates a pending payment request.
    """
    authorize(actor, Action.TRAFFIC_CREATE)

    now = now_iso()
    traffic = data.model_dump(exclude={"payment"}, mode="json")
    traffic.update({
        "id": str(uuid.uuid4()),
        "assigned_by": actor.id,
        "created_by": actor.id,
        "created_at": now,
        "updated_at": now,
    })

    await db.traffic.insert_one(traffic)
    traffic.pop("_id", None)

    await log_activity(
        user=user,
        action="create",
        entity_type="traffic",
        entity_id=traffic["id"],
        entity_name=traffic["name"],
    )

    payment = None
    if data.payment is not None:
        payment = await create_payment_request(
            actor,
            PaymentRequestCreate(traffic_id=traffic["id"], **data.payment.model_dump()),
        )

    return {**traffic, "payment": payment}


@router.get("/{traffic_id}")
async def get_traffic(traffic_id: str, actor: Actor = Depends(get_actor)):
    traffic = await _get_traffic_or_404(traffic_id)
    authorize(actor, Action.TRAFFIC_READ, traffic)
    return traffic


@router.put("/{traffic_id}")
async def update_traffic(
    traffic_id: str,
    data: TrafficUpdate,
    user: dict = Depends(get_current_user),
    actor: Actor = Depends(get_actor),
):
    """Partial update. Ownership fields and the paid status are never written here."""
    traffic = await _get_traffic_or_404(traffic_id)
    authorize(actor, Action.TRAFFIC_UPDATE, traffic)

    update_data = data.model_dump(exclude_unset=True, mode="json")
    if traffic.get("status") == TrafficStatus.PAID.value:
        # paid is terminal for the lead
        update_data.pop("status", None)
    update_data["updated_at"] = now_iso()

    await db.traffic.update_one({"id": traffic_id}, {"$set": update_data})

    await log_activity(
        user=user,
        action="update",
        entity_type="traffic",
        entity_id=traffic_id,
        entity_name=traffic.get("name"),
        details={"fields": sorted(k for k in update_data if k != "updated_at")}
    )

    return await _get_traffic_or_404(traffic_id)


@router.delete("/{traffic_id}")
async def delete_traffic(
    traffic_id: str,
    user: dict = Depends(get_current_user),
    actor: Actor = Depends(get_actor),
):
    """Delete a lead that has no payment request."""
    traffic = await _get_traffic_or_404(traffic_id)
    authorize(actor, Action.TRAFFIC_DELETE, traffic)

    payments = await db.payments.count_documents({"traffic_id": traffic_id})
    if payments:
        raise Conflict(f"Traffic has {payments} payment request(s) and cannot be deleted")

    await db.traffic.delete_one({"id": traffic_id})

    await log_activity(
        user=user,
        action="delete",
        entity_type="traffic",
        entity_id=traffic_id,
        entity_name=traffic.get("name")
    )

    return {"success": True}
