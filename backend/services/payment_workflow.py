"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Matchmaker CRM - Payment Workflow Engine                                    ║
║                                                                              ║
║  STRICT STATUS TRANSITION RULES                                              ║
║                                                                              ║
║  ONLY THIS MODULE may mark a payment "accepted" or "cancelled"               ║
║  ONLY THIS MODULE may mark a traffic record "paid"                           ║
║                                                                              ║
║  INVARIANTS:                                                                 ║
║  - pending -> accepted | cancelled, terminal states never change             ║
║  - the transition is ONE conditional update (status == "pending")            ║
║  - traffic.status="paid" IMPLIES an accepted payment for that traffic        ║
║  - accepted payment with unpaid traffic is repaired by reconcile             ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import logging
import uuid
from typing import Any, Dict, List

from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from config import db, now_iso
from models.auth import Actor
from models.payment import PaymentRequestCreate, PaymentStatus
from models.traffic import TrafficStatus
from services.errors import Conflict, NotFound, PromotionFailed
from services.permissions import Action, authorize

logger = logging.getLogger("payment_workflow")


# ════════════════════════════════════════════════════════════════════════════
# VALID STATE TRANSITIONS
# ════════════════════════════════════════════════════════════════════════════

VALID_PAYMENT_TRANSITIONS = {
    "pending": ["accepted", "cancelled"],
    "accepted": [],   # TERMINAL
    "cancelled": [],  # TERMINAL
}


def validate_payment_transition(payment_id: str, from_status: str, to_status: str) -> bool:
    """Raise Conflict when from_status -> to_status is not allowed."""
    valid_next = VALID_PAYMENT_TRANSITIONS.get(from_status, [])
    if to_status not in valid_next:
        raise Conflict(
            f"Payment request {payment_id} is already {from_status}",
            current_status=from_status,
        )
    return True


# ════════════════════════════════════════════════════════════════════════════
# CREATION
# ════════════════════════════════════════════════════════════════════════════

async def create_payment_request(actor: Actor, data: PaymentRequestCreate) -> Dict[str, Any]:
    """
    Create a pending payment request for an existing traffic record.
    Amounts are stored as supplied (no arithmetic re-validation).
    """
    traffic = await db.traffic.find_one({"id": data.traffic_id}, {"_id": 0})
    if not traffic:
        raise NotFound(f"Traffic {data.traffic_id} not found")

    authorize(actor, Action.PAYMENT_CREATE, traffic)

    now = now_iso()
    payment = {
        "id": str(uuid.uuid4()),
        "traffic_id": data.traffic_id,
        **data.to_document(),
        "status": PaymentStatus.PENDING.value,
        "created_by": actor.id,
        "created_at": now,
        "updated_at": now,
        "decided_by": None,
        "decided_at": None,
    }

    await db.payments.insert_one(payment)
    payment.pop("_id", None)

    logger.info(
        f"[PAYMENT] Request {payment['id']} created for traffic {data.traffic_id} "
        f"by {actor.id} | total={payment['total_amount']} paid={payment['paid_amount']}"
    )
    return payment


# ════════════════════════════════════════════════════════════════════════════
# DECISIONS (THE ONLY WAY TO LEAVE "pending")
# ════════════════════════════════════════════════════════════════════════════

async def _decide(payment_id: str, actor: Actor, to_status: PaymentStatus) -> Dict[str, Any]:
    """
    Atomic conditional transition pending -> to_status.
    Zero matched documents: re-read to tell NotFound from Conflict.
    """
    authorize(actor, Action.PAYMENT_DECIDE)

    now = now_iso()
    payment = await db.payments.find_one_and_update(
        {"id": payment_id, "status": PaymentStatus.PENDING.value},
        {"$set": {
            "status": to_status.value,
            "decided_by": actor.id,
            "decided_at": now,
            "updated_at": now,
        }},
        return_document=ReturnDocument.AFTER,
    )

    if payment is None:
        current = await db.payments.find_one({"id": payment_id}, {"_id": 0, "status": 1})
        if not current:
            raise NotFound(f"Payment request {payment_id} not found")
        logger.info(
            f"[PAYMENT] {to_status.value} refused for {payment_id}: already {current['status']}"
        )
        validate_payment_transition(payment_id, current["status"], to_status.value)
        # Unreachable while "pending" is the only non-terminal state
        raise Conflict(f"Payment request {payment_id} changed concurrently", current["status"])

    payment.pop("_id", None)
    logger.info(f"[PAYMENT] {payment_id} -> {to_status.value} by {actor.id}")
    return payment


async def accept_payment(payment_id: str, actor: Actor) -> Dict[str, Any]:
    """
    pending -> accepted, then traffic -> paid.
    The two writes are not one transaction: if the second fails the payment
    stays accepted and reconcile_paid_traffic() repairs the lead.
    """
    payment = await _decide(payment_id, actor, PaymentStatus.ACCEPTED)

    try:
        await mark_traffic_paid(payment["traffic_id"])
    except PyMongoError as e:
        logger.error(
            f"[PAYMENT] {payment_id} accepted but traffic {payment['traffic_id']} "
            f"not marked paid: {e}"
        )
        raise PromotionFailed()

    return payment


async def cancel_payment(payment_id: str, actor: Actor) -> Dict[str, Any]:
    """pending -> cancelled. No traffic side effect."""
    return await _decide(payment_id, actor, PaymentStatus.CANCELLED)


async def mark_traffic_paid(traffic_id: str) -> bool:
    """🔒 Only called after a payment for this traffic has been accepted."""
    now = now_iso()
    result = await db.traffic.update_one(
        {"id": traffic_id},
        {"$set": {
            "status": TrafficStatus.PAID.value,
            "paid_at": now,
            "updated_at": now,
        }}
    )
    if result.matched_count == 0:
        logger.warning(f"[PAYMENT] traffic {traffic_id} missing, cannot mark paid")
        return False
    return True


# ════════════════════════════════════════════════════════════════════════════
# RECONCILIATION
# ════════════════════════════════════════════════════════════════════════════

async def reconcile_paid_traffic() -> Dict[str, int]:
    """
    Idempotent repair pass: every traffic with an accepted payment must be paid.
    """
    accepted = await db.payments.find(
        {"status": PaymentStatus.ACCEPTED.value},
        {"_id": 0, "traffic_id": 1}
    ).to_list(None)
    traffic_ids = sorted({p["traffic_id"] for p in accepted if p.get("traffic_id")})

    if not traffic_ids:
        return {"checked": 0, "repaired": 0}

    now = now_iso()
    result = await db.traffic.update_many(
        {"id": {"$in": traffic_ids}, "status": {"$ne": TrafficStatus.PAID.value}},
        {"$set": {
            "status": TrafficStatus.PAID.value,
            "paid_at": now,
            "updated_at": now,
        }}
    )

    if result.modified_count:
        logger.warning(f"[RECONCILE] {result.modified_count} traffic record(s) promoted to paid")
    else:
        logger.info(f"[RECONCILE] {len(traffic_ids)} paid traffic record(s) consistent")

    return {"checked": len(traffic_ids), "repaired": result.modified_count}


# ════════════════════════════════════════════════════════════════════════════
# READS
# ════════════════════════════════════════════════════════════════════════════

async def get_payment(actor: Actor, payment_id: str) -> Dict[str, Any]:
    """One payment request. Non-admins only for requests on their own leads."""
    payment = await db.payments.find_one({"id": payment_id}, {"_id": 0})
    if not payment:
        raise NotFound(f"Payment request {payment_id} not found")

    traffic = await db.traffic.find_one({"id": payment["traffic_id"]}, {"_id": 0}) or {}
    authorize(actor, Action.PAYMENT_READ, traffic)
    payment["traffic_name"] = traffic.get("name", "")
    return payment


async def list_pending_payments(actor: Actor) -> List[Dict[str, Any]]:
    """Pending requests, newest first, joined with the lead name."""
    authorize(actor, Action.PAYMENT_LIST_PENDING)

    payments = await db.payments.find(
        {"status": PaymentStatus.PENDING.value},
        {"_id": 0}
    ).sort([("created_at", -1), ("id", 1)]).to_list(1000)

    traffic_ids = list({p["traffic_id"] for p in payments})
    names = {}
    if traffic_ids:
        rows = await db.traffic.find(
            {"id": {"$in": traffic_ids}},
            {"_id": 0, "id": 1, "name": 1}
        ).to_list(len(traffic_ids))
        names = {r["id"]: r.get("name", "") for r in rows}

    for p in payments:
        p["traffic_name"] = names.get(p["traffic_id"], "")

    return payments
