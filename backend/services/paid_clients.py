"""
Matchmaker CRM - Paid Clients query layer

A paid client is a traffic record with at least one accepted payment,
represented by its most recent accepted payment.

Predicates (all AND-combined):
  payment.status == "accepted"
  traffic.assigned_by == actor.id         (non super_admin only)
  exact filters on traffic fields
  q: case-insensitive substring OR across SEARCH_FIELDS

Data and count run the SAME pipeline prefix (build_paid_client_pipeline),
so `total` always agrees with the rows that can be paged through.
"""

import logging
import math
import re
from datetime import date
from typing import Any, Dict, List, Optional

from config import db, now_iso, PAID_CLIENTS_DEFAULT_PAGE_SIZE, PAID_CLIENTS_MAX_PAGE_SIZE
from models.auth import Actor
from models.paid_client import EXACT_FILTER_FIELDS, SEARCH_FIELDS, PaidClientFilters
from models.payment import PaymentStatus
from models.traffic import PaidClientUpdate
from services.errors import NotFound
from services.permissions import Action, authorize, scope_filter

logger = logging.getLogger("paid_clients")

PAYMENT_FIELDS = [
    "package_type",
    "paid_amount",
    "discount_amount",
    "due_amount",
    "total_amount",
    "payment_method",
    "after_marriage_fee",
]


def clamp_page_size(page_size: Optional[int]) -> int:
    if page_size is None:
        return PAID_CLIENTS_DEFAULT_PAGE_SIZE
    return max(1, min(int(page_size), PAID_CLIENTS_MAX_PAGE_SIZE))


def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # 29 February in a non-leap target year
        return day.replace(year=day.year - years, day=28)


def birth_date_range_for_age(age: int, today: Optional[date] = None) -> tuple:
    """
    ISO bounds (exclusive low, inclusive high) of birth dates giving `age`
    full years on `today`.
    """
    today = today or date.today()
    latest = _years_before(today, age)
    earliest_excluded = _years_before(today, age + 1)
    return earliest_excluded.isoformat(), latest.isoformat()


def build_paid_client_match(
    actor: Actor,
    filters: PaidClientFilters,
    today: Optional[date] = None,
) -> dict:
    """Filter applied to the joined documents (traffic under "traffic.")."""
    conditions: List[dict] = []

    for key, field in EXACT_FILTER_FIELDS.items():
        value = getattr(filters, key)
        if value not in (None, ""):
            conditions.append({f"traffic.{field}": value})

    if filters.birth_year:
        conditions.append({"traffic.date_of_birth": {"$regex": f"^{int(filters.birth_year):04d}"}})

    if filters.age is not None:
        low, high = birth_date_range_for_age(filters.age, today)
        conditions.append({"traffic.date_of_birth": {"$gt": low, "$lte": high}})

    q = (filters.q or "").strip()
    if q:
        pattern = {"$regex": re.escape(q), "$options": "i"}
        conditions.append({"$or": [{f"traffic.{f}": pattern} for f in SEARCH_FIELDS]})

    base = {"$and": conditions} if conditions else {}
    return scope_filter(actor, base, owner_fields=("traffic.assigned_by",))


def build_paid_client_pipeline(match: dict) -> List[dict]:
    """Shared prefix: accepted payments -> one per traffic -> join -> filter."""
    group = {"_id": "$traffic_id", "payment_id": {"$first": "$id"}}
    for field in PAYMENT_FIELDS:
        group[field] = {"$first": f"${field}"}
    group["payment_date"] = {"$first": "$created_at"}

    return [
        {"$match": {"status": PaymentStatus.ACCEPTED.value}},
        {"$sort": {"created_at": -1, "id": 1}},
        {"$group": group},
        {"$lookup": {
            "from": "traffic",
            "localField": "_id",
            "foreignField": "id",
            "as": "traffic",
        }},
        {"$unwind": "$traffic"},
        {"$match": match},
    ]


def _to_row(doc: dict) -> Dict[str, Any]:
    traffic = dict(doc["traffic"])
    traffic.pop("_id", None)
    row = {**traffic, "payment_id": doc.get("payment_id")}
    for field in PAYMENT_FIELDS:
        row[field] = doc.get(field)
    row["payment_status"] = PaymentStatus.ACCEPTED.value
    row["payment_date"] = doc.get("payment_date")
    return row


async def count_paid_clients(actor: Actor, filters: PaidClientFilters, today: Optional[date] = None) -> int:
    """Count-only query over the same predicates as query_paid_clients."""
    authorize(actor, Action.PAID_CLIENT_VIEW)
    pipeline = build_paid_client_pipeline(build_paid_client_match(actor, filters, today))
    pipeline.append({"$count": "total"})
    result = await db.payments.aggregate(pipeline).to_list(1)
    return result[0]["total"] if result else 0


async def query_paid_clients(
    actor: Actor,
    filters: PaidClientFilters,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """One page of paid clients, most recent payment first."""
    authorize(actor, Action.PAID_CLIENT_VIEW)

    page = max(1, filters.page)
    page_size = clamp_page_size(filters.page_size)

    total = await count_paid_clients(actor, filters, today)

    pipeline = build_paid_client_pipeline(build_paid_client_match(actor, filters, today))
    pipeline += [
        {"$sort": {"payment_date": -1, "_id": 1}},
        {"$skip": (page - 1) * page_size},
        {"$limit": page_size},
    ]
    docs = await db.payments.aggregate(pipeline).to_list(page_size)

    return {
        "data": [_to_row(d) for d in docs],
        "pagination": {
            "page": page,
            "page_size": page_size,
            "total": total,
            "total_pages": math.ceil(total / page_size) if total else 0,
        },
    }


async def update_paid_client(actor: Actor, traffic_id: str, data: PaidClientUpdate) -> Dict[str, Any]:
    """Super admin edit of a paid client's profile. Status is not editable."""
    authorize(actor, Action.PAID_CLIENT_EDIT)

    traffic = await db.traffic.find_one({"id": traffic_id}, {"_id": 0})
    if not traffic:
        raise NotFound(f"Paid client {traffic_id} not found")

    accepted = await db.payments.find_one(
        {"traffic_id": traffic_id, "status": PaymentStatus.ACCEPTED.value},
        {"_id": 0, "id": 1}
    )
    if not accepted:
        raise NotFound(f"Traffic {traffic_id} is not a paid client")

    update_data = data.model_dump(exclude_unset=True, mode="json")
    update_data["updated_at"] = now_iso()

    await db.traffic.update_one({"id": traffic_id}, {"$set": update_data})
    logger.info(f"[PAID_CLIENT] {traffic_id} updated by {actor.id}: {sorted(update_data)}")

    return await db.traffic.find_one({"id": traffic_id}, {"_id": 0})
