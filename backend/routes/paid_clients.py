"""
Matchmaker CRM - Routes Paid Clients
View: every enabled user, scoped to their own leads unless super_admin.
Edit: super_admin only.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from models import Actor, PaidClientFilters, PaidClientUpdate
from routes.auth import get_actor, get_current_user
from services.activity_logger import log_activity
from services.paid_clients import query_paid_clients, update_paid_client

router = APIRouter(prefix="/paid-clients", tags=["Paid Clients"])


def paid_client_filters(request: Request) -> PaidClientFilters:
    """
    page, page_size (clamped to 1..100), exact filters (gender, birth_year,
    age, height, marital_status, qualification, profession, permanent_country,
    permanent_city, present_country, present_city) and q.
    Keys may be snake_case or camelCase (pageSize, birthYear, ...).
    """
    params = {k: v for k, v in request.query_params.items() if v != ""}
    try:
        return PaidClientFilters.model_validate(params)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


@router.get("")
async def list_paid_clients(
    actor: Actor = Depends(get_actor),
    filters: PaidClientFilters = Depends(paid_client_filters),
):
    """
    Paginated paid clients.

    Returns {data, pagination: {page, page_size, total, total_pages}}.
    Response keys are snake_case: page_size and total_pages are the
    pageSize and totalPages of camelCase clients.
    A page past the end returns empty data, not an error.
    """
    return await query_paid_clients(actor, filters)


@router.patch("/{traffic_id}")
async def edit_paid_client(
    traffic_id: str,
    data: PaidClientUpdate,
    user: dict = Depends(get_current_user),
    actor: Actor = Depends(get_actor),
):
    traffic = await update_paid_client(actor, traffic_id, data)
    await log_activity(
        user=user,
        action="update",
        entity_type="traffic",
        entity_id=traffic_id,
        entity_name=traffic.get("name"),
        details={"paid_client": True}
    )
    return traffic
