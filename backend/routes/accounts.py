"""
Matchmaker CRM - Routes Accounts
User account CRUD. Everything but "view my own account" is super_admin only.
"""

from fastapi import APIRouter, Depends, Query
from pymongo.errors import DuplicateKeyError
from typing import Optional
import uuid

from models.auth import Actor, Role, UserCreate, UserUpdate
from config import db, now_iso
from routes.auth import get_actor, get_current_user, public_user
from services.activity_logger import log_activity
from services.credentials import hash_password
from services.errors import BadRequest, Conflict, NotFound
from services.permissions import Action, authorize, require_action

router = APIRouter(prefix="/accounts", tags=["Accounts"])


async def _get_user_or_404(user_id: str) -> dict:
    target = await db.users.find_one({"id": user_id}, {"_id": 0, "password": 0})
    if not target:
        raise NotFound("User not found")
    return target


@router.get("")
async def list_accounts(
    role: Optional[Role] = Query(None, description="Filter by role (super_admin only)"),
    actor: Actor = Depends(get_actor),
):
    """super_admin: every account. Others: only their own."""
    authorize(actor, Action.USER_VIEW)

    if not actor.is_super_admin:
        own = await _get_user_or_404(actor.id)
        return [own]

    query = {"role": role.value} if role else {}
    users = await db.users.find(query, {"_id": 0, "password": 0}) \
        .sort("created_at", -1) \
        .to_list(1000)
    return users


@router.get("/{user_id}")
async def get_account(user_id: str, actor: Actor = Depends(get_actor)):
    target = await _get_user_or_404(user_id)
    authorize(actor, Action.USER_VIEW, target)
    return target


@router.post("", status_code=201)
async def create_account(
    data: UserCreate,
    user: dict = Depends(get_current_user),
    actor: Actor = Depends(require_action(Action.USER_MANAGE)),
):
    """Create an account."""
    if await db.users.find_one({"username": data.username}):
        raise Conflict("Username already exists")

    new_user = {
        "id": str(uuid.uuid4()),
        "username": data.username,
        "password": hash_password(data.password),
        "role": data.role.value,
        "is_enabled": data.is_enabled,
        "name": data.name or "",
        "official_number": data.official_number or "",
        "date_of_birth": data.date_of_birth or "",
        "gender": data.gender or "",
        "created_at": now_iso(),
        "created_by": actor.id,
    }

    try:
        await db.users.insert_one(new_user)
    except DuplicateKeyError:
        raise Conflict("Username already exists")

    await log_activity(
        user=user,
        action="create",
        entity_type="user",
        entity_id=new_user["id"],
        entity_name=new_user["username"],
        details={"role": new_user["role"]}
    )

    return public_user(new_user)


@router.put("/{user_id}")
async def update_account(
    user_id: str,
    data: UserUpdate,
    user: dict = Depends(get_current_user),
    actor: Actor = Depends(require_action(Action.USER_MANAGE)),
):
    """Update an account (role, profile, password)."""
    target = await _get_user_or_404(user_id)

    update_data = data.model_dump(exclude_unset=True, exclude_none=True, mode="json")

    if "username" in update_data and update_data["username"] != target["username"]:
        if await db.users.find_one({"username": update_data["username"]}):
            raise Conflict("Username already exists")

    if user_id == actor.id:
        if update_data.get("role", target["role"]) != target["role"]:
            raise BadRequest("You cannot change your own role")
        if update_data.get("is_enabled") is False:
            raise BadRequest("You cannot disable your own account")

    if "password" in update_data:
        update_data["password"] = hash_password(update_data["password"])

    update_data["updated_at"] = now_iso()
    await db.users.update_one({"id": user_id}, {"$set": update_data})

    if update_data.get("is_enabled") is False:
        await db.sessions.delete_many({"user_id": user_id})

    await log_activity(
        user=user,
        action="update",
        entity_type="user",
        entity_id=user_id,
        entity_name=target.get("username"),
        details={k: v for k, v in update_data.items() if k not in ("updated_at", "password")}
    )

    return await _get_user_or_404(user_id)


@router.patch("/{user_id}/toggle")
async def toggle_account(
    user_id: str,
    user: dict = Depends(get_current_user),
    actor: Actor = Depends(require_action(Action.USER_MANAGE)),
):
    """Enable / disable an account. Disabling revokes its sessions."""
    target = await _get_user_or_404(user_id)

    if user_id == actor.id:
        raise BadRequest("You cannot disable your own account")

    enabled = not target.get("is_enabled", True)
    await db.users.update_one(
        {"id": user_id},
        {"$set": {"is_enabled": enabled, "updated_at": now_iso()}}
    )
    if not enabled:
        await db.sessions.delete_many({"user_id": user_id})

    await log_activity(
        user=user,
        action="toggle",
        entity_type="user",
        entity_id=user_id,
        entity_name=target.get("username"),
        details={"is_enabled": enabled}
    )

    return await _get_user_or_404(user_id)


@router.delete("/{user_id}")
async def delete_account(
    user_id: str,
    user: dict = Depends(get_current_user),
    actor: Actor = Depends(require_action(Action.USER_MANAGE)),
):
    """Delete an account that no traffic record references."""
    target = await _get_user_or_404(user_id)

    if user_id == actor.id:
        raise BadRequest("You cannot delete your own account")

    referencing = await db.traffic.count_documents({
        "$or": [{"created_by": user_id}, {"assigned_by": user_id}]
    })
    if referencing:
        raise Conflict(f"Account is referenced by {referencing} traffic record(s)")

    await db.users.delete_one({"id": user_id})
    await db.sessions.delete_many({"user_id": user_id})

    await log_activity(
        user=user,
        action="delete",
        entity_type="user",
        entity_id=user_id,
        entity_name=target.get("username")
    )

    return {"success": True}
