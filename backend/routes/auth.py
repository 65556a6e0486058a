"""
Matchmaker CRM - Routes Auth
Login / Logout / Session / current-user dependencies.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from datetime import datetime, timezone, timedelta
import logging

from models.auth import Actor, UserLogin
from config import db, generate_token, now_iso, SESSION_TTL_DAYS
from services.activity_logger import log_activity
from services.credentials import (
    hash_password,
    is_valid_hash_format,
    matches_legacy_plaintext,
    verify_password,
)
from services.errors import AccountDisabled, Unauthenticated
from services.permissions import Action, require_action

router = APIRouter(prefix="/auth", tags=["Auth"])
security = HTTPBearer(auto_error=False)

logger = logging.getLogger("auth")


# ==================== HELPERS ====================

def public_user(user: dict) -> dict:
    """User document without secrets."""
    return {k: v for k, v in user.items() if k not in ("_id", "password")}


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Resolve the logged-in user from the bearer token. Disabled accounts stop here."""
    if not credentials:
        raise Unauthenticated("Not authenticated")

    token = credentials.credentials
    session = await db.sessions.find_one({
        "token": token,
        "expires_at": {"$gt": now_iso()}
    })

    if not session:
        raise Unauthenticated("Session expired")

    user = await db.users.find_one(
        {"id": session["user_id"]},
        {"_id": 0, "password": 0}
    )

    if not user:
        raise Unauthenticated("User not found")

    if not user.get("is_enabled", True):
        raise AccountDisabled()

    return user


async def get_actor(user: dict = Depends(get_current_user)) -> Actor:
    """Explicit actor context for the core services."""
    return Actor.from_user(user)


async def _check_password(user: dict, password: str) -> bool:
    """
    Verify, and rehash a legacy plaintext credential in place on first match.
    """
    stored = user.get("password")
    if is_valid_hash_format(stored):
        return verify_password(password, stored)

    if not matches_legacy_plaintext(password, stored):
        return False

    await db.users.update_one(
        {"id": user["id"], "password": stored},
        {"$set": {"password": hash_password(password), "updated_at": now_iso()}}
    )
    logger.warning(f"[AUTH] legacy credential rehashed for {user.get('username')}")
    return True


# ==================== LOGIN / LOGOUT ====================

@router.post("/login")
async def login(data: UserLogin, request: Request):
    """User login."""
    user = await db.users.find_one(
        {"username": data.username.lower().strip()},
        {"_id": 0}
    )

    if not user or not await _check_password(user, data.password):
        raise Unauthenticated("Invalid username or password")

    if not user.get("is_enabled", True):
        raise AccountDisabled()

    token = generate_token()
    expires_at = (datetime.now(timezone.utc) + timedelta(days=SESSION_TTL_DAYS)).isoformat()

    await db.sessions.insert_one({
        "token": token,
        "user_id": user["id"],
        "created_at": now_iso(),
        "expires_at": expires_at
    })

    await log_activity(
        user=user,
        action="login",
        entity_type="user",
        entity_id=user["id"],
        ip_address=request.client.host if request.client else None
    )

    return {
        "token": token,
        "user": public_user(user),
    }


@router.post("/logout")
async def logout(
    user: dict = Depends(get_current_user),
    credentials: HTTPAuthorizationCredentials = Depends(security)
):
    if credentials:
        await db.sessions.delete_one({"token": credentials.credentials})
    return {"success": True}


@router.get("/me")
async def get_me(user: dict = Depends(get_current_user)):
    """Current user."""
    return user


# ==================== ACTIVITY LOG ====================

@router.get("/activity-logs")
async def get_activity_logs(
    user_id: str = None,
    entity_type: str = None,
    action: str = None,
    limit: int = 100,
    skip: int = 0,
    actor: Actor = Depends(require_action(Action.ACTIVITY_VIEW))
):
    from services.activity_logger import get_activity_logs as get_logs
    return await get_logs(user_id, entity_type, action, min(limit, 500), skip)
