"""
Matchmaker CRM - Authorization Policy
Role presets + ownership rules + FastAPI dependencies.

authorize() is a pure function over an explicit Actor: no request state.
Order of checks (fail-closed):
  1. disabled account  -> AccountDisabled (403), whatever the role
  2. super_admin       -> allowed
  3. role preset       -> Forbidden (403) if the action is not granted
  4. ownership         -> Forbidden (403) if the resource belongs to someone else
"""

import logging
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Sequence

from fastapi import Depends

from models.auth import Actor, Role
from services.errors import AccountDisabled, Forbidden

logger = logging.getLogger("permissions")


class Action(str, Enum):
    DASHBOARD_VIEW = "dashboard.view"

    TRAFFIC_CREATE = "traffic.create"
    TRAFFIC_READ = "traffic.read"
    TRAFFIC_UPDATE = "traffic.update"
    TRAFFIC_DELETE = "traffic.delete"

    PAYMENT_CREATE = "payments.create"
    PAYMENT_READ = "payments.read"
    PAYMENT_LIST_PENDING = "payments.list_pending"
    PAYMENT_DECIDE = "payments.decide"
    PAYMENT_RECONCILE = "payments.reconcile"

    PAID_CLIENT_VIEW = "paid_clients.view"
    PAID_CLIENT_EDIT = "paid_clients.edit"

    USER_VIEW = "users.view"
    USER_MANAGE = "users.manage"

    SETTINGS_VIEW = "settings.view"
    SETTINGS_MANAGE = "settings.manage"

    ACTIVITY_VIEW = "activity.view"


# ════════════════════════════════════════════════════════════════════════
# ROLE PRESETS
# ════════════════════════════════════════════════════════════════════════

ENABLED_USER_ACTIONS: FrozenSet[Action] = frozenset({
    Action.DASHBOARD_VIEW,
    Action.TRAFFIC_CREATE,
    Action.TRAFFIC_READ,
    Action.TRAFFIC_UPDATE,
    Action.TRAFFIC_DELETE,
    Action.PAYMENT_CREATE,
    Action.PAYMENT_READ,
    Action.PAYMENT_LIST_PENDING,
    Action.PAID_CLIENT_VIEW,
    Action.USER_VIEW,
    Action.SETTINGS_VIEW,
})

ROLE_PRESETS: Dict[Role, FrozenSet[Action]] = {
    Role.SUPER_ADMIN: frozenset(Action),
    Role.MATCHMAKER: ENABLED_USER_ACTIONS,
    Role.CRO_AGENT: ENABLED_USER_ACTIONS,
}

# Actions granted to non-admins only on resources they own
OWNER_FIELDS: Dict[Action, Sequence[str]] = {
    Action.TRAFFIC_READ: ("created_by", "assigned_by"),
    Action.TRAFFIC_UPDATE: ("created_by", "assigned_by"),
    Action.TRAFFIC_DELETE: ("created_by", "assigned_by"),
    Action.PAYMENT_CREATE: ("created_by", "assigned_by"),
    Action.PAYMENT_READ: ("created_by", "assigned_by"),
    Action.PAID_CLIENT_VIEW: ("assigned_by",),
    Action.USER_VIEW: ("id",),
}

DENIED_MESSAGES: Dict[Action, str] = {
    Action.PAYMENT_DECIDE: "Only a super admin can accept or cancel payment requests",
    Action.PAYMENT_RECONCILE: "Only a super admin can reconcile payments",
    Action.PAID_CLIENT_EDIT: "Paid clients are view-only for your role",
    Action.USER_MANAGE: "Only a super admin can manage accounts",
    Action.SETTINGS_MANAGE: "Only a super admin can manage settings",
    Action.ACTIVITY_VIEW: "Only a super admin can read the activity log",
}


def get_preset_actions(role: Role) -> FrozenSet[Action]:
    """Returns the actions granted to a role."""
    return ROLE_PRESETS.get(Role(role), frozenset())


def is_owner(actor: Actor, resource: dict, fields: Iterable[str]) -> bool:
    return any(resource.get(f) == actor.id for f in fields)


def authorize(actor: Actor, action: Action, resource: Optional[dict] = None) -> None:
    """Raise AccountDisabled / Forbidden, or return None when allowed."""
    if not actor.is_enabled:
        raise AccountDisabled()

    if actor.is_super_admin:
        return

    if action not in get_preset_actions(actor.role):
        logger.warning(
            f"[PERMISSION_DENIED] user={actor.id} action={action.value} role={actor.role.value}"
        )
        raise Forbidden(DENIED_MESSAGES.get(action, f"Permission required: {action.value}"))

    fields = OWNER_FIELDS.get(action)
    if fields and resource is not None and not is_owner(actor, resource, fields):
        logger.warning(
            f"[PERMISSION_DENIED] user={actor.id} action={action.value} not owner"
        )
        raise Forbidden("You can only access your own records")


def is_allowed(actor: Actor, action: Action, resource: Optional[dict] = None) -> bool:
    try:
        authorize(actor, action, resource)
    except (AccountDisabled, Forbidden):
        return False
    return True


# ════════════════════════════════════════════════════════════════════════
# ROW-LEVEL SCOPE
# ════════════════════════════════════════════════════════════════════════

def scope_filter(
    actor: Actor,
    base_conditions: Optional[dict] = None,
    owner_fields: Sequence[str] = ("assigned_by",),
) -> dict:
    """
    Build the MongoDB filter for what `actor` may see.
    super_admin -> base_conditions unchanged
    others      -> base_conditions AND (owner_field == actor.id [OR ...])
    Used by both data and count queries so they can never diverge.
    """
    conditions = dict(base_conditions or {})
    if actor.is_super_admin:
        return conditions

    if len(owner_fields) == 1:
        ownership = {owner_fields[0]: actor.id}
    else:
        ownership = {"$or": [{f: actor.id} for f in owner_fields]}

    if not conditions:
        return ownership
    return {"$and": [conditions, ownership]}


# ════════════════════════════════════════════════════════════════════════
# FASTAPI DEPENDENCIES
# ════════════════════════════════════════════════════════════════════════

def require_action(action: Action):
    """
    FastAPI dependency factory.
    Usage: actor: Actor = Depends(require_action(Action.SETTINGS_MANAGE))
    """
    from routes.auth import get_actor

    async def _check(actor: Actor = Depends(get_actor)):
        authorize(actor, action)
        return actor

    return _check

