"""
Matchmaker CRM - Routes Settings

Lookup values (dropdown options) grouped by category.
Read: any enabled user. Write: super_admin.
"""

from fastapi import APIRouter, Depends

from models import Actor, SettingCreate, SettingUpdate, VALID_CATEGORIES
from routes.auth import get_current_user
from services.activity_logger import log_activity
from services.permissions import Action, require_action
from services.settings import (
    create_setting,
    delete_setting,
    list_settings_by_category,
    update_setting,
)

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("")
async def list_settings(actor: Actor = Depends(require_action(Action.SETTINGS_VIEW))):
    """All lookup entries, {category: [entries...]}"""
    return await list_settings_by_category()


@router.get("/categories")
async def list_categories(actor: Actor = Depends(require_action(Action.SETTINGS_VIEW))):
    return {"categories": VALID_CATEGORIES}


@router.post("", status_code=201)
async def add_setting(
    data: SettingCreate,
    user: dict = Depends(get_current_user),
    actor: Actor = Depends(require_action(Action.SETTINGS_MANAGE)),
):
    doc = await create_setting(data, created_by=actor.id)
    await log_activity(
        user=user,
        action="create",
        entity_type="setting",
        entity_id=doc["id"],
        entity_name=f"{doc['category']}:{doc['value']}"
    )
    return doc


@router.put("/{setting_id}")
async def edit_setting(
    setting_id: str,
    data: SettingUpdate,
    user: dict = Depends(get_current_user),
    actor: Actor = Depends(require_action(Action.SETTINGS_MANAGE)),
):
    doc = await update_setting(setting_id, data, updated_by=actor.id)
    await log_activity(
        user=user,
        action="update",
        entity_type="setting",
        entity_id=setting_id,
        entity_name=f"{doc['category']}:{doc['value']}"
    )
    return doc


@router.delete("/{setting_id}")
async def remove_setting(
    setting_id: str,
    user: dict = Depends(get_current_user),
    actor: Actor = Depends(require_action(Action.SETTINGS_MANAGE)),
):
    doc = await delete_setting(setting_id)
    await log_activity(
        user=user,
        action="delete",
        entity_type="setting",
        entity_id=setting_id,
        entity_name=f"{doc['category']}:{doc['value']}"
    )
    return {"success": True}
