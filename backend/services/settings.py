"""
Matchmaker CRM - Lookup settings service

Dropdown values used by the intake and filter forms.
Collection: settings, one document per (category, value).
"""

import logging
import uuid
from typing import Dict, List

from pymongo.errors import DuplicateKeyError

from config import db, now_iso
from models.setting import SettingCategory, SettingCreate, SettingUpdate
from services.errors import Conflict, NotFound

logger = logging.getLogger("settings")


async def get_setting(setting_id: str) -> Dict:
    """Fetch one entry by id"""
    doc = await db.settings.find_one({"id": setting_id}, {"_id": 0})
    if not doc:
        raise NotFound(f"Setting {setting_id} not found")
    return doc


async def list_settings_by_category() -> Dict[str, List[Dict]]:
    """
    All entries grouped by category, each sorted by display_order then value.
    Every known category is present, possibly empty.
    """
    docs = await db.settings.find({}, {"_id": 0}).to_list(5000)

    grouped: Dict[str, List[Dict]] = {c.value: [] for c in SettingCategory}
    for doc in docs:
        grouped.setdefault(doc.get("category"), []).append(doc)

    for entries in grouped.values():
        entries.sort(key=lambda d: (d.get("display_order") or 0, d.get("value", "")))
    return grouped


async def get_values(category: SettingCategory) -> List[str]:
    """Plain values of one category, in display order"""
    grouped = await list_settings_by_category()
    return [d["value"] for d in grouped.get(category.value, [])]


async def _ensure_unique(category: str, value: str, exclude_id: str = None):
    query = {"category": category, "value": value}
    if exclude_id:
        query["id"] = {"$ne": exclude_id}
    if await db.settings.find_one(query):
        raise Conflict(f"'{value}' already exists in {category}")


async def create_setting(data: SettingCreate, created_by: str = "system") -> Dict:
    await _ensure_unique(data.category.value, data.value)

    now = now_iso()
    doc = {
        "id": str(uuid.uuid4()),
        "category": data.category.value,
        "value": data.value,
        "display_order": data.display_order,
        "created_by": created_by,
        "created_at": now,
        "updated_at": now,
    }
    try:
        await db.settings.insert_one(doc)
    except DuplicateKeyError:
        raise Conflict(f"'{data.value}' already exists in {data.category.value}")
    doc.pop("_id", None)

    logger.info(f"[SETTINGS] {doc['category']}='{doc['value']}' created by {created_by}")
    return doc


async def update_setting(setting_id: str, data: SettingUpdate, updated_by: str = "system") -> Dict:
    existing = await get_setting(setting_id)

    update_data = data.model_dump(exclude_unset=True, exclude_none=True, mode="json")
    category = update_data.get("category", existing["category"])
    value = update_data.get("value", existing["value"])
    await _ensure_unique(category, value, exclude_id=setting_id)

    update_data["updated_at"] = now_iso()
    update_data["updated_by"] = updated_by
    await db.settings.update_one({"id": setting_id}, {"$set": update_data})

    return await get_setting(setting_id)


async def delete_setting(setting_id: str) -> Dict:
    existing = await get_setting(setting_id)
    await db.settings.delete_one({"id": setting_id})
    logger.info(f"[SETTINGS] {existing['category']}='{existing['value']}' deleted")
    return existing
