"""
Matchmaker CRM - Startup bootstrap

- repair_legacy_credentials(): rehash any stored password that is not in
  "<keyHex>.<saltHex>" format (legacy plaintext)
- ensure_default_admin(): create the first super_admin when none exists
"""

import logging
import uuid
from typing import Optional

from config import db, now_iso, is_production, ADMIN_USERNAME, ADMIN_PASSWORD
from models.auth import Role
from services.credentials import (
    hash_password,
    is_valid_hash_format,
    generate_strong_password,
)

logger = logging.getLogger("bootstrap")


class BootstrapError(RuntimeError):
    """Fatal startup condition"""
    pass


async def repair_legacy_credentials() -> int:
    """Rehash in place every credential that fails the format check."""
    repaired = 0
    users = await db.users.find({}, {"_id": 0, "id": 1, "username": 1, "password": 1}).to_list(None)

    for user in users:
        stored = user.get("password")
        if is_valid_hash_format(stored):
            continue
        if not isinstance(stored, str) or not stored:
            logger.error(f"[BOOTSTRAP] user {user.get('username')} has no usable credential, skipped")
            continue

        await db.users.update_one(
            {"id": user["id"], "password": stored},
            {"$set": {"password": hash_password(stored), "updated_at": now_iso()}}
        )
        repaired += 1
        logger.warning(f"[BOOTSTRAP] legacy credential rehashed for {user.get('username')}")

    return repaired


async def ensure_default_admin(
    username: Optional[str] = None,
    password: Optional[str] = None,
    production: Optional[bool] = None,
) -> Optional[dict]:
    """
    Create the bootstrap super_admin if no super_admin exists.
    Production without ADMIN_PASSWORD is fatal; elsewhere a strong password
    is generated and logged once.
    """
    username = (username or ADMIN_USERNAME).strip().lower()
    password = password if password is not None else ADMIN_PASSWORD
    production = is_production() if production is None else production

    if await db.users.find_one({"role": Role.SUPER_ADMIN.value}):
        return None

    if await db.users.find_one({"username": username}):
        raise BootstrapError(
            f"No super_admin exists and username '{username}' is already taken; set ADMIN_USERNAME"
        )

    if not password:
        if production:
            raise BootstrapError(
                "ADMIN_PASSWORD is required to create the first super_admin in production"
            )
        password = generate_strong_password()
        logger.warning(
            f"[BOOTSTRAP] generated password for '{username}': {password} "
            f"(shown once, change it after first login)"
        )

    admin = {
        "id": str(uuid.uuid4()),
        "username": username,
        "password": hash_password(password),
        "role": Role.SUPER_ADMIN.value,
        "is_enabled": True,
        "name": "Super Admin",
        "official_number": "",
        "date_of_birth": "",
        "gender": "",
        "created_at": now_iso(),
        "created_by": "system",
    }
    await db.users.insert_one(admin)
    admin.pop("_id", None)
    admin.pop("password", None)

    logger.info(f"[BOOTSTRAP] super_admin '{username}' created")
    return admin
