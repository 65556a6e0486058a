"""
Matchmaker CRM - Seed Test Users (dev/staging only)
Creates one test account per role with predictable credentials.
Run: python scripts/seed_test_users.py
Reset: python scripts/seed_test_users.py --reset
"""

import asyncio
import sys
import uuid
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config import client, db, is_production, now_iso  # noqa: E402
from services.credentials import hash_password  # noqa: E402

# Same password for all test accounts
TEST_PASSWORD = "Matchmaker2026!"

TEST_USERS = [
    {"username": "test_superadmin", "name": "Super Admin Test", "role": "super_admin"},
    {"username": "test_matchmaker", "name": "Matchmaker Test",  "role": "matchmaker"},
    {"username": "test_cro_a",      "name": "CRO Agent A",      "role": "cro_agent"},
    {"username": "test_cro_b",      "name": "CRO Agent B",      "role": "cro_agent"},
]


async def reset(db):
    """Delete all test_ users and their sessions"""
    users = await db.users.find({"username": {"$regex": "^test_"}}, {"_id": 0, "id": 1}).to_list(None)
    ids = [u["id"] for u in users]
    await db.sessions.delete_many({"user_id": {"$in": ids}})
    result = await db.users.delete_many({"id": {"$in": ids}})
    print(f"Deleted {result.deleted_count} test users")


async def seed(db):
    """Create/update test users"""
    for u in TEST_USERS:
        existing = await db.users.find_one({"username": u["username"]})
        doc = {
            "username": u["username"],
            "password": hash_password(TEST_PASSWORD),
            "name": u["name"],
            "role": u["role"],
            "is_enabled": True,
            "updated_at": now_iso(),
        }
        if existing:
            await db.users.update_one({"username": u["username"]}, {"$set": doc})
            print(f"  Updated: {u['username']} ({u['role']})")
        else:
            doc.update({
                "id": str(uuid.uuid4()),
                "official_number": "",
                "date_of_birth": "",
                "gender": "",
                "created_at": now_iso(),
                "created_by": "seed",
            })
            await db.users.insert_one(doc)
            print(f"  Created: {u['username']} ({u['role']})")


async def main():
    if is_production():
        print("Refusing to seed test users in production")
        sys.exit(1)

    if "--reset" in sys.argv:
        await reset(db)
        print("Reset complete. Run without --reset to re-seed.")
    else:
        await reset(db)
        await seed(db)
        print(f"\n{len(TEST_USERS)} test users seeded. Password for all: {TEST_PASSWORD}")
        print("Reset: python scripts/seed_test_users.py --reset")

    client.close()


if __name__ == "__main__":
    asyncio.run(main())
