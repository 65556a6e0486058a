"""
Matchmaker CRM - shared test fixtures

Every module that did `from config import db` gets its `db` swapped for an
in-memory mongomock-motor database, so services and routes run unchanged.
"""

import sys
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

import config
import scheduler_service  # noqa: F401
import server
from models.auth import Actor, Role
from services.credentials import hash_password

TEST_PASSWORD = "Test-Pass-2026"

# scrypt is slow on purpose: hash once, reuse for every seeded user
_TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture
def mock_db(monkeypatch):
    database = AsyncMongoMockClient()["matchmaker_test"]
    original = config.db
    for module in list(sys.modules.values()):
        namespace = getattr(module, "__dict__", None)
        if namespace is not None and namespace.get("db") is original:
            monkeypatch.setattr(module, "db", database)
    return database


@pytest.fixture
def make_user(mock_db):
    async def _make(username=None, role=Role.CRO_AGENT, is_enabled=True, password=None, **extra):
        user = {
            "id": str(uuid.uuid4()),
            "username": username or f"user_{uuid.uuid4().hex[:8]}",
            "password": hash_password(password) if password else _TEST_PASSWORD_HASH,
            "role": Role(role).value,
            "is_enabled": is_enabled,
            "name": extra.pop("name", "Test User"),
            "official_number": "",
            "date_of_birth": "",
            "gender": "",
            "created_at": config.now_iso(),
            "created_by": "tests",
            **extra,
        }
        await mock_db.users.insert_one(user)
        user.pop("_id", None)
        user.pop("password", None)
        return user
    return _make


@pytest.fixture
def actor_for():
    def _actor(user: dict) -> Actor:
        return Actor.from_user(user)
    return _actor


@pytest.fixture
def make_traffic(mock_db):
    async def _make(owner: dict, **fields):
        now = config.now_iso()
        traffic = {
            "id": str(uuid.uuid4()),
            "name": "Lead",
            "contact_number": "0300-0000000",
            "email": "lead@example.com",
            "priority": "medium",
            "status": "pending",
            "candidate_pictures": [],
            "assigned_by": owner["id"],
            "created_by": owner["id"],
            "created_at": now,
            "updated_at": now,
            **fields,
        }
        await mock_db.traffic.insert_one(traffic)
        traffic.pop("_id", None)
        return traffic
    return _make


@pytest.fixture
def make_payment(mock_db):
    async def _make(traffic: dict, status="accepted", created_at=None, paid_amount="1000.00", **fields):
        payment = {
            "id": str(uuid.uuid4()),
            "traffic_id": traffic["id"],
            "package_type": "Gold",
            "paid_amount": paid_amount,
            "discount_amount": "0.00",
            "due_amount": "0.00",
            "total_amount": paid_amount,
            "payment_method": "Cash",
            "after_marriage_fee": None,
            "status": status,
            "created_by": traffic["created_by"],
            "created_at": created_at or config.now_iso(),
            **fields,
        }
        await mock_db.payments.insert_one(payment)
        payment.pop("_id", None)
        if status == "accepted":
            await mock_db.traffic.update_one({"id": traffic["id"]}, {"$set": {"status": "paid"}})
        return payment
    return _make


@pytest_asyncio.fixture
async def api(mock_db):
    transport = ASGITransport(app=server.app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def login(api):
    async def _login(username: str, password: str = TEST_PASSWORD) -> dict:
        res = await api.post("/api/auth/login", json={"username": username, "password": password})
        assert res.status_code == 200, f"Login failed for {username}: {res.text}"
        return {"Authorization": f"Bearer {res.json()['token']}"}
    return _login
