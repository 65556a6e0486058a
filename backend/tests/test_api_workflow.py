"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Matchmaker CRM - End-to-end API workflow                                    ║
║                                                                              ║
║  Agent A registers a lead with a payment request, the super admin accepts    ║
║  it, the lead becomes a paid client visible to A only (and the admin).       ║
║  Disabled accounts are refused on every endpoint.                            ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import pytest

from models.auth import Role

LEAD_WITH_PAYMENT = {
    "name": "Hina Raza",
    "contactNumber": "0300-1234567",
    "email": "hina@example.com",
    "priority": "high",
    "gender": "Female",
    "dateOfBirth": "1995-03-21",
    "presentCity": "Lahore",
    "payment": {
        "packageType": "Gold",
        "paidAmount": "30000",
        "discountAmount": "5000",
        "dueAmount": "15000",
        "totalAmount": "50000",
        "paymentMethod": "Bank Transfer",
    },
}


@pytest.fixture
async def people(make_user, login):
    await make_user("root", role=Role.SUPER_ADMIN)
    await make_user("agent_a")
    await make_user("agent_b", role=Role.MATCHMAKER)
    return {
        "admin": await login("root"),
        "a": await login("agent_a"),
        "b": await login("agent_b"),
    }


class TestPaymentToPaidClient:

    @pytest.mark.asyncio
    async def test_full_workflow(self, api, people):
        # 1. Agent A registers a lead with a payment request
        res = await api.post("/api/traffic", json=LEAD_WITH_PAYMENT, headers=people["a"])
        assert res.status_code == 201, res.text
        lead = res.json()
        payment = lead["payment"]
        assert lead["status"] == "pending"
        assert lead["contact_number"] == "0300-1234567"
        assert payment["status"] == "pending"
        assert payment["paid_amount"] == "30000.00"

        # 2. Nothing is paid yet
        for who in ("a", "b", "admin"):
            res = await api.get("/api/paid-clients", headers=people[who])
            assert res.json()["pagination"]["total"] == 0

        # 3. Agent A cannot accept
        res = await api.post(f"/api/payments/{payment['id']}/accept", headers=people["a"])
        assert res.status_code == 403

        # 4. Super admin sees it in the pending queue
        res = await api.get("/api/payments/pending", headers=people["admin"])
        assert [p["id"] for p in res.json()] == [payment["id"]]
        assert res.json()[0]["traffic_name"] == "Hina Raza"

        # 5. Accept, then a second accept conflicts
        res = await api.post(f"/api/payments/{payment['id']}/accept", headers=people["admin"])
        assert res.status_code == 200, res.text
        assert res.json()["status"] == "accepted"

        res = await api.post(f"/api/payments/{payment['id']}/accept", headers=people["admin"])
        assert res.status_code == 409
        assert "accepted" in res.json()["detail"]

        res = await api.post(f"/api/payments/{payment['id']}/cancel", headers=people["admin"])
        assert res.status_code == 409

        # 6. The lead is now paid and visible as a paid client to A and the admin only
        res = await api.get(f"/api/traffic/{lead['id']}", headers=people["a"])
        assert res.json()["status"] == "paid"

        res = await api.get("/api/paid-clients", headers=people["a"])
        body = res.json()
        assert body["pagination"] == {"page": 1, "page_size": 10, "total": 1, "total_pages": 1}
        assert body["data"][0]["id"] == lead["id"]
        assert body["data"][0]["total_amount"] == "50000.00"

        res = await api.get("/api/paid-clients", headers=people["b"])
        assert res.json()["pagination"]["total"] == 0
        assert res.json()["data"] == []

        res = await api.get("/api/paid-clients", headers=people["admin"])
        assert res.json()["pagination"]["total"] == 1

        # 7. Agent B cannot read the lead itself either
        res = await api.get(f"/api/traffic/{lead['id']}", headers=people["b"])
        assert res.status_code == 403

        # 8. Dashboard numbers follow the same scope
        res = await api.get("/api/dashboard/stats", headers=people["a"])
        assert res.json() == {
            "traffic_count": 1,
            "paid_clients_count": 1,
            "pending_payments_count": 0,
            "total_payments": "30000.00",
        }
        res = await api.get("/api/dashboard/stats", headers=people["b"])
        assert res.json()["paid_clients_count"] == 0
        assert res.json()["total_payments"] == "0.00"

    @pytest.mark.asyncio
    async def test_cancelled_request_never_pays(self, api, people):
        res = await api.post("/api/traffic", json=LEAD_WITH_PAYMENT, headers=people["a"])
        lead = res.json()

        res = await api.post(f"/api/payments/{lead['payment']['id']}/cancel", headers=people["admin"])
        assert res.status_code == 200
        assert res.json()["status"] == "cancelled"

        res = await api.post(f"/api/payments/{lead['payment']['id']}/accept", headers=people["admin"])
        assert res.status_code == 409

        res = await api.get(f"/api/traffic/{lead['id']}", headers=people["a"])
        assert res.json()["status"] == "pending"

    @pytest.mark.asyncio
    async def test_separate_payment_request(self, api, people):
        lead = dict(LEAD_WITH_PAYMENT)
        lead.pop("payment")
        res = await api.post("/api/traffic", json=lead, headers=people["a"])
        traffic = res.json()
        assert traffic["payment"] is None

        body = {**LEAD_WITH_PAYMENT["payment"], "trafficId": traffic["id"]}
        res = await api.post("/api/payments", json=body, headers=people["b"])
        assert res.status_code == 403

        res = await api.post("/api/payments", json=body, headers=people["a"])
        assert res.status_code == 201
        payment_id = res.json()["id"]

        res = await api.get(f"/api/payments/{payment_id}", headers=people["a"])
        assert res.status_code == 200
        res = await api.get(f"/api/payments/{payment_id}", headers=people["b"])
        assert res.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_payment_is_404(self, api, people):
        res = await api.post("/api/payments/nope/accept", headers=people["admin"])
        assert res.status_code == 404
        assert res.json() == {"detail": "Payment request nope not found"}

    @pytest.mark.asyncio
    async def test_reconcile_is_super_admin_only(self, api, people):
        res = await api.post("/api/payments/reconcile", headers=people["a"])
        assert res.status_code == 403

        res = await api.post("/api/payments/reconcile", headers=people["admin"])
        assert res.status_code == 200
        assert res.json() == {"checked": 0, "repaired": 0}

    @pytest.mark.asyncio
    async def test_negative_amount_rejected(self, api, people):
        body = {**LEAD_WITH_PAYMENT, "payment": {**LEAD_WITH_PAYMENT["payment"], "paidAmount": "-1"}}
        res = await api.post("/api/traffic", json=body, headers=people["a"])
        assert res.status_code == 422


class TestPaidClientsEndpoint:

    @pytest.mark.asyncio
    async def test_query_params(self, api, people):
        for name in ("Anum", "Bushra", "Chand"):
            res = await api.post(
                "/api/traffic", json={**LEAD_WITH_PAYMENT, "name": name}, headers=people["a"]
            )
            res = await api.post(
                f"/api/payments/{res.json()['payment']['id']}/accept", headers=people["admin"]
            )
            assert res.status_code == 200

        res = await api.get("/api/paid-clients?page=2&page_size=2", headers=people["a"])
        body = res.json()
        assert len(body["data"]) == 1
        assert body["pagination"]["total_pages"] == 2

        res = await api.get("/api/paid-clients?q=bush", headers=people["a"])
        assert [r["name"] for r in res.json()["data"]] == ["Bushra"]

        res = await api.get("/api/paid-clients?pageSize=1&presentCity=Lahore", headers=people["a"])
        body = res.json()
        assert body["pagination"]["page_size"] == 1
        assert body["pagination"]["total"] == 3

        res = await api.get("/api/paid-clients?birthYear=1994", headers=people["a"])
        assert res.json()["pagination"]["total"] == 0

        res = await api.get("/api/paid-clients?page=0", headers=people["a"])
        assert res.status_code == 422

    @pytest.mark.asyncio
    async def test_edit_is_super_admin_only(self, api, people):
        res = await api.post("/api/traffic", json=LEAD_WITH_PAYMENT, headers=people["a"])
        lead = res.json()
        await api.post(f"/api/payments/{lead['payment']['id']}/accept", headers=people["admin"])

        res = await api.patch(
            f"/api/paid-clients/{lead['id']}", json={"profession": "Pilot"}, headers=people["a"]
        )
        assert res.status_code == 403

        res = await api.patch(
            f"/api/paid-clients/{lead['id']}", json={"profession": "Pilot"}, headers=people["admin"]
        )
        assert res.status_code == 200
        assert res.json()["profession"] == "Pilot"
        assert res.json()["status"] == "paid"


class TestAccessControl:

    @pytest.mark.asyncio
    async def test_unauthenticated_is_401(self, api, mock_db):
        for path in ("/api/auth/me", "/api/traffic", "/api/paid-clients", "/api/dashboard/stats"):
            res = await api.get(path)
            assert res.status_code == 401, path

        res = await api.get("/api/traffic", headers={"Authorization": "Bearer not-a-token"})
        assert res.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_password_is_401(self, api, make_user):
        await make_user("agent_x")
        res = await api.post("/api/auth/login", json={"username": "agent_x", "password": "wrong-one"})
        assert res.status_code == 401
        res = await api.post("/api/auth/login", json={"username": "ghost", "password": "wrong-one"})
        assert res.status_code == 401

    @pytest.mark.asyncio
    async def test_disabled_account_refused_everywhere(self, api, mock_db, make_user, login):
        admin = await make_user("root_disabled", role=Role.SUPER_ADMIN)
        headers = await login("root_disabled")
        await mock_db.users.update_one({"id": admin["id"]}, {"$set": {"is_enabled": False}})

        calls = [
            ("get", "/api/auth/me", None),
            ("get", "/api/traffic", None),
            ("post", "/api/traffic", LEAD_WITH_PAYMENT),
            ("get", "/api/payments/pending", None),
            ("post", "/api/payments/reconcile", None),
            ("post", "/api/payments/any/accept", None),
            ("get", "/api/paid-clients", None),
            ("get", "/api/accounts", None),
            ("get", "/api/settings", None),
            ("post", "/api/settings", {"category": "gender", "value": "Female"}),
            ("get", "/api/dashboard/stats", None),
            ("get", "/api/auth/activity-logs", None),
        ]
        for method, path, body in calls:
            res = await api.request(method.upper(), path, json=body, headers=headers)
            assert res.status_code == 403, f"{method} {path}: {res.status_code}"
            assert res.json() == {"detail": "account disabled"}

        res = await api.post(
            "/api/auth/login", json={"username": "root_disabled", "password": "Test-Pass-2026"}
        )
        assert res.status_code == 403

    @pytest.mark.asyncio
    async def test_root_banner(self, api):
        res = await api.get("/")
        assert res.json()["status"] == "running"
