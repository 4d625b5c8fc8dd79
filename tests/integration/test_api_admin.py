"""
Integration tests for admin API endpoints
"""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch
from uuid import uuid4

import pytest

from prizewheel.core.auth import create_access_token
from prizewheel.repos.notification_repo import create_admin_notification
from prizewheel.repos.spin_repo import create_spin
from tests.fixtures.database import (
    audit_logs_for_action,
    create_funded_wallet,
    create_paid_session,
    create_test_prize,
)


async def _manual_spin(session, email="winner@example.com"):
    prize = await create_test_prize(session, "Personal Video Call", weight_vip=1,
                                    fulfillment_type="manual", content="Book a slot", emoji="📞")
    spin = await create_spin(
        session,
        email=email,
        prize_id=prize.id,
        tier="vip",
        amount_paid=Decimal("50.00"),
        token_hash=f"wallet_{uuid4().hex}",
        user_id=uuid4(),
    )
    await session.commit()
    await session.refresh(spin)
    return spin, prize


@pytest.mark.integration
@pytest.mark.asyncio
async def test_admin_routes_reject_players(test_client, auth_headers):
    response = await test_client.get("/api/v1/admin/pending-prizes", headers=auth_headers)

    assert response.status_code == 403
    assert response.json()["detail"] == "Admin access required"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_admin_routes_require_credentials(test_client):
    response = await test_client.get("/api/v1/admin/prizes")
    assert response.status_code == 401


@pytest.mark.integration
@pytest.mark.asyncio
async def test_pending_prizes_and_fulfill(test_client, async_session, admin_headers, email_client):
    """Test the manual fulfillment flow through the API."""
    spin, _ = await _manual_spin(async_session)

    pending = await test_client.get("/api/v1/admin/pending-prizes", headers=admin_headers)
    assert pending.status_code == 200
    assert pending.json()["count"] == 1
    item = pending.json()["prizes"][0]
    assert item["spinId"] == str(spin.id)
    assert item["fulfillmentInstructions"] == "Book a slot"

    response = await test_client.post(
        "/api/v1/admin/fulfill",
        json={"spinId": str(spin.id), "prizeLink": "https://calls.test/slot-1"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert email_client.sent[-1]["to"] == "winner@example.com"

    again = await test_client.post(
        "/api/v1/admin/fulfill",
        json={"spinId": str(spin.id), "prizeLink": "https://calls.test/slot-1"},
        headers=admin_headers,
    )
    assert again.status_code == 409

    after = await test_client.get("/api/v1/admin/pending-prizes", headers=admin_headers)
    assert after.json()["count"] == 0


@pytest.mark.integration
@pytest.mark.asyncio
async def test_fulfill_unknown_spin(test_client, admin_headers):
    response = await test_client.post(
        "/api/v1/admin/fulfill",
        json={"spinId": str(uuid4()), "prizeLink": "https://calls.test/slot-1"},
        headers=admin_headers,
    )
    assert response.status_code == 404


@pytest.mark.integration
@pytest.mark.asyncio
async def test_notifications_list_and_update(test_client, async_session, admin_headers):
    spin, _ = await _manual_spin(async_session)
    notification = await create_admin_notification(
        async_session, spin_id=spin.id, title="Manual prize won", message="Fulfill it"
    )

    listed = await test_client.get("/api/v1/admin/notifications?status=pending", headers=admin_headers)
    assert [n["id"] for n in listed.json()["notifications"]] == [str(notification.id)]

    patched = await test_client.patch(
        f"/api/v1/admin/notifications/{notification.id}",
        json={"status": "dismissed"},
        headers=admin_headers,
    )
    assert patched.status_code == 200
    assert patched.json()["status"] == "dismissed"

    remaining = await test_client.get("/api/v1/admin/notifications?status=pending", headers=admin_headers)
    assert remaining.json()["notifications"] == []


@pytest.mark.integration
@pytest.mark.asyncio
async def test_prize_crud(test_client, admin_headers):
    created = await test_client.post(
        "/api/v1/admin/prizes",
        json={"name": "Mystery Video", "emoji": "🎬", "weight_basic": 5, "weight_gold": 2,
              "weight_vip": 1, "delivery_content": "https://videos.test/m"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    prize = created.json()
    assert prize["type"] == "automatic"
    assert prize["delivery"]["delivery_content"] == "https://videos.test/m"

    updated = await test_client.patch(
        f"/api/v1/admin/prizes/{prize['id']}", json={"active": False}, headers=admin_headers
    )
    assert updated.status_code == 200
    assert updated.json()["active"] is False

    listed = await test_client.get("/api/v1/admin/prizes", headers=admin_headers)
    assert [p["id"] for p in listed.json()["prizes"]] == [prize["id"]]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_prize_without_payload_is_rejected(test_client, admin_headers):
    response = await test_client.post(
        "/api/v1/admin/prizes", json={"name": "Empty", "weight_gold": 3}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["detail"]["problems"] == ["Empty: no delivery content for gold tier"]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_edit_missing_prize(test_client, admin_headers):
    response = await test_client.patch(
        f"/api/v1/admin/prizes/{uuid4()}", json={"active": False}, headers=admin_headers
    )
    assert response.status_code == 404


@pytest.mark.integration
@pytest.mark.asyncio
async def test_catalog_check(test_client, async_session, admin_headers):
    await create_test_prize(async_session, "Everywhere", weight_basic=1, weight_gold=1, weight_vip=1,
                            content="https://videos.test/all")

    response = await test_client.get("/api/v1/admin/catalog/check", headers=admin_headers)

    assert response.json() == {"ok": True, "problems": []}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_set_price_is_audited(test_client, async_session, admin_headers):
    response = await test_client.put(
        "/api/v1/admin/pricing",
        json={"tier": "gold", "price": "27.50", "stripe_price_id": "price_gold_2", "reason": "promo"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["price"] == 27.5
    pricing = await test_client.get("/api/v1/pricing")
    assert {p["tier"]: p["price"] for p in pricing.json()["pricing"]}["gold"] == 27.5
    assert len(await audit_logs_for_action(async_session, "price_updated")) == 1


@pytest.mark.integration
@pytest.mark.asyncio
async def test_set_price_for_unknown_tier(test_client, admin_headers):
    response = await test_client.put(
        "/api/v1/admin/pricing",
        json={"tier": "platinum", "price": "10", "stripe_price_id": "price_x"},
        headers=admin_headers,
    )
    assert response.status_code == 400


class TestRedeliver:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_redelivery_is_queued(self, test_client, async_session, admin_headers):
        prize = await create_test_prize(async_session, "Mystery Video", weight_basic=1,
                                        content="https://videos.test/v1")
        spin = await create_spin(
            async_session,
            email="winner@example.com",
            prize_id=prize.id,
            tier="basic",
            amount_paid=Decimal("15.00"),
            token_hash=f"wallet_{uuid4().hex}",
            user_id=uuid4(),
        )
        await async_session.commit()

        with patch("prizewheel.api.v1.admin.redeliver_prize") as task:
            task.delay.return_value = SimpleNamespace(id="task-1")
            response = await test_client.post(f"/api/v1/admin/spins/{spin.id}/redeliver",
                                              headers=admin_headers)

        assert response.status_code == 202
        assert response.json() == {"queued": True, "spinId": str(spin.id), "taskId": "task-1"}
        task.delay.assert_called_once_with(str(spin.id))
        assert len(await audit_logs_for_action(async_session, "prize_redelivery_queued")) == 1

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_manual_prize_cannot_be_redelivered(self, test_client, async_session, admin_headers):
        spin, _ = await _manual_spin(async_session)

        with patch("prizewheel.api.v1.admin.redeliver_prize") as task:
            response = await test_client.post(f"/api/v1/admin/spins/{spin.id}/redeliver",
                                              headers=admin_headers)

        assert response.status_code == 409
        task.delay.assert_not_called()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unknown_spin(self, test_client, admin_headers):
        response = await test_client.post(f"/api/v1/admin/spins/{uuid4()}/redeliver", headers=admin_headers)
        assert response.status_code == 404


async def _spin(session, prize, email, tier="basic", amount="15.00", user_id=None):
    spin = await create_spin(
        session,
        email=email,
        prize_id=prize.id,
        tier=tier,
        amount_paid=Decimal(amount),
        token_hash=f"wallet_{uuid4().hex}",
        user_id=user_id or uuid4(),
    )
    await session.commit()
    return spin


class TestSpinHistory:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_filters(self, test_client, async_session, admin_headers):
        prize = await create_test_prize(async_session, "Mystery Video", weight_basic=1, weight_vip=1,
                                        content="https://videos.test/m")
        await _spin(async_session, prize, "a@example.com")
        vip = await _spin(async_session, prize, "b@example.com", tier="vip", amount="50.00")

        everything = await test_client.get("/api/v1/admin/spins?days=7", headers=admin_headers)
        by_tier = await test_client.get("/api/v1/admin/spins?tier=vip", headers=admin_headers)
        by_email = await test_client.get("/api/v1/admin/spins?email=a@example.com", headers=admin_headers)
        completed = await test_client.get("/api/v1/admin/spins?status=completed", headers=admin_headers)

        assert len(everything.json()["spins"]) == 2
        assert [s["id"] for s in by_tier.json()["spins"]] == [str(vip.id)]
        assert by_tier.json()["spins"][0]["prize_name"] == "Mystery Video"
        assert [s["email"] for s in by_email.json()["spins"]] == ["a@example.com"]
        assert completed.json()["spins"] == []

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unknown_tier_filter(self, test_client, admin_headers):
        response = await test_client.get("/api/v1/admin/spins?tier=platinum", headers=admin_headers)
        assert response.status_code == 422

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_detail_shows_debit_and_delivery(self, test_client, async_session, test_user,
                                                   auth_headers, admin_headers):
        await create_test_prize(async_session, "Mystery Video", weight_basic=1, content="https://videos.test/m")
        await create_funded_wallet(async_session, test_user.id, Decimal("20.00"))
        await test_client.post("/api/v1/spin", json={"tier": "basic"}, headers=auth_headers)
        spin_id = (await test_client.get("/api/v1/admin/spins", headers=admin_headers)).json()["spins"][0]["id"]

        response = await test_client.get(f"/api/v1/admin/spins/{spin_id}", headers=admin_headers)

        assert response.status_code == 200
        detail = response.json()
        assert detail["spin"]["fulfillment_status"] == "delivered"
        assert detail["prize"]["name"] == "Mystery Video"
        assert [Decimal(d["amount"]) for d in detail["debits"]] == [Decimal("-15")]
        assert [(e["type"], e["status"]) for e in detail["emails"]] == [("prize_delivery", "sent")]
        assert detail["webhooks"] == []

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_detail_of_unknown_spin(self, test_client, admin_headers):
        response = await test_client.get(f"/api/v1/admin/spins/{uuid4()}", headers=admin_headers)
        assert response.status_code == 404

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_spins_of_one_user(self, test_client, async_session, admin_headers):
        prize = await create_test_prize(async_session, "A", weight_basic=1, content="https://videos.test/a")
        user_id = uuid4()
        mine = await _spin(async_session, prize, "a@example.com", user_id=user_id)
        await _spin(async_session, prize, "b@example.com")

        response = await test_client.get(f"/api/v1/admin/users/{user_id}/spins", headers=admin_headers)

        assert [s["id"] for s in response.json()["spins"]] == [str(mine.id)]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_analytics_per_tier(test_client, async_session, admin_headers):
    prize = await create_test_prize(async_session, "A", weight_basic=1, weight_vip=1, content="https://videos.test/a")
    await _spin(async_session, prize, "a@example.com")
    await _spin(async_session, prize, "a@example.com")
    await _spin(async_session, prize, "b@example.com", tier="vip", amount="50.00")

    response = await test_client.get("/api/v1/admin/analytics", headers=admin_headers)
    recent = await test_client.get("/api/v1/admin/analytics?days=7", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["totalSpins"] == 3
    assert data["totalRevenue"] == 80.0
    assert data["tiers"] == {
        "basic": {"spins": 2, "revenue": 30.0},
        "gold": {"spins": 0, "revenue": 0.0},
        "vip": {"spins": 1, "revenue": 50.0},
    }
    assert sum(d["spins"] for d in data["revenueByDate"]) == 3
    assert sum(d["revenue"] for d in data["revenueByDate"]) == 80.0
    assert recent.json()["totalSpins"] == 3


@pytest.mark.integration
@pytest.mark.asyncio
async def test_analytics_without_spins(test_client, admin_headers):
    response = await test_client.get("/api/v1/admin/analytics", headers=admin_headers)

    assert response.json()["totalSpins"] == 0
    assert response.json()["totalRevenue"] == 0.0
    assert response.json()["revenueByDate"] == []


@pytest.mark.integration
@pytest.mark.asyncio
async def test_legacy_transactions(test_client, async_session, admin_headers):
    await create_paid_session(async_session, "cs_basic", tier="basic")
    await create_paid_session(async_session, "cs_vip", tier="vip", email="fan@example.com", amount=Decimal("50.00"))

    listed = await test_client.get("/api/v1/admin/transactions", headers=admin_headers)
    vip = await test_client.get("/api/v1/admin/transactions?tier=vip&status=paid", headers=admin_headers)

    assert sorted(t["stripe_session_id"] for t in listed.json()["transactions"]) == ["cs_basic", "cs_vip"]
    assert [(t["email"], t["amount"]) for t in vip.json()["transactions"]] == [("fan@example.com", "50.00")]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_players_ranked_by_spend(test_client, async_session, admin_headers):
    prize = await create_test_prize(async_session, "A", weight_basic=1, weight_vip=1, content="https://videos.test/a")
    await _spin(async_session, prize, "a@example.com")
    await _spin(async_session, prize, "a@example.com")
    await _spin(async_session, prize, "b@example.com", tier="vip", amount="50.00")

    response = await test_client.get("/api/v1/admin/users", headers=admin_headers)

    users = response.json()["users"]
    assert [(u["email"], u["total_spins"], u["total_spent"]) for u in users] == [
        ("b@example.com", 1, 50.0),
        ("a@example.com", 2, 30.0),
    ]
    assert users[0]["last_spin_at"] is not None


@pytest.mark.integration
@pytest.mark.asyncio
async def test_audit_log_listing(test_client, admin_user, admin_headers):
    await test_client.put(
        "/api/v1/admin/pricing",
        json={"tier": "basic", "price": "12.00", "stripe_price_id": "price_basic_2"},
        headers=admin_headers,
    )

    response = await test_client.get("/api/v1/admin/audit-logs?action=price_updated", headers=admin_headers)
    other_admin = await test_client.get(f"/api/v1/admin/audit-logs?admin_id={uuid4()}", headers=admin_headers)

    logs = response.json()["logs"]
    assert [(log["action"], log["admin_id"]) for log in logs] == [("price_updated", str(admin_user.id))]
    assert logs[0]["details"]["tier"] == "basic"
    assert other_admin.json()["logs"] == []


class TestRoles:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_grant_and_revoke(self, test_client, async_session, admin_user, admin_headers):
        newcomer = uuid4()
        newcomer_headers = {"Authorization": "Bearer " + create_access_token(
            data={"sub": str(newcomer), "email": "newcomer@example.com"})}

        granted = await test_client.post("/api/v1/admin/roles", json={"userId": str(newcomer)},
                                         headers=admin_headers)
        assert granted.status_code == 201
        assert granted.json()["role"] == "admin"

        roles = await test_client.get("/api/v1/admin/roles", headers=admin_headers)
        assert {r["user_id"] for r in roles.json()["roles"]} == {str(admin_user.id), str(newcomer)}
        assert (await test_client.get("/api/v1/admin/prizes", headers=newcomer_headers)).status_code == 200

        revoked = await test_client.delete(f"/api/v1/admin/roles/{newcomer}/admin", headers=admin_headers)
        assert revoked.status_code == 200
        assert (await test_client.get("/api/v1/admin/prizes", headers=newcomer_headers)).status_code == 403

        again = await test_client.delete(f"/api/v1/admin/roles/{newcomer}/admin", headers=admin_headers)
        assert again.status_code == 404

        assert len(await audit_logs_for_action(async_session, "role_granted")) == 1
        assert len(await audit_logs_for_action(async_session, "role_revoked")) == 1

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_granting_twice_keeps_one_row(self, test_client, admin_headers):
        newcomer = str(uuid4())
        await test_client.post("/api/v1/admin/roles", json={"userId": newcomer}, headers=admin_headers)
        await test_client.post("/api/v1/admin/roles", json={"userId": newcomer}, headers=admin_headers)

        roles = await test_client.get("/api/v1/admin/roles", headers=admin_headers)
        assert [r["user_id"] for r in roles.json()["roles"]].count(newcomer) == 1

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_admin_cannot_revoke_self(self, test_client, admin_user, admin_headers):
        response = await test_client.delete(f"/api/v1/admin/roles/{admin_user.id}/admin", headers=admin_headers)

        assert response.status_code == 409
        assert (await test_client.get("/api/v1/admin/roles", headers=admin_headers)).json()["roles"][0]["user_id"] \
            == str(admin_user.id)

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_players_cannot_manage_roles(self, test_client, test_user, auth_headers):
        response = await test_client.post("/api/v1/admin/roles", json={"userId": str(test_user.id)},
                                          headers=auth_headers)
        assert response.status_code == 403
