"""
Integration tests for spin, wallet, payment and pricing API endpoints
"""

from decimal import Decimal
from datetime import timedelta
from unittest.mock import patch

import pytest

from prizewheel.core.auth import create_access_token
from prizewheel.services.spin_token import sign_token
from tests.fixtures.database import (
    assert_wallet_balance,
    create_funded_wallet,
    create_paid_session,
    create_test_prize,
    spins_for_email,
)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_spin_endpoint(test_client, async_session, test_user, auth_headers):
    """Test POST /api/v1/spin endpoint."""
    prize = await create_test_prize(async_session, "Mystery Video", weight_basic=1,
                                    content="https://videos.test/a", emoji="🎬")
    await create_funded_wallet(async_session, test_user.id, Decimal("20.00"))

    response = await test_client.post("/api/v1/spin", json={"tier": "basic"}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["newBalance"] == 5.0
    assert data["prize"] == {
        "id": str(prize.id),
        "name": "Mystery Video",
        "emoji": "🎬",
        "type": "automatic",
        "delivery_content": "https://videos.test/a",
    }
    await assert_wallet_balance(async_session, test_user.id, Decimal("5.00"))


@pytest.mark.integration
@pytest.mark.asyncio
async def test_spin_insufficient_balance(test_client, async_session, test_user, auth_headers):
    await create_test_prize(async_session, "A", weight_gold=1, content="GOLD-CODE-1")
    await create_funded_wallet(async_session, test_user.id, Decimal("10.00"))

    response = await test_client.post("/api/v1/spin", json={"tier": "gold"}, headers=auth_headers)

    assert response.status_code == 403
    assert response.json() == {"error": "Insufficient balance", "balance": 10.0, "required": 30.0}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_spin_invalid_tier(test_client, auth_headers):
    response = await test_client.post("/api/v1/spin", json={"tier": "platinum"}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid tier"}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_spin_without_prizes(test_client, async_session, test_user, auth_headers):
    await create_funded_wallet(async_session, test_user.id, Decimal("50.00"))

    response = await test_client.post("/api/v1/spin", json={"tier": "vip"}, headers=auth_headers)

    assert response.status_code == 503
    assert response.json() == {"error": "No prizes available"}
    await assert_wallet_balance(async_session, test_user.id, Decimal("50.00"))


@pytest.mark.integration
@pytest.mark.asyncio
async def test_spin_requires_authentication(test_client):
    response = await test_client.post("/api/v1/spin", json={"tier": "basic"})

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.integration
@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"tier": None}, {"tier": 5}, {"tier": ["basic"]}])
async def test_spin_with_missing_or_non_string_tier(test_client, auth_headers, body):
    response = await test_client.post("/api/v1/spin", json=body, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid tier"}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_spin_with_malformed_body(test_client, auth_headers):
    response = await test_client.post("/api/v1/spin", content=b"not json",
                                      headers={**auth_headers, "Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request"}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_spin_unexpected_failure(test_client, async_session, test_user, auth_headers):
    await create_funded_wallet(async_session, test_user.id, Decimal("20.00"))

    with patch("prizewheel.api.v1.spin.spin_with_wallet", side_effect=RuntimeError("db gone")):
        response = await test_client.post("/api/v1/spin", json={"tier": "basic"}, headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"error": "Spin failed, please try again"}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_spin_rejects_expired_credential(test_client, test_user):
    token = create_access_token(data={"sub": str(test_user.id), "email": test_user.email},
                                expires_delta=timedelta(minutes=-5))

    response = await test_client.post("/api/v1/spin", json={"tier": "basic"},
                                      headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


@pytest.mark.integration
@pytest.mark.asyncio
async def test_spin_rejects_credential_without_email(test_client, test_user):
    token = create_access_token(data={"sub": str(test_user.id)})

    response = await test_client.post("/api/v1/spin", json={"tier": "basic"},
                                      headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


@pytest.mark.integration
@pytest.mark.asyncio
async def test_token_spin_endpoint(test_client, async_session):
    """Test POST /api/v1/spin/token endpoint."""
    await create_test_prize(async_session, "A", weight_vip=1, content="VIP-CODE-01")
    await create_paid_session(async_session, "cs_vip", tier="vip", email="fan@example.com", amount=Decimal("50.00"))
    token = sign_token("cs_vip", "vip")

    first = await test_client.post("/api/v1/spin/token", json={"token": token, "tier": "vip"})
    second = await test_client.post("/api/v1/spin/token", json={"token": token, "tier": "vip"})

    assert first.status_code == 200
    assert first.json()["prize"]["delivery_content"] == "VIP-CODE-01"
    assert "newBalance" not in first.json()
    assert second.status_code == 403
    assert second.json() == {"error": "Token already used"}
    assert len(await spins_for_email(async_session, "fan@example.com")) == 1


@pytest.mark.integration
@pytest.mark.asyncio
async def test_token_spin_with_garbage_token(test_client):
    response = await test_client.post("/api/v1/spin/token", json={"token": "nope", "tier": "basic"})

    assert response.status_code == 403
    assert response.json() == {"error": "Invalid token format"}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_token_spin_with_non_string_fields(test_client):
    no_tier = await test_client.post("/api/v1/spin/token", json={"token": "a:b:c:d"})
    numeric_token = await test_client.post("/api/v1/spin/token", json={"token": 42, "tier": "basic"})

    assert no_tier.status_code == 400
    assert no_tier.json() == {"error": "Invalid tier"}
    assert numeric_token.status_code == 403
    assert numeric_token.json() == {"error": "Invalid token format"}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_spin_history_lists_own_spins(test_client, async_session, test_user, auth_headers):
    await create_test_prize(async_session, "A", weight_basic=1, content="https://videos.test/a")
    await create_funded_wallet(async_session, test_user.id, Decimal("30.00"))
    await test_client.post("/api/v1/spin", json={"tier": "basic"}, headers=auth_headers)
    await test_client.post("/api/v1/spin", json={"tier": "basic"}, headers=auth_headers)

    response = await test_client.get("/api/v1/spin/history?limit=1", headers=auth_headers)
    anonymous = await test_client.get("/api/v1/spin/history")

    assert response.status_code == 200
    assert len(response.json()["spins"]) == 1
    assert response.json()["spins"][0]["user_id"] == str(test_user.id)
    assert anonymous.status_code == 401
    assert anonymous.json() == {"error": "Not authenticated"}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_wallet_endpoint_creates_empty_wallet(test_client, auth_headers):
    """Test GET /api/v1/wallet endpoint."""
    response = await test_client.get("/api/v1/wallet/", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["balance"]) == Decimal("0")
    assert data["currency"] == "USD"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_wallet_transactions_endpoint(test_client, async_session, test_user, auth_headers):
    await create_test_prize(async_session, "A", weight_basic=1, content="https://videos.test/a")
    await create_funded_wallet(async_session, test_user.id, Decimal("15.00"))
    await test_client.post("/api/v1/spin", json={"tier": "basic"}, headers=auth_headers)

    response = await test_client.get("/api/v1/wallet/transactions", headers=auth_headers)

    assert response.status_code == 200
    entries = response.json()["transactions"]
    assert sorted(e["type"] for e in entries) == ["credit", "debit"]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_verify_topup_endpoint(test_client, async_session, payment_gateway, test_user):
    """Test POST /api/v1/payments/verify endpoint."""
    payment_gateway.add_session("cs_topup", amount_total=2000, type="wallet_topup", user_id=test_user.id)

    first = await test_client.post("/api/v1/payments/verify", json={"sessionId": "cs_topup"})
    second = await test_client.post("/api/v1/payments/verify", json={"sessionId": "cs_topup"})

    assert first.status_code == 200
    assert first.json()["credited"] is True
    assert second.json()["credited"] is False
    await assert_wallet_balance(async_session, test_user.id, Decimal("20.00"))


@pytest.mark.integration
@pytest.mark.asyncio
async def test_verify_unpaid_session(test_client, payment_gateway):
    payment_gateway.add_session("cs_unpaid", amount_total=1500, payment_status="unpaid")

    response = await test_client.post("/api/v1/payments/verify", json={"sessionId": "cs_unpaid"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Payment not completed"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_pricing_endpoint(test_client):
    response = await test_client.get("/api/v1/pricing")

    assert response.status_code == 200
    data = response.json()
    assert data["currency"] == "USD"
    assert {p["tier"]: p["price"] for p in data["pricing"]} == {"basic": 15.0, "gold": 30.0, "vip": 50.0}
