"""Integration tests for bearer-token auth and the health endpoint."""

import time

import pytest
from jose import jwt
from libs.common.config import get_settings


def _token(secret=None, **claims) -> str:
    settings = get_settings()
    payload = {"sub": "user-jwt", "email": "jwt@example.com", "role": "customer"}
    payload.update(claims)
    return jwt.encode(
        payload, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM
    )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "orders"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_valid_token_is_accepted(client):
    response = await client.get(
        "/orders", headers={"Authorization": f"Bearer {_token()}"}
    )

    assert response.status_code == 200
    assert response.json()["orders"] == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_token_signed_with_other_secret_is_rejected(client):
    response = await client.get(
        "/orders", headers={"Authorization": f"Bearer {_token(secret='nope')}"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_expired_token_is_rejected(client):
    token = _token(exp=int(time.time()) - 60)

    response = await client.get("/orders", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_customer_token_cannot_reach_admin_routes(client):
    response = await client.get(
        "/admin/orders", headers={"Authorization": f"Bearer {_token()}"}
    )

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_token_reaches_admin_routes(client):
    token = _token(sub="admin-jwt", role=get_settings().ADMIN_ROLE)

    response = await client.get(
        "/admin/orders", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 200


@pytest.mark.asyncio
@pytest.mark.integration
async def test_request_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers.get("X-Request-ID") == "req-123"
