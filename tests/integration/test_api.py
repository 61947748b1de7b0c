"""Integration tests for API endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ekerja.db.engine import get_db
from ekerja.main import app
from ekerja.models import Base, ProviderService, User, UserSession
from ekerja.models.enums import Role
from ekerja.services.auth import _hash_token, hash_password

# Raw bearer tokens for the seeded users
_TOKENS = {
    "customer": "customer-token-abc123",
    "other_customer": "other-customer-token-abc123",
    "provider": "provider-token-abc123",
    "admin": "admin-token-abc123",
    "inactive": "inactive-token-abc123",
}


def auth(name: str) -> dict:
    return {"Authorization": f"Bearer {_TOKENS[name]}"}


@pytest_asyncio.fixture
async def seeded():
    """In-memory database with one user per role and a live session each."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    ids = {}
    async with factory() as db:
        roles = {
            "customer": Role.CUSTOMER,
            "other_customer": Role.CUSTOMER,
            "provider": Role.PROVIDER,
            "admin": Role.ADMIN,
            "inactive": Role.CUSTOMER,
        }
        for name, role in roles.items():
            user = User(
                email=f"{name}@test.id",
                full_name=name.title(),
                password_hash=hash_password("testpass123"),
                role=role,
                is_active=name != "inactive",
            )
            db.add(user)
            await db.flush()
            ids[name] = user.id
            db.add(UserSession(
                user_id=user.id,
                token_hash=_hash_token(_TOKENS[name]),
                expires_at=datetime.now(timezone.utc) + timedelta(hours=2),
            ))
        service = ProviderService(provider_id=ids["provider"], title="Plumbing", price=150.0)
        db.add(service)
        await db.commit()
        ids["service"] = service.id

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield ids
    app.dependency_overrides.clear()
    await engine.dispose()


@pytest_asyncio.fixture
async def client(seeded):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _create_order(client, seeded) -> dict:
    r = await client.post("/api/orders", headers=auth("customer"), json={
        "provider_service_id": seeded["service"],
        "scheduled_date": (datetime.now(timezone.utc) + timedelta(days=2)).isoformat(),
        "job_address": "Jl. Thamrin 10",
        "district": "Menteng",
        "sub_district": "Kebon Sirih",
        "ward": "RW 03",
        "chosen_payment_method": "CASH",
    })
    assert r.status_code == 201, r.text
    return r.json()


async def _complete(client, order_id):
    r = await client.put(f"/api/orders/{order_id}/status", headers=auth("provider"), json={"status": "ACCEPTED"})
    assert r.status_code == 200
    for step in ("ON_THE_WAY", "ARRIVED", "WORKING", "COMPLETED"):
        r = await client.put(f"/api/orders/{order_id}/attendance", headers=auth("provider"), json={"status": step})
        assert r.status_code == 200, r.text
    return r.json()


# ── Auth ──────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_missing_and_invalid_tokens(client):
    r = await client.get("/api/orders")
    assert r.status_code == 401
    assert r.json()["code"] == "unauthenticated"

    r = await client.get("/api/orders", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_inactive_account_rejected(client):
    r = await client.get("/api/auth/me", headers=auth("inactive"))
    assert r.status_code == 401
    assert r.json()["detail"] == "Account is not active"


@pytest.mark.asyncio
async def test_register_login_me(client):
    r = await client.post("/api/auth/register", json={
        "email": "New@Test.id", "password": "longenough", "full_name": "New User", "role": "provider",
    })
    assert r.status_code == 201
    assert r.json()["email"] == "new@test.id"

    r = await client.post("/api/auth/login", json={"email": "new@test.id", "password": "longenough"})
    assert r.status_code == 200
    token = r.json()["token"]

    r = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.json()["role"] == "provider"

    r = await client.post("/api/auth/register", json={
        "email": "x@test.id", "password": "longenough", "full_name": "X", "role": "admin",
    })
    assert r.status_code == 403


# ── Orders ────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_role_gate_on_order_creation(client, seeded):
    r = await client.post("/api/orders", headers=auth("provider"), json={
        "provider_service_id": seeded["service"], "scheduled_date": "2030-01-01T00:00:00Z",
        "job_address": "a", "district": "b", "sub_district": "c", "ward": "d",
    })
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_order_lifecycle_over_http(client, seeded):
    order = await _create_order(client, seeded)
    assert order["status"] == "PENDING_ACCEPTANCE"
    assert order["final_amount"] == 150.0

    r = await client.get(f"/api/orders/{order['id']}", headers=auth("other_customer"))
    assert r.status_code == 404

    r = await client.put(f"/api/orders/{order['id']}/status", headers=auth("provider"),
                         json={"status": "REJECTED_BY_PROVIDER"})
    assert r.status_code == 400

    done = await _complete(client, order["id"])
    assert done["status"] == "COMPLETED"
    assert done["provider_arrival_time"] is not None

    r = await client.post(f"/api/orders/{order['id']}/cancel", headers=auth("customer"), json={})
    assert r.status_code == 412
    assert r.json()["code"] == "precondition_failed"


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.mark.asyncio
async def test_scheduled_date_offset_is_kept_as_utc_instant(client, seeded):
    r = await client.post("/api/orders", headers=auth("customer"), json={
        "provider_service_id": seeded["service"],
        "scheduled_date": "2030-01-01T10:00:00+07:00",
        "job_address": "Jl. Thamrin 10",
        "district": "Menteng",
        "sub_district": "Kebon Sirih",
        "ward": "RW 03",
    })
    assert r.status_code == 201, r.text
    expected = datetime(2030, 1, 1, 3, 0, tzinfo=timezone.utc)
    created = _parse_ts(r.json()["scheduled_date"])
    assert created == expected
    assert created.utcoffset() == timedelta(0)

    r = await client.get(f"/api/orders/{r.json()['id']}", headers=auth("customer"))
    stored = _parse_ts(r.json()["scheduled_date"])
    assert stored == expected
    assert stored.utcoffset() == timedelta(0)


@pytest.mark.asyncio
async def test_admin_override(client, seeded):
    order = await _create_order(client, seeded)
    r = await client.put(f"/api/orders/{order['id']}/status", headers=auth("admin"),
                         json={"status": "DISPUTED", "information": "manual review"})
    assert r.status_code == 200
    assert r.json()["status"] == "DISPUTED"
    assert "Admin override" in r.json()["information"]


@pytest.mark.asyncio
async def test_summary_endpoint(client, seeded):
    order = await _create_order(client, seeded)
    await _complete(client, order["id"])

    r = await client.get("/api/orders/summary", headers=auth("customer"))
    assert r.status_code == 200
    data = r.json()
    assert data["statusSummary"]["COMPLETED"] == 1
    assert data["needsAction"]["needsReview"] == 1
    assert data["recentOrders"][0]["canReview"] is True


# ── Cost ledger ───────────────────────────────────────────

@pytest.mark.asyncio
async def test_cost_negotiation(client, seeded):
    order = await _create_order(client, seeded)
    oid = order["id"]
    await client.put(f"/api/orders/{oid}/status", headers=auth("provider"), json={"status": "ACCEPTED"})

    r = await client.post(f"/api/orders/{oid}/details", headers=auth("provider"),
                          json={"description": "Pipe fitting", "quantity": 2, "price_per_unit": 25})
    assert r.status_code == 201
    detail_id = r.json()["id"]

    r = await client.post(f"/api/orders/{oid}/details", headers=auth("provider"),
                          json={"description": "Bad", "quantity": -1, "price_per_unit": 25})
    assert r.status_code == 400

    r = await client.put(f"/api/orders/{oid}/details/{detail_id}", headers=auth("provider"),
                         json={"status": "APPROVED"})
    assert r.status_code == 403

    r = await client.put(f"/api/orders/{oid}/details/{detail_id}", headers=auth("customer"),
                         json={"status": "APPROVED"})
    assert r.status_code == 200
    assert r.json()["finalAmount"] == 200.0

    r = await client.get(f"/api/orders/{oid}/details", headers=auth("customer"))
    summary = r.json()["summary"]
    assert summary["totalApproved"] == 50.0
    assert summary["basePrice"] == 150.0
    assert summary["finalAmount"] == 200.0


# ── Reviews & moderation ──────────────────────────────────

@pytest.mark.asyncio
async def test_review_report_and_dismiss(client, seeded):
    order = await _create_order(client, seeded)

    r = await client.post("/api/reviews", headers=auth("customer"), json={"order_id": order["id"], "rating": 5})
    assert r.status_code == 412

    await _complete(client, order["id"])
    r = await client.post("/api/reviews", headers=auth("customer"),
                          json={"order_id": order["id"], "rating": 4.5})
    assert r.status_code == 400
    r = await client.post("/api/reviews", headers=auth("customer"),
                          json={"order_id": order["id"], "rating": 5, "comment": "Fast"})
    assert r.status_code == 201
    review_id = r.json()["id"]

    r = await client.post(f"/api/reviews/{review_id}/report", headers=auth("other_customer"),
                          json={"reason": "spam"})
    assert r.status_code == 201
    report_id = r.json()["id"]

    r = await client.get(f"/api/admin/reviews/{review_id}", headers=auth("admin"))
    assert r.json()["is_show"] is False

    r = await client.post(f"/api/reviews/{review_id}/report", headers=auth("other_customer"),
                          json={"reason": "spam again"})
    assert r.status_code == 409

    r = await client.put(f"/api/admin/review-reports/{report_id}", headers=auth("admin"),
                         json={"action": "dismiss"})
    assert r.status_code == 200
    assert r.json()["review"]["is_show"] is True
    assert r.json()["report"]["status"] == "RESOLVED_REVIEW_KEPT"


# ── Chat & admin access ───────────────────────────────────

@pytest.mark.asyncio
async def test_chat_access_capability(client, seeded):
    order = await _create_order(client, seeded)
    r = await client.post("/api/chat/conversations", headers=auth("customer"), json={"order_id": order["id"]})
    conv_id = r.json()["id"]
    r = await client.post(f"/api/chat/conversations/{conv_id}/messages", headers=auth("provider"),
                          json={"content": "On my way"})
    assert r.status_code == 201
    assert r.json()["content"] == "On my way"

    r = await client.get("/api/admin/chat-access/view", headers=auth("admin"),
                         params={"conversation_id": conv_id, "access_token": "f" * 64})
    assert r.status_code == 403

    r = await client.put(f"/api/customer/chat-access/conversations/{conv_id}", headers=auth("customer"),
                         json={"grant_access": True, "admin_id": seeded["admin"], "access_hours": 1})
    assert r.status_code == 200
    assert "access_token" not in r.json()["grant"]

    r = await client.get("/api/admin/chat-access/accessible", headers=auth("admin"))
    token = r.json()[0]["access_token"]

    r = await client.get("/api/admin/chat-access/view", headers=auth("admin"),
                         params={"conversation_id": conv_id, "access_token": token})
    assert r.status_code == 200
    assert r.json()["messages"][0]["content"] == "On my way"

    r = await client.put(f"/api/customer/chat-access/conversations/{conv_id}", headers=auth("customer"),
                         json={"grant_access": False})
    assert r.json()["revoked"] == 1

    r = await client.get("/api/admin/chat-access/view", headers=auth("admin"),
                         params={"conversation_id": conv_id, "access_token": token})
    assert r.status_code == 410
    assert r.json()["code"] == "expired"


@pytest.mark.asyncio
async def test_admin_request_respond(client, seeded):
    order = await _create_order(client, seeded)
    r = await client.post("/api/chat/conversations", headers=auth("customer"), json={"order_id": order["id"]})
    conv_id = r.json()["id"]

    r = await client.post("/api/admin/chat-access/requests", headers=auth("admin"),
                          json={"conversation_id": conv_id, "reason": "Dispute"})
    assert r.status_code == 201
    request_id = r.json()["id"]

    r = await client.get("/api/customer/chat-access/requests", headers=auth("customer"),
                         params={"status": "PENDING"})
    assert [row["id"] for row in r.json()] == [request_id]

    r = await client.post(f"/api/customer/chat-access/requests/{request_id}/respond",
                          headers=auth("other_customer"), json={"action": "approve"})
    assert r.status_code == 404

    r = await client.post(f"/api/customer/chat-access/requests/{request_id}/respond",
                          headers=auth("customer"), json={"action": "approve", "access_hours": 4})
    assert r.status_code == 200
    assert r.json()["status"] == "APPROVED"

    r = await client.get("/api/customer/chat-access/conversations", headers=auth("customer"))
    assert r.json()[0]["isAdminAccessible"] is True
