"""Shared fixtures: in-memory database, a seeded marketplace, a pinned clock."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from cryptography.fernet import Fernet

# Must be set before ekerja.config is first imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CHAT_ENCRYPTION_KEY"] = Fernet.generate_key().decode()
os.environ["RESEND_API_KEY"] = ""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ekerja.config import get_settings
from ekerja.models import Base, Order, ProviderService, User
from ekerja.models.enums import OrderStatus, Role
from ekerja.services.auth import AuthContext

get_settings.cache_clear()

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
SERVICE_PRICE = 100.0


def ctx(user: User) -> AuthContext:
    return AuthContext(
        user_id=user.id, role=user.role, is_active=user.is_active,
        email=user.email, full_name=user.full_name,
    )


@pytest_asyncio.fixture
async def db():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest_asyncio.fixture
async def world(db):
    """Two customers, two providers, two admins and a 100.00 service.

    Services roll back on failure, which expires every ORM instance in the
    session; tests hold on to plain ids rather than the rows themselves.
    """
    def user(email, role):
        return User(email=email, full_name=email.split("@")[0], password_hash="x", role=role)

    users = {
        "customer": user("cust@test.id", Role.CUSTOMER),
        "other_customer": user("cust2@test.id", Role.CUSTOMER),
        "provider": user("prov@test.id", Role.PROVIDER),
        "other_provider": user("prov2@test.id", Role.PROVIDER),
        "admin": user("admin@test.id", Role.ADMIN),
        "other_admin": user("admin2@test.id", Role.ADMIN),
    }
    db.add_all(users.values())
    await db.flush()

    service = ProviderService(
        provider_id=users["provider"].id, title="AC repair", description="", price=SERVICE_PRICE,
    )
    db.add(service)
    await db.commit()

    return SimpleNamespace(
        service=service,
        service_id=service.id,
        users=users,
        **{name: ctx(u) for name, u in users.items()},
    )


@pytest_asyncio.fixture
async def make_order(db, world):
    """Factory for orders between world.customer and world.provider in a given status."""
    async def _make(status: OrderStatus = OrderStatus.PENDING_ACCEPTANCE) -> Order:
        order = Order(
            customer_id=world.customer.user_id,
            provider_id=world.provider.user_id,
            provider_service_id=world.service_id,
            status=status,
            scheduled_date=T0 + timedelta(days=3),
            job_address="Jl. Merdeka 1",
            district="Menteng",
            sub_district="Gondangdia",
            ward="RW 02",
            final_amount=SERVICE_PRICE,
        )
        db.add(order)
        await db.commit()
        await db.refresh(order)
        return order

    return _make


@pytest.fixture
def t0() -> datetime:
    return T0
