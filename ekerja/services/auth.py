"""Authentication service: DB-backed bearer sessions, bcrypt passwords."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta

import bcrypt
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.config import get_settings
from ekerja.models import User, UserSession
from ekerja.models.enums import Role
from ekerja.services.errors import Unauthenticated

BEARER_PREFIX = "Bearer "


@dataclass
class AuthContext:
    user_id: int
    role: Role
    is_active: bool
    email: str = ""
    full_name: str = ""


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def _hash_token(token: str) -> str:
    """SHA-256 hash of a bearer token for DB storage."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def extract_bearer_token(header: str | None) -> str | None:
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    return header[len(BEARER_PREFIX):].strip() or None


async def create_session(user: User, db: AsyncSession) -> str:
    """Create a DB-backed session. Returns the raw token (not the hash)."""
    token = secrets.token_urlsafe(48)
    hours = get_settings().session_max_age_hours
    session = UserSession(
        user_id=user.id,
        token_hash=_hash_token(token),
        expires_at=datetime.now(timezone.utc) + timedelta(hours=hours),
    )
    db.add(session)
    await db.commit()
    return token


async def remove_session(token: str, db: AsyncSession) -> None:
    await db.execute(delete(UserSession).where(UserSession.token_hash == _hash_token(token)))
    await db.commit()


async def resolve_identity(token: str | None, db: AsyncSession) -> AuthContext:
    """Resolve a bearer credential to (user id, role), rejecting inactive accounts."""
    if not token:
        raise Unauthenticated("Authorization token required")

    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == _hash_token(token),
            UserSession.expires_at > datetime.now(timezone.utc),
        )
    )
    session = result.scalars().first()
    if not session:
        raise Unauthenticated("Invalid or expired token")

    user = await db.get(User, session.user_id)
    if not user:
        raise Unauthenticated("Invalid or expired token")
    if not user.is_active:
        raise Unauthenticated("Account is not active")

    return AuthContext(
        user_id=user.id,
        role=user.role,
        is_active=user.is_active,
        email=user.email,
        full_name=user.full_name,
    )
