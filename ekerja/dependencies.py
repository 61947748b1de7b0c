"""FastAPI dependency providers for auth, DB sessions, and role enforcement."""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.db.engine import get_db
from ekerja.models.enums import Role
from ekerja.services.auth import AuthContext, extract_bearer_token, resolve_identity
from ekerja.services.errors import Forbidden

__all__ = ["get_db", "require_auth", "require_role"]


async def require_auth(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Require a valid bearer session for an active user."""
    token = extract_bearer_token(request.headers.get("Authorization"))
    return await resolve_identity(token, db)


def require_role(*allowed_roles: Role):
    """Factory: returns a dependency that enforces role membership."""
    async def _check(auth: AuthContext = Depends(require_auth)) -> AuthContext:
        if auth.role not in allowed_roles:
            raise Forbidden("Insufficient permissions")
        return auth
    return _check
