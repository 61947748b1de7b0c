"""Auth API: register, login, logout, current user."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.db import crud
from ekerja.dependencies import get_db, require_auth
from ekerja.models.enums import Role
from ekerja.schemas import LoginRequest, LoginResponse, RegisterRequest, UserRead
from ekerja.services.auth import (
    AuthContext, create_session, extract_bearer_token, hash_password,
    remove_session, verify_password,
)
from ekerja.services.errors import Conflict, Forbidden, Unauthenticated

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=201, response_model=UserRead)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    if body.role == Role.ADMIN:
        raise Forbidden("Admin accounts are created from the command line")
    email = body.email.strip().lower()
    if await crud.get_user_by_email(db, email):
        raise Conflict("An account with this email already exists")
    user = await crud.create_user(
        db, email=email, password_hash=hash_password(body.password), role=body.role,
        full_name=body.full_name.strip(), phone_number=body.phone_number.strip(),
    )
    return UserRead.model_validate(user)


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await crud.get_user_by_email(db, body.email.strip().lower())
    if not user or not verify_password(body.password, user.password_hash):
        raise Unauthenticated("Invalid credentials")
    if not user.is_active:
        raise Unauthenticated("Account is not active")

    token = await create_session(user, db)
    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(user)
    return LoginResponse(token=token, user=UserRead.model_validate(user))


@router.post("/logout")
async def logout(
    request: Request,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    token = extract_bearer_token(request.headers.get("Authorization"))
    await remove_session(token, db)
    return {"ok": True}


@router.get("/me", response_model=UserRead)
async def me(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return UserRead.model_validate(await crud.get_user(db, auth.user_id))
