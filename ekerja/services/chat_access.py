"""Time-boxed admin read access to a customer's conversation.

A grant lets exactly one admin decrypt exactly one conversation while
``status == APPROVED and now < expires_at``. Grants come from two paths:

* the customer grants directly (``grant_access``), or
* an admin asks (``request_access``, a PENDING row) and the customer answers
  (``respond_to_request``).

Revocation only moves ``expires_at`` to now. The status flips to EXPIRED
lazily, the first time ``read_transcript`` sees the stale grant, so the read
path is the single place where expiry is enforced.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.config import get_settings
from ekerja.db import crud
from ekerja.models import ChatAdminAccess, ChatConversation
from ekerja.models.base import as_utc, utcnow
from ekerja.models.enums import GrantStatus, Role
from ekerja.services.auth import AuthContext
from ekerja.services.chat import PlainMessage, decrypt_messages
from ekerja.services.errors import (
    Conflict, Expired, Forbidden, InvalidInput, NotFound, PreconditionFailed,
)

logger = logging.getLogger(__name__)


def new_access_token() -> str:
    return secrets.token_hex(32)


def is_live(grant: ChatAdminAccess, now: datetime) -> bool:
    return (
        grant.status == GrantStatus.APPROVED
        and grant.expires_at is not None
        and now < as_utc(grant.expires_at)
    )


def _access_window(access_hours: int | None) -> timedelta:
    settings = get_settings()
    hours = settings.default_access_hours if access_hours is None else access_hours
    if isinstance(hours, bool) or not isinstance(hours, int) or not 1 <= hours <= settings.max_access_hours:
        raise InvalidInput(f"access_hours must be between 1 and {settings.max_access_hours}")
    return timedelta(hours=hours)


async def _customer_conversation(
    db: AsyncSession, conversation_id: int, actor: AuthContext,
) -> ChatConversation:
    if actor.role != Role.CUSTOMER:
        raise Forbidden("Only customers can manage admin access to their conversations")
    conversation = await crud.get_conversation(db, conversation_id)
    if not conversation:
        raise NotFound("Conversation not found")
    if not await crud.is_participant(db, conversation.id, actor.user_id):
        raise Forbidden("You are not a participant in this conversation")
    return conversation


async def _conversation_customer_id(db: AsyncSession, conversation: ChatConversation) -> int:
    if conversation.order_id is None:
        raise PreconditionFailed("Conversation is not linked to an order")
    order = await crud.get_order(db, conversation.order_id)
    if not order:
        raise NotFound("Order not found")
    return order.customer_id


# ── Customer side ─────────────────────────────────────────

async def grant_access(
    db: AsyncSession,
    conversation_id: int,
    actor: AuthContext,
    admin_id: int | None,
    access_hours: int | None = None,
    now: datetime | None = None,
) -> ChatAdminAccess:
    """Grant one admin access; an existing APPROVED grant is updated in place."""
    if admin_id is None:
        raise InvalidInput("admin_id is required when granting access")
    window = _access_window(access_hours)
    now = now or utcnow()

    try:
        conversation = await _customer_conversation(db, conversation_id, actor)
        admin = await crud.get_user(db, admin_id)
        if not admin or admin.role != Role.ADMIN or not admin.is_active:
            raise InvalidInput("admin_id does not refer to an active admin")

        grant = await crud.find_access(db, conversation.id, actor.user_id, GrantStatus.APPROVED)
        if grant is None:
            grant = ChatAdminAccess(
                conversation_id=conversation.id,
                customer_id=actor.user_id,
                status=GrantStatus.APPROVED,
                reason="Granted by customer",
            )
            db.add(grant)
        grant.requested_by_admin = admin.id
        grant.access_token = new_access_token()
        grant.approved_at = now
        grant.expires_at = now + window
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(grant)
    logger.info(
        "Customer %s granted admin %s access to conversation %s until %s",
        actor.user_id, admin.id, conversation.id, grant.expires_at.isoformat(),
    )
    return grant


async def revoke_access(
    db: AsyncSession, conversation_id: int, actor: AuthContext, now: datetime | None = None,
) -> int:
    """Soft-revoke every APPROVED grant on the conversation. Returns how many were cut short."""
    conversation = await _customer_conversation(db, conversation_id, actor)
    now = now or utcnow()
    grants = await crud.list_access_for_customer(db, actor.user_id, GrantStatus.APPROVED)
    revoked = 0
    for grant in grants:
        if grant.conversation_id != conversation.id:
            continue
        if grant.expires_at is None or as_utc(grant.expires_at) > now:
            grant.expires_at = now
            revoked += 1
    await db.commit()
    logger.info("Customer %s revoked %d grant(s) on conversation %s", actor.user_id, revoked, conversation.id)
    return revoked


async def respond_to_request(
    db: AsyncSession,
    access_id: int,
    actor: AuthContext,
    action: str,
    response: str | None = None,
    access_hours: int | None = None,
    now: datetime | None = None,
) -> ChatAdminAccess:
    if action not in ("approve", "reject"):
        raise InvalidInput("Action must be 'approve' or 'reject'")
    if actor.role != Role.CUSTOMER:
        raise Forbidden("Only customers can respond to access requests")
    now = now or utcnow()

    try:
        request = await crud.get_access(db, access_id)
        if not request or request.customer_id != actor.user_id:
            raise NotFound("Access request not found")
        if request.status != GrantStatus.PENDING:
            raise PreconditionFailed("This request has already been answered")

        request.customer_response = (response or "").strip() or None
        if action == "reject":
            request.status = GrantStatus.REJECTED
        else:
            window = _access_window(access_hours)
            # At most one live grant per (conversation, customer)
            for other in await crud.list_access_for_customer(db, actor.user_id, GrantStatus.APPROVED):
                if other.conversation_id == request.conversation_id and is_live(other, now):
                    other.expires_at = now
            request.status = GrantStatus.APPROVED
            request.access_token = new_access_token()
            request.approved_at = now
            request.expires_at = now + window
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(request)
    logger.info("Customer %s answered access request %s: %s", actor.user_id, request.id, request.status.value)
    return request


async def list_requests(
    db: AsyncSession, actor: AuthContext, status: GrantStatus | None = None,
) -> list[ChatAdminAccess]:
    if actor.role != Role.CUSTOMER:
        raise Forbidden("Only customers have access requests")
    return await crud.list_access_for_customer(db, actor.user_id, status)


async def customer_conversations(
    db: AsyncSession, actor: AuthContext, now: datetime | None = None,
) -> list[dict]:
    """The customer's conversations with their current admin accessibility."""
    if actor.role != Role.CUSTOMER:
        raise Forbidden("Only customers can view admin access settings")
    now = now or utcnow()
    grants = await crud.list_access_for_customer(db, actor.user_id, GrantStatus.APPROVED)
    live = {g.conversation_id: g for g in grants if is_live(g, now)}

    rows = []
    for conversation in await crud.list_conversations_for_user(db, actor.user_id):
        grant = live.get(conversation.id)
        rows.append({
            "id": conversation.id,
            "order_id": conversation.order_id,
            "title": conversation.title,
            "isAdminAccessible": grant is not None,
            "accessExpiresAt": grant.expires_at if grant else None,
            "adminId": grant.requested_by_admin if grant else None,
        })
    return rows


# ── Admin side ────────────────────────────────────────────

async def request_access(
    db: AsyncSession, conversation_id: int, actor: AuthContext, reason: str,
) -> ChatAdminAccess:
    if actor.role != Role.ADMIN:
        raise Forbidden("Only admins can request conversation access")
    if not reason or not reason.strip():
        raise InvalidInput("A reason is required")

    conversation = await crud.get_conversation(db, conversation_id)
    if not conversation:
        raise NotFound("Conversation not found")
    customer_id = await _conversation_customer_id(db, conversation)
    if await crud.find_access(db, conversation.id, status=GrantStatus.PENDING):
        raise Conflict("A request for this conversation is already pending")

    request = ChatAdminAccess(
        conversation_id=conversation.id,
        customer_id=customer_id,
        requested_by_admin=actor.user_id,
        status=GrantStatus.PENDING,
        reason=reason.strip(),
    )
    db.add(request)
    await db.commit()
    await db.refresh(request)
    logger.info("Admin %s requested access to conversation %s", actor.user_id, conversation.id)
    return request


async def read_transcript(
    db: AsyncSession,
    conversation_id: int,
    actor: AuthContext,
    access_token: str,
    now: datetime | None = None,
) -> tuple[ChatAdminAccess, list[PlainMessage]]:
    """Decrypt a conversation for the admin holding a live grant.

    Raises ``Forbidden`` when no matching APPROVED grant exists and ``Expired``
    when the grant is past ``expires_at``; the latter flips it to EXPIRED first.
    """
    if actor.role != Role.ADMIN:
        raise Forbidden("Only admins can use chat access tokens")
    if not access_token:
        raise Forbidden("Access token required")
    now = now or utcnow()

    grant = await crud.find_access_by_token(db, conversation_id, actor.user_id, access_token)
    if grant is None or grant.status in (GrantStatus.PENDING, GrantStatus.REJECTED):
        raise Forbidden("No access granted for this conversation")
    if grant.status == GrantStatus.EXPIRED:
        raise Expired("Access to this conversation has expired")
    if not is_live(grant, now):
        grant.status = GrantStatus.EXPIRED
        await db.commit()
        logger.info("Grant %s for conversation %s expired on read", grant.id, conversation_id)
        raise Expired("Access to this conversation has expired")

    messages, _ = await crud.list_messages(db, conversation_id, offset=0, limit=None)
    logger.info("Admin %s read conversation %s under grant %s", actor.user_id, conversation_id, grant.id)
    return grant, decrypt_messages(messages)


async def accessible_for_admin(
    db: AsyncSession, actor: AuthContext, now: datetime | None = None,
) -> list[ChatAdminAccess]:
    if actor.role != Role.ADMIN:
        raise Forbidden("Only admins hold chat access grants")
    return await crud.list_live_access_for_admin(db, actor.user_id, now or utcnow())
