"""Order-linked conversations with Fernet-encrypted message bodies.

Plaintext exists only at the two boundaries: ``post_message`` encrypts before
the row is added, ``decrypt_messages`` decrypts for a single response.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.db import crud
from ekerja.models import ChatConversation, ChatMessage, ChatParticipant
from ekerja.models.base import utcnow
from ekerja.models.enums import Role
from ekerja.services.auth import AuthContext
from ekerja.services.encryption import InvalidToken, decrypt_value, encrypt_value
from ekerja.services.errors import Forbidden, InvalidInput, NotFound

logger = logging.getLogger(__name__)

UNREADABLE_SENTINEL = "[message could not be decrypted]"
MAX_MESSAGE_LENGTH = 1000


@dataclass
class PlainMessage:
    id: int
    conversation_id: int
    sender_id: int
    content: str
    sent_at: datetime
    read_at: datetime | None
    decryption_failed: bool = False


def decrypt_messages(messages: list[ChatMessage]) -> list[PlainMessage]:
    """Decrypt each message on its own; an unreadable one yields the sentinel."""
    out = []
    for msg in messages:
        failed = False
        try:
            content = decrypt_value(msg.message_content)
        except (InvalidToken, RuntimeError):
            logger.warning("Chat message %s could not be decrypted", msg.id)
            content, failed = UNREADABLE_SENTINEL, True
        out.append(PlainMessage(
            id=msg.id,
            conversation_id=msg.conversation_id,
            sender_id=msg.sender_id,
            content=content,
            sent_at=msg.sent_at,
            read_at=msg.read_at,
            decryption_failed=failed,
        ))
    return out


async def open_conversation(db: AsyncSession, order_id: int, actor: AuthContext) -> ChatConversation:
    """Return the order's conversation, creating it with both parties on first use."""
    if actor.role == Role.ADMIN:
        raise Forbidden("Admins cannot open order conversations")
    order = await crud.get_order(db, order_id)
    if not order or actor.user_id not in (order.customer_id, order.provider_id):
        raise NotFound("Order not found")

    existing = await crud.get_conversation_for_order(db, order.id)
    if existing:
        return existing

    conversation = ChatConversation(order_id=order.id, title=f"Order #{order.id}")
    db.add(conversation)
    await db.flush()
    for user_id in (order.customer_id, order.provider_id):
        db.add(ChatParticipant(conversation_id=conversation.id, user_id=user_id))
    await db.commit()
    await db.refresh(conversation)
    logger.info("Conversation %s opened for order %s", conversation.id, order.id)
    return conversation


async def _require_participant(db: AsyncSession, conversation_id: int, actor: AuthContext) -> ChatConversation:
    conversation = await crud.get_conversation(db, conversation_id)
    if not conversation:
        raise NotFound("Conversation not found")
    if not await crud.is_participant(db, conversation.id, actor.user_id):
        raise Forbidden("You are not a participant in this conversation")
    return conversation


async def post_message(
    db: AsyncSession, conversation_id: int, actor: AuthContext, content: str, now: datetime | None = None,
) -> PlainMessage:
    text = (content or "").strip()
    if not text:
        raise InvalidInput("Message cannot be empty")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise InvalidInput(f"Message cannot exceed {MAX_MESSAGE_LENGTH} characters")

    conversation = await _require_participant(db, conversation_id, actor)
    message = ChatMessage(
        conversation_id=conversation.id,
        sender_id=actor.user_id,
        message_content=encrypt_value(text),
        sent_at=now or utcnow(),
    )
    db.add(message)
    await db.commit()
    await db.refresh(message)
    return PlainMessage(
        id=message.id,
        conversation_id=message.conversation_id,
        sender_id=message.sender_id,
        content=text,
        sent_at=message.sent_at,
        read_at=None,
    )


async def read_messages(
    db: AsyncSession,
    conversation_id: int,
    actor: AuthContext,
    page: int = 1,
    limit: int = 50,
    now: datetime | None = None,
) -> tuple[list[PlainMessage], int]:
    """Participant read; marks the other side's unread messages on this page as read."""
    conversation = await _require_participant(db, conversation_id, actor)
    page = max(1, page)
    limit = min(100, max(1, limit))
    messages, total = await crud.list_messages(db, conversation.id, offset=(page - 1) * limit, limit=limit)

    now = now or utcnow()
    marked = False
    for msg in messages:
        if msg.sender_id != actor.user_id and msg.read_at is None:
            msg.read_at = now
            marked = True
    if marked:
        await db.commit()
    return decrypt_messages(messages), total


async def list_conversations(db: AsyncSession, actor: AuthContext) -> list[ChatConversation]:
    return await crud.list_conversations_for_user(db, actor.user_id)
