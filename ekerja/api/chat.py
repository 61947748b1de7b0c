"""Chat API for an order's customer and provider."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.dependencies import get_db, require_role
from ekerja.models.enums import Role
from ekerja.schemas import ConversationOpen, ConversationRead, MessageCreate, MessagePage, MessageRead
from ekerja.services import chat
from ekerja.services.auth import AuthContext

router = APIRouter(prefix="/api/chat", tags=["chat"])

_party_dep = require_role(Role.CUSTOMER, Role.PROVIDER)


@router.post("/conversations", response_model=ConversationRead)
async def open_conversation(
    body: ConversationOpen,
    auth: AuthContext = Depends(_party_dep),
    db: AsyncSession = Depends(get_db),
):
    return ConversationRead.model_validate(await chat.open_conversation(db, body.order_id, auth))


@router.get("/conversations", response_model=list[ConversationRead])
async def list_conversations(
    auth: AuthContext = Depends(_party_dep),
    db: AsyncSession = Depends(get_db),
):
    return [ConversationRead.model_validate(c) for c in await chat.list_conversations(db, auth)]


@router.post("/conversations/{conversation_id}/messages", status_code=201, response_model=MessageRead)
async def post_message(
    conversation_id: int,
    body: MessageCreate,
    auth: AuthContext = Depends(_party_dep),
    db: AsyncSession = Depends(get_db),
):
    msg = await chat.post_message(db, conversation_id, auth, body.content)
    return MessageRead.model_validate(msg)


@router.get("/conversations/{conversation_id}/messages", response_model=MessagePage)
async def read_messages(
    conversation_id: int,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
    auth: AuthContext = Depends(_party_dep),
    db: AsyncSession = Depends(get_db),
):
    messages, total = await chat.read_messages(db, conversation_id, auth, page=page, limit=limit)
    return MessagePage(
        messages=[MessageRead.model_validate(m) for m in messages],
        total=total, page=page, limit=limit,
    )
