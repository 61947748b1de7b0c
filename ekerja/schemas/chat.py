from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field


class ConversationOpen(BaseModel):
    order_id: int


class ConversationRead(BaseModel):
    id: int
    order_id: int | None = None
    title: str
    created_at: datetime

    model_config = {"from_attributes": True}


class MessageCreate(BaseModel):
    content: str = Field(min_length=1, max_length=1000)


class MessageRead(BaseModel):
    id: int
    conversation_id: int
    sender_id: int
    content: str
    sent_at: datetime
    read_at: datetime | None = None
    decryption_failed: bool = False

    model_config = {"from_attributes": True}


class MessagePage(BaseModel):
    messages: list[MessageRead]
    total: int
    page: int
    limit: int
