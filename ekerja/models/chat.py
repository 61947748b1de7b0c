"""Order-linked conversations. Message content is Fernet ciphertext at rest."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ekerja.models.base import Base, IdMixin, UTCDateTime, utcnow


class ChatConversation(Base, IdMixin):
    __tablename__ = "chat_conversations"

    order_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("orders.id"), unique=True, nullable=True)
    title: Mapped[str] = mapped_column(String(255), default="")


class ChatParticipant(Base, IdMixin):
    __tablename__ = "chat_participants"
    __table_args__ = (UniqueConstraint("conversation_id", "user_id"),)

    conversation_id: Mapped[int] = mapped_column(Integer, ForeignKey("chat_conversations.id"), index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)


class ChatMessage(Base, IdMixin):
    __tablename__ = "chat_messages"

    conversation_id: Mapped[int] = mapped_column(Integer, ForeignKey("chat_conversations.id"), index=True)
    sender_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))
    message_content: Mapped[str] = mapped_column(Text)
    sent_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    read_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
