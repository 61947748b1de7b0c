"""Customer-issued, time-boxed grants letting one admin read one conversation."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ekerja.models.base import Base, IdMixin, UTCDateTime, status_column_type
from ekerja.models.enums import GrantStatus


class ChatAdminAccess(Base, IdMixin):
    __tablename__ = "chat_admin_access"

    conversation_id: Mapped[int] = mapped_column(Integer, ForeignKey("chat_conversations.id"), index=True)
    customer_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    requested_by_admin: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    status: Mapped[GrantStatus] = mapped_column(status_column_type(GrantStatus), index=True)
    access_token: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True, index=True)
    reason: Mapped[str] = mapped_column(Text, default="")
    customer_response: Mapped[str | None] = mapped_column(Text, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
