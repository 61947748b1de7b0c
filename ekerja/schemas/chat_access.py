from __future__ import annotations
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field

from ekerja.models.enums import GrantStatus
from ekerja.schemas.chat import MessageRead


class AccessToggle(BaseModel):
    grant_access: bool
    admin_id: int | None = None
    access_hours: int | None = None


class AccessRequestCreate(BaseModel):
    conversation_id: int
    reason: str = Field(min_length=1, max_length=1000)


class AccessRespond(BaseModel):
    action: Literal["approve", "reject"]
    response: str | None = None
    access_hours: int | None = None


class AccessRead(BaseModel):
    """Grant as the customer sees it; the token is never echoed back to customers."""

    id: int
    conversation_id: int
    customer_id: int
    requested_by_admin: int
    status: GrantStatus
    reason: str
    customer_response: str | None = None
    expires_at: datetime | None = None
    approved_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AdminAccessRead(AccessRead):
    access_token: str | None = None


class CustomerConversationAccess(BaseModel):
    id: int
    order_id: int | None = None
    title: str
    isAdminAccessible: bool
    accessExpiresAt: datetime | None = None
    adminId: int | None = None


class TranscriptRead(BaseModel):
    conversation_id: int
    expires_at: datetime | None = None
    messages: list[MessageRead]
