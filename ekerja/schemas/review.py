from __future__ import annotations
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field

from ekerja.models.enums import ReportStatus


class ReviewCreate(BaseModel):
    order_id: int
    rating: int | float
    comment: str | None = Field(default=None, max_length=2000)


class ReviewUpdate(BaseModel):
    rating: int | float | None = None
    comment: str | None = Field(default=None, max_length=2000)


class ReviewRead(BaseModel):
    id: int
    order_id: int
    customer_id: int
    provider_id: int
    rating: int
    comment: str | None = None
    is_show: bool
    is_reported: bool
    moderated_at: datetime | None = None
    moderated_by: int | None = None
    admin_notes: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReviewVisibilityUpdate(BaseModel):
    is_show: bool
    admin_notes: str | None = None


class ReportCreate(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)


class ReportResolve(BaseModel):
    action: Literal["approve", "dismiss"]
    admin_notes: str | None = None


class ReportRead(BaseModel):
    id: int
    review_id: int
    reported_by_user_id: int
    reason: str
    status: ReportStatus
    resolved_by_admin_id: int | None = None
    resolved_at: datetime | None = None
    admin_notes: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
