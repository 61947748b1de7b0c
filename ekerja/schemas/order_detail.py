from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field

from ekerja.models.enums import DetailStatus


class OrderDetailCreate(BaseModel):
    description: str = Field(min_length=1, max_length=500)
    quantity: int | float
    price_per_unit: float


class OrderDetailDecision(BaseModel):
    status: DetailStatus


class OrderDetailRead(BaseModel):
    id: int
    order_id: int
    description: str
    quantity: int
    price_per_unit: float
    status: DetailStatus
    added_by_user_id: int
    created_at: datetime

    model_config = {"from_attributes": True}


class LedgerSummary(BaseModel):
    totalItems: int
    totalApproved: float
    totalProposed: float
    grandTotal: float
    basePrice: float
    finalAmount: float | None = None


class OrderLedgerRead(BaseModel):
    details: list[OrderDetailRead]
    summary: LedgerSummary
