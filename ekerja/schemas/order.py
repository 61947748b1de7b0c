from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel

from ekerja.models.enums import (
    AttendanceStatus, OrderStatus, PaymentMethod, VerificationStatus,
)


class OrderCreate(BaseModel):
    provider_service_id: int
    scheduled_date: datetime
    job_address: str
    district: str
    sub_district: str
    ward: str
    job_description_notes: str | None = None
    chosen_payment_method: PaymentMethod | None = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    information: str = ""


class OrderCancel(BaseModel):
    reason: str = ""


class AttendanceUpdate(BaseModel):
    status: AttendanceStatus
    arrival_time: datetime | None = None
    notes: str | None = None


class VerificationSubmit(BaseModel):
    status: VerificationStatus
    notes: str | None = None


class OrderRead(BaseModel):
    id: int
    customer_id: int
    provider_id: int
    provider_service_id: int
    status: OrderStatus
    scheduled_date: datetime
    job_address: str
    district: str
    sub_district: str
    ward: str
    job_description_notes: str | None = None
    final_amount: float | None = None
    chosen_payment_method: PaymentMethod | None = None
    provider_attendance_status: AttendanceStatus | None = None
    provider_arrival_time: datetime | None = None
    provider_notes: str | None = None
    customer_verification_status: VerificationStatus | None = None
    customer_verification_notes: str | None = None
    customer_verification_time: datetime | None = None
    information: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrderPage(BaseModel):
    orders: list[OrderRead]
    total: int
    page: int
    limit: int
