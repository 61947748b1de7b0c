"""Order and its negotiated cost lines."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ekerja.models.base import Base, IdMixin, UTCDateTime, status_column_type
from ekerja.models.enums import (
    AttendanceStatus, DetailStatus, OrderStatus, PaymentMethod, VerificationStatus,
)


class Order(Base, IdMixin):
    __tablename__ = "orders"

    customer_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    provider_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    provider_service_id: Mapped[int] = mapped_column(Integer, ForeignKey("provider_services.id"))
    status: Mapped[OrderStatus] = mapped_column(
        status_column_type(OrderStatus), default=OrderStatus.PENDING_ACCEPTANCE, index=True,
    )
    scheduled_date: Mapped[datetime] = mapped_column(UTCDateTime())
    job_address: Mapped[str] = mapped_column(String(500))
    district: Mapped[str] = mapped_column(String(100))
    sub_district: Mapped[str] = mapped_column(String(100))
    ward: Mapped[str] = mapped_column(String(100))
    job_description_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    final_amount: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    chosen_payment_method: Mapped[PaymentMethod | None] = mapped_column(
        status_column_type(PaymentMethod), nullable=True,
    )

    provider_attendance_status: Mapped[AttendanceStatus | None] = mapped_column(
        status_column_type(AttendanceStatus), nullable=True,
    )
    provider_arrival_time: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    provider_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    customer_verification_status: Mapped[VerificationStatus | None] = mapped_column(
        status_column_type(VerificationStatus), nullable=True,
    )
    customer_verification_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    customer_verification_time: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Append-only audit trail, one line per entry
    information: Mapped[str | None] = mapped_column(Text, nullable=True)


class OrderDetail(Base, IdMixin):
    __tablename__ = "order_details"

    order_id: Mapped[int] = mapped_column(Integer, ForeignKey("orders.id"), index=True)
    description: Mapped[str] = mapped_column(String(500))
    quantity: Mapped[int] = mapped_column(Integer)
    price_per_unit: Mapped[float] = mapped_column(Float)
    status: Mapped[DetailStatus] = mapped_column(
        status_column_type(DetailStatus), default=DetailStatus.PROPOSED,
    )
    added_by_user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))
