from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ekerja.models.base import Base, IdMixin, UTCDateTime, status_column_type
from ekerja.models.enums import ReportStatus


class Review(Base, IdMixin):
    __tablename__ = "reviews"

    order_id: Mapped[int] = mapped_column(Integer, ForeignKey("orders.id"), unique=True)
    customer_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    provider_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    rating: Mapped[int] = mapped_column(Integer)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_show: Mapped[bool] = mapped_column(Boolean, default=True)
    is_reported: Mapped[bool] = mapped_column(Boolean, default=False)
    moderated_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    moderated_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class ReviewReport(Base, IdMixin):
    __tablename__ = "review_reports"
    # Resolved reports still count, so re-reporting is a conflict forever
    __table_args__ = (UniqueConstraint("review_id", "reported_by_user_id"),)

    review_id: Mapped[int] = mapped_column(Integer, ForeignKey("reviews.id"), index=True)
    reported_by_user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))
    reason: Mapped[str] = mapped_column(Text)
    status: Mapped[ReportStatus] = mapped_column(
        status_column_type(ReportStatus), default=ReportStatus.PENDING_REVIEW, index=True,
    )
    resolved_by_admin_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
