"""Reviews, reports and moderation.

Reporting a review hides it immediately (``is_show=False, is_reported=True``)
in the same commit that records the report. An admin ruling then either keeps
it hidden (approve) or restores it (dismiss). A dismissal only restores the
review once no other report on it is pending and none was approved.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.config import get_settings
from ekerja.db import crud
from ekerja.models import Order, Review, ReviewReport
from ekerja.models.base import as_utc, utcnow
from ekerja.models.enums import OrderStatus, ReportStatus, Role
from ekerja.services.auth import AuthContext
from ekerja.services.errors import (
    Conflict, Forbidden, InvalidInput, NotFound, PreconditionFailed,
)

logger = logging.getLogger(__name__)

RESOLVE_ACTIONS = {
    "approve": ReportStatus.RESOLVED_REVIEW_REMOVED,
    "dismiss": ReportStatus.RESOLVED_REVIEW_KEPT,
}


def validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise InvalidInput("Rating must be an integer between 1 and 5")
    return rating


# ── Reviews ───────────────────────────────────────────────

async def submit_review(
    db: AsyncSession, order_id: int, actor: AuthContext, rating: int, comment: str | None = None,
) -> Review:
    if actor.role != Role.CUSTOMER:
        raise Forbidden("Only customers can review orders")
    validate_rating(rating)

    order = await crud.get_order(db, order_id)
    if not order or order.customer_id != actor.user_id:
        raise NotFound("Order not found")
    if order.status != OrderStatus.COMPLETED:
        raise PreconditionFailed("Only completed orders can be reviewed")
    if await crud.get_review_for_order(db, order.id):
        raise Conflict("This order has already been reviewed")

    review = Review(
        order_id=order.id,
        customer_id=order.customer_id,
        provider_id=order.provider_id,
        rating=rating,
        comment=(comment or "").strip() or None,
        is_show=True,
        is_reported=False,
    )
    db.add(review)
    await db.commit()
    await db.refresh(review)
    logger.info("Review %s created for order %s", review.id, order.id)
    return review


async def edit_review(
    db: AsyncSession,
    review_id: int,
    actor: AuthContext,
    rating: int | None = None,
    comment: str | None = None,
    now: datetime | None = None,
) -> Review:
    review = await crud.get_review(db, review_id)
    if not review:
        raise NotFound("Review not found")
    if actor.role != Role.CUSTOMER or review.customer_id != actor.user_id:
        raise Forbidden("You can only edit your own reviews")

    window = timedelta(days=get_settings().review_edit_window_days)
    if (now or utcnow()) > as_utc(review.created_at) + window:
        raise PreconditionFailed(
            f"Reviews can only be edited within {window.days} days of creation"
        )

    if rating is not None:
        review.rating = validate_rating(rating)
    if comment is not None:
        review.comment = comment.strip() or None
    await db.commit()
    await db.refresh(review)
    return review


async def get_review(db: AsyncSession, review_id: int, actor: AuthContext) -> Review:
    review = await crud.get_review(db, review_id)
    if not review:
        raise NotFound("Review not found")
    if actor.role == Role.ADMIN or review.customer_id == actor.user_id:
        return review
    if review.is_show:
        return review
    raise NotFound("Review not found")


async def list_reviews_for(
    db: AsyncSession,
    actor: AuthContext,
    provider_id: int | None = None,
    customer_id: int | None = None,
    is_show: bool | None = None,
    min_rating: int | None = None,
    max_rating: int | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Review], int]:
    """Customers see their own reviews, providers visible ones about them, admins all."""
    page = max(1, page)
    limit = min(50, max(1, limit))
    if actor.role == Role.CUSTOMER:
        customer_id = actor.user_id
    elif actor.role == Role.PROVIDER:
        provider_id, is_show = actor.user_id, True
    return await crud.list_reviews(
        db,
        customer_id=customer_id,
        provider_id=provider_id,
        is_show=is_show,
        min_rating=min_rating,
        max_rating=max_rating,
        offset=(page - 1) * limit,
        limit=limit,
    )


async def pending_reviews(db: AsyncSession, actor: AuthContext) -> list[Order]:
    if actor.role != Role.CUSTOMER:
        raise Forbidden("Only customers have pending reviews")
    return await crud.list_reviewable_orders(db, actor.user_id)


# ── Reports ───────────────────────────────────────────────

async def report_review(
    db: AsyncSession, review_id: int, actor: AuthContext, reason: str,
) -> ReviewReport:
    if actor.role == Role.ADMIN:
        raise Forbidden("Admins moderate reviews directly instead of reporting them")
    if not reason or not reason.strip():
        raise InvalidInput("A reason is required to report a review")

    try:
        review = await crud.get_review(db, review_id)
        if not review:
            raise NotFound("Review not found")
        if actor.user_id == review.customer_id:
            raise InvalidInput("You cannot report your own review")
        if actor.user_id == review.provider_id:
            raise InvalidInput("You cannot report a review about yourself")
        if await crud.find_report_by_user(db, review.id, actor.user_id):
            raise Conflict("You have already reported this review")

        report = ReviewReport(
            review_id=review.id,
            reported_by_user_id=actor.user_id,
            reason=reason.strip(),
            status=ReportStatus.PENDING_REVIEW,
        )
        db.add(report)
        review.is_show = False
        review.is_reported = True
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("You have already reported this review")
    except Exception:
        await db.rollback()
        raise

    await db.refresh(report)
    logger.info("Review %s reported by user %s (report %s), hidden pending moderation",
                review_id, actor.user_id, report.id)
    return report


async def resolve_report(
    db: AsyncSession,
    report_id: int,
    actor: AuthContext,
    action: str,
    admin_notes: str | None = None,
    now: datetime | None = None,
) -> tuple[ReviewReport, Review]:
    if actor.role != Role.ADMIN:
        raise Forbidden("Only admins can resolve reports")
    if action not in RESOLVE_ACTIONS:
        raise InvalidInput("Action must be 'approve' or 'dismiss'")
    now = now or utcnow()

    try:
        report = await crud.get_review_report(db, report_id)
        if not report:
            raise NotFound("Report not found")
        if report.status != ReportStatus.PENDING_REVIEW:
            raise PreconditionFailed("This report has already been resolved")
        review = await crud.get_review(db, report.review_id)
        if not review:
            raise NotFound("Review not found")

        report.status = RESOLVE_ACTIONS[action]
        report.resolved_by_admin_id = actor.user_id
        report.resolved_at = now
        report.admin_notes = (admin_notes or "").strip() or None

        # A removal is permanent and any pending report keeps the review hidden
        others = [r for r in await crud.list_reports_for_review(db, review.id) if r.id != report.id]
        still_pending = any(r.status == ReportStatus.PENDING_REVIEW for r in others)
        removed = action == "approve" or any(
            r.status == ReportStatus.RESOLVED_REVIEW_REMOVED for r in others
        )
        review.is_show = not (removed or still_pending)
        if action == "dismiss":
            review.is_reported = still_pending
        review.moderated_at = now
        review.moderated_by = actor.user_id
        if admin_notes:
            review.admin_notes = admin_notes.strip()
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(report)
    await db.refresh(review)
    logger.info("Report %s resolved by admin %s: %s", report.id, actor.user_id, report.status.value)
    return report, review


async def set_visibility(
    db: AsyncSession,
    review_id: int,
    actor: AuthContext,
    is_show: bool,
    admin_notes: str | None = None,
    now: datetime | None = None,
) -> Review:
    """Admin moderation outside the report flow."""
    if actor.role != Role.ADMIN:
        raise Forbidden("Only admins can change review visibility")
    review = await crud.get_review(db, review_id)
    if not review:
        raise NotFound("Review not found")

    review.is_show = is_show
    review.moderated_at = now or utcnow()
    review.moderated_by = actor.user_id
    if admin_notes is not None:
        review.admin_notes = admin_notes.strip() or None
    await db.commit()
    await db.refresh(review)
    logger.info("Review %s visibility set to %s by admin %s", review.id, is_show, actor.user_id)
    return review


async def list_reports(
    db: AsyncSession, status: ReportStatus | None = None, page: int = 1, limit: int = 10,
) -> tuple[list[ReviewReport], int]:
    page = max(1, page)
    limit = min(50, max(1, limit))
    return await crud.list_review_reports(db, status=status, offset=(page - 1) * limit, limit=limit)
