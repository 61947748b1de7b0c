"""Order creation, visibility and direct status requests."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.db import crud
from ekerja.models import Order
from ekerja.models.base import as_utc, utcnow
from ekerja.models.enums import OrderStatus, PaymentMethod, Role
from ekerja.services import order_machine
from ekerja.services.auth import AuthContext
from ekerja.services.errors import Forbidden, InvalidInput, NotFound, PreconditionFailed

logger = logging.getLogger(__name__)


async def create_order(
    db: AsyncSession,
    actor: AuthContext,
    provider_service_id: int,
    scheduled_date: datetime,
    job_address: str,
    district: str,
    sub_district: str,
    ward: str,
    job_description_notes: str | None = None,
    chosen_payment_method: PaymentMethod | None = None,
    now: datetime | None = None,
) -> Order:
    if actor.role != Role.CUSTOMER:
        raise Forbidden("Only customers can place orders")
    now = now or utcnow()
    if as_utc(scheduled_date) <= now:
        raise InvalidInput("Scheduled date must be in the future")
    for name, value in (("job_address", job_address), ("district", district),
                        ("sub_district", sub_district), ("ward", ward)):
        if not value or not value.strip():
            raise InvalidInput(f"Missing required field: {name}")

    service = await crud.get_provider_service(db, provider_service_id)
    if not service:
        raise NotFound("Provider service not found")
    if not service.is_available:
        raise PreconditionFailed("This service is currently not available")
    provider = await crud.get_user(db, service.provider_id)
    if not provider or not provider.is_active:
        raise PreconditionFailed("Provider is currently inactive")

    order = Order(
        customer_id=actor.user_id,
        provider_id=service.provider_id,
        provider_service_id=service.id,
        status=OrderStatus.PENDING_ACCEPTANCE,
        scheduled_date=as_utc(scheduled_date),
        job_address=job_address.strip(),
        district=district.strip(),
        sub_district=sub_district.strip(),
        ward=ward.strip(),
        job_description_notes=(job_description_notes or "").strip() or None,
        chosen_payment_method=chosen_payment_method,
        final_amount=round(service.price, 2),
    )
    db.add(order)
    await db.commit()
    await db.refresh(order)
    logger.info("Order %s created by customer %s for service %s", order.id, actor.user_id, service.id)
    return order


def ensure_visible(order: Order | None, actor: AuthContext) -> Order:
    """Orders are visible to their two parties and to admins; to anyone else they do not exist."""
    if order is None:
        raise NotFound("Order not found")
    if actor.role == Role.ADMIN:
        return order
    if actor.user_id in (order.customer_id, order.provider_id):
        return order
    raise NotFound("Order not found")


async def get_order(db: AsyncSession, order_id: int, actor: AuthContext) -> Order:
    return ensure_visible(await crud.get_order(db, order_id), actor)


async def request_status(
    db: AsyncSession,
    order_id: int,
    actor: AuthContext,
    status: OrderStatus,
    information: str = "",
    now: datetime | None = None,
) -> Order:
    """Provider status change, customer cancellation or admin override."""
    order = await crud.get_order_for_update(db, order_id)
    if not order:
        raise NotFound("Order not found")
    if actor.role == Role.PROVIDER and order.provider_id != actor.user_id:
        raise Forbidden("You can only update orders assigned to you")
    if actor.role == Role.CUSTOMER and order.customer_id != actor.user_id:
        raise Forbidden("You can only cancel your own orders")

    event = order_machine.StatusRequested(to=status, actor=actor.role, note=information or "")
    try:
        order_machine.apply(order, event, actor.user_id, now)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(order)
    return order


async def cancel_order(
    db: AsyncSession, order_id: int, actor: AuthContext, reason: str = "", now: datetime | None = None,
) -> Order:
    return await request_status(db, order_id, actor, OrderStatus.CANCELLED_BY_CUSTOMER, reason, now)


async def list_orders_for(
    db: AsyncSession,
    actor: AuthContext,
    status: OrderStatus | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Order], int]:
    page = max(1, page)
    limit = min(50, max(1, limit))
    filters: dict = {}
    if actor.role == Role.CUSTOMER:
        filters["customer_id"] = actor.user_id
    elif actor.role == Role.PROVIDER:
        filters["provider_id"] = actor.user_id
    return await crud.list_orders(db, status=status, offset=(page - 1) * limit, limit=limit, **filters)


async def status_summary(db: AsyncSession, actor: AuthContext) -> dict:
    """Per-status counts for the caller's orders, plus customer action hints."""
    filters: dict = {}
    if actor.role == Role.CUSTOMER:
        filters["customer_id"] = actor.user_id
    elif actor.role == Role.PROVIDER:
        filters["provider_id"] = actor.user_id
    counts = await crud.count_orders_by_status(db, **filters)
    summary = {s.value: counts.get(s, 0) for s in OrderStatus}

    data: dict = {"statusSummary": summary}
    if actor.role == Role.CUSTOMER:
        reviewable = await crud.list_reviewable_orders(db, actor.user_id)
        data["needsAction"] = {
            "needsReview": len(reviewable),
            "inProgress": summary[OrderStatus.IN_PROGRESS.value],
        }
    return data


def customer_flags(order: Order, has_review: bool) -> dict:
    return {
        "canReview": order.status == OrderStatus.COMPLETED and not has_review,
        "canCancel": order.status in order_machine.CUSTOMER_CANCELLABLE,
        "canDispute": order.status in order_machine.VERIFIABLE,
    }
