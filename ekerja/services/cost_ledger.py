"""Cost ledger: additive line items negotiated on an order.

The payable amount is always derived, never edited directly::

    final_amount = base_price + sum(quantity * price_per_unit for APPROVED details)

``decide_cost`` writes the line item and the recomputed total in one
transaction. The total is re-read from the approved rows inside that
transaction, so a concurrent decision cannot leave a stale base behind.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.db import crud
from ekerja.models import Order, OrderDetail
from ekerja.models.enums import DetailStatus, Role
from ekerja.services.auth import AuthContext
from ekerja.services.errors import Forbidden, InvalidInput, NotFound, PreconditionFailed
from ekerja.services.order_machine import ACTIVE_STATUSES

logger = logging.getLogger(__name__)

DELETABLE_DETAIL_STATUSES = frozenset({DetailStatus.PROPOSED, DetailStatus.REJECTED})


def line_total(detail: OrderDetail) -> float:
    return detail.quantity * detail.price_per_unit


def compute_final_amount(base_price: float, details: list[OrderDetail]) -> float:
    """Pure recomputation; only APPROVED lines count."""
    extra = sum(line_total(d) for d in details if d.status == DetailStatus.APPROVED)
    return round(base_price + extra, 2)


async def _base_price(db: AsyncSession, order: Order) -> float:
    service = await crud.get_provider_service(db, order.provider_service_id)
    if not service:
        raise NotFound("Provider service not found")
    return service.price


async def recompute_final_amount(db: AsyncSession, order: Order) -> float:
    """Re-read approved details and write ``order.final_amount``. Does not commit."""
    await db.flush()
    approved = await crud.list_approved_details(db, order.id)
    order.final_amount = compute_final_amount(await _base_price(db, order), approved)
    return order.final_amount


def _require_party(order: Order, actor: AuthContext) -> None:
    if actor.role == Role.CUSTOMER and order.customer_id == actor.user_id:
        return
    if actor.role == Role.PROVIDER and order.provider_id == actor.user_id:
        return
    raise Forbidden("Only the order's customer or provider can change its cost items")


def _require_active(order: Order, action: str) -> None:
    if order.status not in ACTIVE_STATUSES:
        raise PreconditionFailed(
            f"Cannot {action}. Order must be pending acceptance, accepted, or in progress"
        )


async def _load_detail(db: AsyncSession, order_id: int, detail_id: int) -> tuple[Order, OrderDetail]:
    order = await crud.get_order_for_update(db, order_id)
    if not order:
        raise NotFound("Order not found")
    detail = await crud.get_order_detail(db, detail_id)
    if not detail or detail.order_id != order.id:
        raise NotFound("Order detail not found for this order")
    return order, detail


async def propose_cost(
    db: AsyncSession,
    order_id: int,
    actor: AuthContext,
    description: str,
    quantity: int,
    price_per_unit: float,
) -> OrderDetail:
    if not description or not description.strip():
        raise InvalidInput("Description is required")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidInput("Quantity must be a positive integer")
    if price_per_unit is None or price_per_unit < 0:
        raise InvalidInput("pricePerUnit must be non-negative")

    order = await crud.get_order(db, order_id)
    if not order:
        raise NotFound("Order not found")
    _require_party(order, actor)
    if order.status not in ACTIVE_STATUSES:
        raise Forbidden(
            "Cannot add order details. Order status must be pending acceptance, accepted, or in progress"
        )

    detail = OrderDetail(
        order_id=order.id,
        description=description.strip(),
        quantity=quantity,
        price_per_unit=float(price_per_unit),
        status=DetailStatus.PROPOSED,
        added_by_user_id=actor.user_id,
    )
    db.add(detail)
    await db.commit()
    await db.refresh(detail)
    logger.info("Order %s: %s %s proposed cost item %s", order.id, actor.role.value, actor.user_id, detail.id)
    return detail


def _decider_for(order: Order, detail: OrderDetail) -> int:
    """The counterparty of whoever proposed the line decides it."""
    if detail.added_by_user_id == order.customer_id:
        return order.provider_id
    return order.customer_id


async def decide_cost(
    db: AsyncSession,
    order_id: int,
    detail_id: int,
    actor: AuthContext,
    decision: DetailStatus,
) -> tuple[OrderDetail, Order]:
    """Approve or reject a line item and persist the recomputed total atomically."""
    if decision not in (DetailStatus.APPROVED, DetailStatus.REJECTED):
        raise InvalidInput("Decision must be APPROVED or REJECTED")

    try:
        order, detail = await _load_detail(db, order_id, detail_id)
        _require_party(order, actor)
        if detail.added_by_user_id == actor.user_id:
            raise Forbidden("You cannot approve or reject cost items you proposed yourself")
        if _decider_for(order, detail) != actor.user_id:
            raise Forbidden("Only the other party can decide this cost item")
        _require_active(order, "update order detail status")

        detail.status = decision
        total = await recompute_final_amount(db, order)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(detail)
    await db.refresh(order)
    logger.info(
        "Order %s: cost item %s %s by user %s, final amount %.2f",
        order.id, detail.id, decision.value, actor.user_id, total,
    )
    return detail, order


async def delete_cost(db: AsyncSession, order_id: int, detail_id: int, actor: AuthContext) -> Order:
    try:
        order, detail = await _load_detail(db, order_id, detail_id)
        if detail.added_by_user_id != actor.user_id:
            raise Forbidden("You can only delete cost items you added yourself")
        _require_active(order, "delete order detail")
        if detail.status not in DELETABLE_DETAIL_STATUSES:
            raise PreconditionFailed("Cannot delete approved order details")

        await db.delete(detail)
        await recompute_final_amount(db, order)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(order)
    logger.info("Order %s: cost item %s deleted by user %s", order.id, detail_id, actor.user_id)
    return order


async def ledger_summary(db: AsyncSession, order: Order) -> tuple[list[OrderDetail], dict]:
    details = await crud.list_order_details(db, order.id)
    approved = sum(line_total(d) for d in details if d.status == DetailStatus.APPROVED)
    proposed = sum(line_total(d) for d in details if d.status == DetailStatus.PROPOSED)
    base_price = await _base_price(db, order)
    summary = {
        "totalItems": len(details),
        "totalApproved": round(approved, 2),
        "totalProposed": round(proposed, 2),
        "grandTotal": round(approved + proposed, 2),
        "basePrice": round(base_price, 2),
        "finalAmount": order.final_amount,
    }
    return details, summary