"""Customer on-site verification gate."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.db import crud
from ekerja.models import Order
from ekerja.models.base import utcnow
from ekerja.models.enums import OrderStatus, Role, VerificationStatus
from ekerja.services import order_machine
from ekerja.services.auth import AuthContext
from ekerja.services.errors import Forbidden, NotFound

logger = logging.getLogger(__name__)


async def verify_order(
    db: AsyncSession,
    order_id: int,
    actor: AuthContext,
    decision: VerificationStatus,
    notes: str | None = None,
    now: datetime | None = None,
) -> Order:
    """Record the customer's decision. ``rejected`` disputes the order, even a completed one."""
    if actor.role != Role.CUSTOMER:
        raise Forbidden("Only customers can verify orders")
    now = now or utcnow()

    try:
        order = await crud.get_order_for_update(db, order_id)
        if not order:
            raise NotFound("Order not found")
        if order.customer_id != actor.user_id:
            raise Forbidden("You can only verify your own orders")

        event = order_machine.VerificationSubmitted(decision)
        was_completed = order.status == OrderStatus.COMPLETED
        order_machine.apply(order, event, actor.user_id, now)

        order.customer_verification_status = decision
        order.customer_verification_notes = (notes or "").strip() or None
        order.customer_verification_time = now
        if decision == VerificationStatus.REJECTED:
            order_machine.append_information(
                order, "Disputed by customer", notes or "verification rejected", now,
            )
            if was_completed:
                logger.warning("Order %s disputed after completion", order.id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(order)
    return order
