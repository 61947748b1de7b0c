"""Provider attendance progression; WORKING and COMPLETED feed the order status."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.db import crud
from ekerja.models import Order
from ekerja.models.base import as_utc, utcnow
from ekerja.models.enums import AttendanceStatus, Role
from ekerja.services import order_machine
from ekerja.services.auth import AuthContext
from ekerja.services.errors import Forbidden, NotFound, PreconditionFailed

logger = logging.getLogger(__name__)

A = AttendanceStatus

# Single-step progression; None is "not started"
NEXT_ATTENDANCE: dict[AttendanceStatus | None, AttendanceStatus | None] = {
    None: A.ON_THE_WAY,
    A.ON_THE_WAY: A.ARRIVED,
    A.ARRIVED: A.WORKING,
    A.WORKING: A.COMPLETED,
    A.COMPLETED: None,
}


def check_attendance_step(current: AttendanceStatus | None, target: AttendanceStatus) -> None:
    expected = NEXT_ATTENDANCE[current]
    if target != expected:
        before = current.value if current else "not started"
        raise PreconditionFailed(f"Attendance cannot move from {before} to {target.value}")


async def update_attendance(
    db: AsyncSession,
    order_id: int,
    actor: AuthContext,
    status: AttendanceStatus,
    arrival_time: datetime | None = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> Order:
    if actor.role != Role.PROVIDER:
        raise Forbidden("Only providers can update attendance")
    now = now or utcnow()

    try:
        order = await crud.get_order_for_update(db, order_id)
        if not order:
            raise NotFound("Order not found")
        if order.provider_id != actor.user_id:
            raise Forbidden("You can only update attendance for your own orders")

        # Status gate first, so a terminal order reports the order state
        order_machine.transition(order.status, order_machine.AttendanceChanged(status))
        check_attendance_step(order.provider_attendance_status, status)

        order.provider_attendance_status = status
        if status == A.ARRIVED and order.provider_arrival_time is None:
            order.provider_arrival_time = as_utc(arrival_time) or now
        if notes and notes.strip():
            order.provider_notes = notes.strip()

        order_machine.apply(order, order_machine.AttendanceChanged(status), actor.user_id, now)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(order)
    logger.info("Order %s: attendance now %s", order.id, status.value)
    return order
