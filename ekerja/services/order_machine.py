"""Order state machine.

``Order.status`` is written only here. Every other component (attendance,
customer verification, direct provider/customer/admin requests) describes what
happened as an event, and ``transition`` decides the resulting status:

    PENDING_ACCEPTANCE -> ACCEPTED -> IN_PROGRESS -> COMPLETED
    PENDING_ACCEPTANCE -> REJECTED_BY_PROVIDER
    PENDING_ACCEPTANCE | ACCEPTED -> CANCELLED_BY_CUSTOMER
    ACCEPTED | IN_PROGRESS | COMPLETED -> DISPUTED   (verification rejected)

Admins may force any status; overrides are always logged and recorded in the
order's ``information`` trail.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from ekerja.models import Order
from ekerja.models.base import utcnow
from ekerja.models.enums import AttendanceStatus, OrderStatus, Role, VerificationStatus
from ekerja.services.errors import Forbidden, InvalidInput, PreconditionFailed

logger = logging.getLogger(__name__)

S = OrderStatus

# Statuses in which the order is still live for cost negotiation
ACTIVE_STATUSES = frozenset({S.PENDING_ACCEPTANCE, S.ACCEPTED, S.IN_PROGRESS})

PROVIDER_SETTABLE = frozenset({S.ACCEPTED, S.REJECTED_BY_PROVIDER, S.IN_PROGRESS, S.COMPLETED})

PROVIDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    S.PENDING_ACCEPTANCE: frozenset({S.ACCEPTED, S.REJECTED_BY_PROVIDER}),
    S.ACCEPTED: frozenset({S.IN_PROGRESS}),
    S.IN_PROGRESS: frozenset({S.COMPLETED}),
    S.COMPLETED: frozenset(),
    S.REJECTED_BY_PROVIDER: frozenset(),
    S.CANCELLED_BY_CUSTOMER: frozenset(),
    S.DISPUTED: frozenset(),
}

CUSTOMER_CANCELLABLE = frozenset({S.PENDING_ACCEPTANCE, S.ACCEPTED})

VERIFIABLE = frozenset({S.ACCEPTED, S.IN_PROGRESS, S.COMPLETED})

ATTENDANCE_ALLOWED = frozenset({S.ACCEPTED, S.IN_PROGRESS})

# Attendance events that drive the order status; the rest leave it untouched
ATTENDANCE_DRIVES: dict[AttendanceStatus, OrderStatus] = {
    AttendanceStatus.WORKING: S.IN_PROGRESS,
    AttendanceStatus.COMPLETED: S.COMPLETED,
}


# ── Events ────────────────────────────────────────────────

@dataclass(frozen=True)
class StatusRequested:
    """A provider, customer or admin asks for a specific status."""

    to: OrderStatus
    actor: Role
    note: str = ""


@dataclass(frozen=True)
class AttendanceChanged:
    to: AttendanceStatus


@dataclass(frozen=True)
class VerificationSubmitted:
    decision: VerificationStatus


OrderEvent = StatusRequested | AttendanceChanged | VerificationSubmitted


def transition(current: OrderStatus, event: OrderEvent) -> OrderStatus:
    """Pure transition function: the status that ``event`` leads to from ``current``."""
    if isinstance(event, AttendanceChanged):
        if current not in ATTENDANCE_ALLOWED:
            raise PreconditionFailed(f"Cannot update attendance for an order with status {current.value}")
        return ATTENDANCE_DRIVES.get(event.to, current)

    if isinstance(event, VerificationSubmitted):
        if current not in VERIFIABLE:
            raise PreconditionFailed(f"Cannot verify an order with status {current.value}")
        if event.decision == VerificationStatus.REJECTED:
            return S.DISPUTED
        if current == S.ACCEPTED:
            return S.IN_PROGRESS
        return current

    if isinstance(event, StatusRequested):
        return _requested(current, event)

    raise TypeError(f"Unknown order event: {event!r}")


def _requested(current: OrderStatus, event: StatusRequested) -> OrderStatus:
    target = event.to
    if event.actor == Role.ADMIN:
        return target

    if event.actor == Role.PROVIDER:
        if target not in PROVIDER_SETTABLE:
            allowed = ", ".join(sorted(s.value for s in PROVIDER_SETTABLE))
            raise Forbidden(f"Providers can only set status to: {allowed}")
        if target == S.REJECTED_BY_PROVIDER and not event.note.strip():
            raise InvalidInput("Rejection reason (information) is required when rejecting an order")
        if target not in PROVIDER_TRANSITIONS[current]:
            raise PreconditionFailed(f"Cannot move order from {current.value} to {target.value}")
        return target

    if event.actor == Role.CUSTOMER:
        if target != S.CANCELLED_BY_CUSTOMER:
            raise Forbidden("Customers can only cancel orders")
        if current not in CUSTOMER_CANCELLABLE:
            raise PreconditionFailed(f"Cannot cancel an order with status {current.value}")
        return target

    raise Forbidden("Unknown role")


# ── Applying events to a row ──────────────────────────────

def append_information(order: Order, label: str, text: str, now: datetime | None = None) -> None:
    """Append one line to the order's audit trail; earlier entries are kept."""
    stamp = (now or utcnow()).isoformat(timespec="seconds")
    line = f"[{stamp}] {label}: {text.strip()}"
    order.information = f"{order.information}\n{line}" if order.information else line


def apply(order: Order, event: OrderEvent, actor_id: int, now: datetime | None = None) -> OrderStatus:
    """Run ``event`` through the machine and write the result onto ``order``.

    Does not commit; the caller owns the transaction.
    """
    previous = order.status
    new_status = transition(previous, event)

    if isinstance(event, StatusRequested):
        if event.actor == Role.ADMIN:
            logger.warning(
                "Admin %s overrode order %s status %s -> %s",
                actor_id, order.id, previous.value, new_status.value,
            )
            note = f"{previous.value} -> {new_status.value}"
            if event.note.strip():
                note = f"{note} ({event.note.strip()})"
            append_information(order, f"Admin override by user {actor_id}", note, now)
        elif new_status == S.REJECTED_BY_PROVIDER:
            append_information(order, "Rejected by provider", event.note, now)
        elif event.note.strip():
            append_information(order, f"{event.actor.value.capitalize()} note", event.note, now)

    if new_status != previous:
        order.status = new_status
        logger.info("Order %s: %s -> %s (%s)", order.id, previous.value, new_status.value, type(event).__name__)
    return new_status
