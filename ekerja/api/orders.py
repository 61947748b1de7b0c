"""Orders API: create, list, status, cancellation, attendance, verification."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.db import crud
from ekerja.dependencies import get_db, require_auth, require_role
from ekerja.models import Order
from ekerja.models.enums import OrderStatus, Role
from ekerja.schemas import (
    AttendanceUpdate, OrderCancel, OrderCreate, OrderPage, OrderRead,
    OrderStatusUpdate, VerificationSubmit,
)
from ekerja.services import attendance, orders, verification
from ekerja.services.auth import AuthContext
from ekerja.services.email import send_order_status_email

router = APIRouter(prefix="/api/orders", tags=["orders"])


async def _notify(
    background_tasks: BackgroundTasks, db: AsyncSession, order: Order,
    actor: AuthContext, previous: OrderStatus | None, note: str = "",
) -> None:
    """Queue a status email to whichever party did not make the change."""
    if order.status == previous:
        return
    recipients = [uid for uid in (order.customer_id, order.provider_id) if uid != actor.user_id]
    for user_id in recipients:
        user = await crud.get_user(db, user_id)
        if user:
            background_tasks.add_task(
                send_order_status_email, user.email, order.id, order.status.value, note,
            )


async def _status_of(db: AsyncSession, order_id: int) -> OrderStatus | None:
    order = await crud.get_order(db, order_id)
    return order.status if order else None


@router.post("", status_code=201, response_model=OrderRead)
async def create_order(
    body: OrderCreate,
    auth: AuthContext = Depends(require_role(Role.CUSTOMER)),
    db: AsyncSession = Depends(get_db),
):
    order = await orders.create_order(
        db, auth,
        provider_service_id=body.provider_service_id,
        scheduled_date=body.scheduled_date,
        job_address=body.job_address,
        district=body.district,
        sub_district=body.sub_district,
        ward=body.ward,
        job_description_notes=body.job_description_notes,
        chosen_payment_method=body.chosen_payment_method,
    )
    return OrderRead.model_validate(order)


@router.get("", response_model=OrderPage)
async def list_orders(
    status: OrderStatus | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await orders.list_orders_for(db, auth, status=status, page=page, limit=limit)
    return OrderPage(
        orders=[OrderRead.model_validate(o) for o in rows],
        total=total, page=page, limit=limit,
    )


@router.get("/summary")
async def order_summary(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    data = await orders.status_summary(db, auth)
    if auth.role == Role.CUSTOMER:
        recent, _ = await orders.list_orders_for(db, auth, limit=10)
        data["recentOrders"] = [
            {
                "id": o.id,
                "status": o.status.value,
                **orders.customer_flags(o, await crud.get_review_for_order(db, o.id) is not None),
            }
            for o in recent
        ]
    return data


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: int,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return OrderRead.model_validate(await orders.get_order(db, order_id, auth))


@router.put("/{order_id}/status", response_model=OrderRead)
async def update_status(
    order_id: int,
    body: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    auth: AuthContext = Depends(require_role(Role.PROVIDER, Role.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    previous = await _status_of(db, order_id)
    order = await orders.request_status(db, order_id, auth, body.status, body.information)
    await _notify(background_tasks, db, order, auth, previous, body.information)
    return OrderRead.model_validate(order)


@router.post("/{order_id}/cancel", response_model=OrderRead)
async def cancel_order(
    order_id: int,
    body: OrderCancel,
    background_tasks: BackgroundTasks,
    auth: AuthContext = Depends(require_role(Role.CUSTOMER)),
    db: AsyncSession = Depends(get_db),
):
    previous = await _status_of(db, order_id)
    order = await orders.cancel_order(db, order_id, auth, body.reason)
    await _notify(background_tasks, db, order, auth, previous, body.reason)
    return OrderRead.model_validate(order)


@router.put("/{order_id}/attendance", response_model=OrderRead)
async def update_attendance(
    order_id: int,
    body: AttendanceUpdate,
    background_tasks: BackgroundTasks,
    auth: AuthContext = Depends(require_role(Role.PROVIDER)),
    db: AsyncSession = Depends(get_db),
):
    previous = await _status_of(db, order_id)
    order = await attendance.update_attendance(
        db, order_id, auth, body.status, arrival_time=body.arrival_time, notes=body.notes,
    )
    await _notify(background_tasks, db, order, auth, previous)
    return OrderRead.model_validate(order)


@router.post("/{order_id}/verification", response_model=OrderRead)
async def submit_verification(
    order_id: int,
    body: VerificationSubmit,
    background_tasks: BackgroundTasks,
    auth: AuthContext = Depends(require_role(Role.CUSTOMER)),
    db: AsyncSession = Depends(get_db),
):
    previous = await _status_of(db, order_id)
    order = await verification.verify_order(db, order_id, auth, body.status, body.notes)
    await _notify(background_tasks, db, order, auth, previous, body.notes or "")
    return OrderRead.model_validate(order)
