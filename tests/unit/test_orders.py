from datetime import datetime, timedelta, timezone

import pytest

from ekerja.models.base import utcnow
from ekerja.models.enums import OrderStatus, PaymentMethod
from ekerja.services import orders
from ekerja.services.errors import Forbidden, InvalidInput, NotFound, PreconditionFailed


def _address():
    return dict(job_address="Jl. Sudirman 5", district="Tanah Abang", sub_district="Karet", ward="RW 01")


async def test_create_order_starts_pending_at_base_price(db, world):
    order = await orders.create_order(
        db, world.customer, world.service_id, utcnow() + timedelta(days=1),
        chosen_payment_method=PaymentMethod.CASH, **_address(),
    )
    assert order.status == OrderStatus.PENDING_ACCEPTANCE
    assert order.provider_id == world.provider.user_id
    assert order.final_amount == 100.0


async def test_create_order_validation(db, world):
    with pytest.raises(Forbidden):
        await orders.create_order(db, world.provider, world.service_id, utcnow() + timedelta(days=1), **_address())
    with pytest.raises(InvalidInput):
        await orders.create_order(db, world.customer, world.service_id, utcnow() - timedelta(hours=1), **_address())
    with pytest.raises(InvalidInput):
        await orders.create_order(
            db, world.customer, world.service_id, utcnow() + timedelta(days=1),
            **{**_address(), "ward": " "},
        )
    with pytest.raises(NotFound):
        await orders.create_order(db, world.customer, 999, utcnow() + timedelta(days=1), **_address())


async def test_unavailable_service_or_inactive_provider(db, world):
    world.service.is_available = False
    await db.commit()
    with pytest.raises(PreconditionFailed):
        await orders.create_order(db, world.customer, world.service_id, utcnow() + timedelta(days=1), **_address())

    world.service.is_available = True
    world.users["provider"].is_active = False
    await db.commit()
    with pytest.raises(PreconditionFailed):
        await orders.create_order(db, world.customer, world.service_id, utcnow() + timedelta(days=1), **_address())


async def test_visibility(db, world, make_order):
    order = await make_order()
    assert (await orders.get_order(db, order.id, world.admin)).id == order.id
    assert (await orders.get_order(db, order.id, world.provider)).id == order.id
    with pytest.raises(NotFound):
        await orders.get_order(db, order.id, world.other_customer)


async def test_request_status_ownership(db, world, make_order):
    order_id = (await make_order()).id
    with pytest.raises(Forbidden):
        await orders.request_status(db, order_id, world.other_provider, OrderStatus.ACCEPTED)
    with pytest.raises(Forbidden):
        await orders.cancel_order(db, order_id, world.other_customer)

    order = await orders.request_status(db, order_id, world.provider, OrderStatus.ACCEPTED)
    assert order.status == OrderStatus.ACCEPTED
    order = await orders.cancel_order(db, order_id, world.customer, "changed plans")
    assert order.status == OrderStatus.CANCELLED_BY_CUSTOMER
    assert "Customer note: changed plans" in order.information


async def test_failed_request_leaves_order_untouched(db, world, make_order):
    order_id = (await make_order()).id
    with pytest.raises(InvalidInput):
        await orders.request_status(db, order_id, world.provider, OrderStatus.REJECTED_BY_PROVIDER, "")
    order = await orders.get_order(db, order_id, world.provider)
    await db.refresh(order)
    assert order.status == OrderStatus.PENDING_ACCEPTANCE
    assert order.information is None


async def test_status_summary_for_customer(db, world, make_order):
    await make_order(OrderStatus.COMPLETED)
    await make_order(OrderStatus.IN_PROGRESS)
    await make_order(OrderStatus.IN_PROGRESS)

    data = await orders.status_summary(db, world.customer)
    assert data["statusSummary"]["IN_PROGRESS"] == 2
    assert data["statusSummary"]["CANCELLED_BY_CUSTOMER"] == 0
    assert data["needsAction"] == {"needsReview": 1, "inProgress": 2}

    provider_view = await orders.status_summary(db, world.other_provider)
    assert sum(provider_view["statusSummary"].values()) == 0
    assert "needsAction" not in provider_view


async def test_list_is_scoped_by_role(db, world, make_order):
    await make_order()
    await make_order(OrderStatus.ACCEPTED)

    rows, total = await orders.list_orders_for(db, world.customer)
    assert total == 2
    rows, total = await orders.list_orders_for(db, world.other_customer)
    assert total == 0
    rows, total = await orders.list_orders_for(db, world.admin, status=OrderStatus.ACCEPTED)
    assert total == 1 and rows[0].status == OrderStatus.ACCEPTED


async def test_scheduled_date_offset_is_normalised_to_utc(db, world):
    jakarta = timezone(timedelta(hours=7))
    order = await orders.create_order(
        db, world.customer, world.service_id, datetime(2030, 1, 1, 10, 0, tzinfo=jakarta), **_address(),
    )
    order_id = order.id
    db.expire_all()

    stored = (await orders.get_order(db, order_id, world.customer)).scheduled_date
    assert stored == datetime(2030, 1, 1, 3, 0, tzinfo=timezone.utc)
    assert stored.utcoffset() == timedelta(0)
