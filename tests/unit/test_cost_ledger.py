import pytest

from ekerja.db import crud
from ekerja.models.enums import DetailStatus, OrderStatus
from ekerja.services import cost_ledger
from ekerja.services.errors import Forbidden, InvalidInput, NotFound, PreconditionFailed


async def _recomputed(db, order):
    approved = await crud.list_approved_details(db, order.id)
    return cost_ledger.compute_final_amount(100.0, approved)


async def test_provider_proposal_decided_by_customer(db, world, make_order):
    order_id = (await make_order(OrderStatus.IN_PROGRESS)).id
    detail = await cost_ledger.propose_cost(db, order_id, world.provider, "Freon refill", 2, 75.5)
    assert detail.status == DetailStatus.PROPOSED
    detail_id = detail.id

    with pytest.raises(Forbidden):
        await cost_ledger.decide_cost(db, order_id, detail_id, world.provider, DetailStatus.APPROVED)

    detail, order = await cost_ledger.decide_cost(db, order_id, detail_id, world.customer, DetailStatus.APPROVED)
    assert detail.status == DetailStatus.APPROVED
    assert order.final_amount == 251.0


async def test_customer_proposal_decided_by_provider(db, world, make_order):
    order_id = (await make_order(OrderStatus.ACCEPTED)).id
    detail_id = (await cost_ledger.propose_cost(db, order_id, world.customer, "Extra unit", 1, 40)).id

    with pytest.raises(Forbidden):
        await cost_ledger.decide_cost(db, order_id, detail_id, world.customer, DetailStatus.APPROVED)

    _, order = await cost_ledger.decide_cost(db, order_id, detail_id, world.provider, DetailStatus.APPROVED)
    assert order.final_amount == 140.0


async def test_final_amount_counts_only_approved(db, world, make_order):
    order = await make_order(OrderStatus.IN_PROGRESS)
    a = await cost_ledger.propose_cost(db, order.id, world.provider, "Pipe", 3, 10)
    b = await cost_ledger.propose_cost(db, order.id, world.provider, "Valve", 1, 55)
    c = await cost_ledger.propose_cost(db, order.id, world.provider, "Labour", 2, 20)

    await cost_ledger.decide_cost(db, order.id, a.id, world.customer, DetailStatus.APPROVED)
    await cost_ledger.decide_cost(db, order.id, b.id, world.customer, DetailStatus.REJECTED)
    _, order = await cost_ledger.decide_cost(db, order.id, c.id, world.customer, DetailStatus.APPROVED)
    assert order.final_amount == 170.0
    assert order.final_amount == await _recomputed(db, order)

    # A fresh decision on an approved line flips it out of the total
    _, order = await cost_ledger.decide_cost(db, order.id, a.id, world.customer, DetailStatus.REJECTED)
    assert order.final_amount == 140.0
    assert order.final_amount == await _recomputed(db, order)


async def test_recompute_is_idempotent(db, world, make_order):
    order = await make_order(OrderStatus.IN_PROGRESS)
    d = await cost_ledger.propose_cost(db, order.id, world.provider, "Part", 1, 12.25)
    await cost_ledger.decide_cost(db, order.id, d.id, world.customer, DetailStatus.APPROVED)
    first = await cost_ledger.recompute_final_amount(db, order)
    second = await cost_ledger.recompute_final_amount(db, order)
    assert first == second == 112.25


async def test_decide_detail_from_another_order_is_not_found(db, world, make_order):
    order_id = (await make_order(OrderStatus.IN_PROGRESS)).id
    other_id = (await make_order(OrderStatus.IN_PROGRESS)).id
    detail_id = (await cost_ledger.propose_cost(db, other_id, world.provider, "Part", 1, 10)).id

    with pytest.raises(NotFound):
        await cost_ledger.decide_cost(db, order_id, detail_id, world.customer, DetailStatus.APPROVED)
    detail = await crud.get_order_detail(db, detail_id)
    await db.refresh(detail)
    assert detail.status == DetailStatus.PROPOSED
    other = await crud.get_order(db, other_id)
    await db.refresh(other)
    assert other.final_amount == 100.0


@pytest.mark.parametrize("quantity,price", [(0, 10), (-1, 10), (1, -0.01), (1.5, 10)])
async def test_propose_rejects_bad_numbers(db, world, make_order, quantity, price):
    order = await make_order(OrderStatus.ACCEPTED)
    with pytest.raises(InvalidInput):
        await cost_ledger.propose_cost(db, order.id, world.provider, "x", quantity, price)


async def test_propose_requires_party_and_active_order(db, world, make_order):
    order = await make_order(OrderStatus.ACCEPTED)
    with pytest.raises(Forbidden):
        await cost_ledger.propose_cost(db, order.id, world.other_provider, "x", 1, 1)

    done = await make_order(OrderStatus.COMPLETED)
    with pytest.raises(Forbidden):
        await cost_ledger.propose_cost(db, done.id, world.provider, "x", 1, 1)


async def test_delete_rules(db, world, make_order):
    order_id = (await make_order(OrderStatus.IN_PROGRESS)).id
    mine_id = (await cost_ledger.propose_cost(db, order_id, world.provider, "Mine", 1, 30)).id

    with pytest.raises(Forbidden):
        await cost_ledger.delete_cost(db, order_id, mine_id, world.customer)

    approved_id = (await cost_ledger.propose_cost(db, order_id, world.provider, "Approved", 1, 5)).id
    await cost_ledger.decide_cost(db, order_id, approved_id, world.customer, DetailStatus.APPROVED)
    with pytest.raises(PreconditionFailed):
        await cost_ledger.delete_cost(db, order_id, approved_id, world.provider)

    order = await cost_ledger.delete_cost(db, order_id, mine_id, world.provider)
    assert await crud.get_order_detail(db, mine_id) is None
    assert order.final_amount == 105.0


async def test_no_decisions_after_completion(db, world, make_order):
    order = await make_order(OrderStatus.IN_PROGRESS)
    order_id = order.id
    d_id = (await cost_ledger.propose_cost(db, order_id, world.provider, "Late", 1, 10)).id
    order.status = OrderStatus.COMPLETED
    await db.commit()

    with pytest.raises(PreconditionFailed):
        await cost_ledger.decide_cost(db, order_id, d_id, world.customer, DetailStatus.APPROVED)
    with pytest.raises(PreconditionFailed):
        await cost_ledger.delete_cost(db, order_id, d_id, world.provider)


async def test_ledger_summary(db, world, make_order):
    order = await make_order(OrderStatus.IN_PROGRESS)
    a = await cost_ledger.propose_cost(db, order.id, world.provider, "A", 2, 10)
    await cost_ledger.propose_cost(db, order.id, world.provider, "B", 1, 5)
    r = await cost_ledger.propose_cost(db, order.id, world.provider, "R", 1, 99)
    await cost_ledger.decide_cost(db, order.id, a.id, world.customer, DetailStatus.APPROVED)
    await cost_ledger.decide_cost(db, order.id, r.id, world.customer, DetailStatus.REJECTED)

    order = await crud.get_order(db, order.id)
    details, summary = await cost_ledger.ledger_summary(db, order)
    assert len(details) == 3
    assert summary == {
        "totalItems": 3,
        "totalApproved": 20.0,
        "totalProposed": 5.0,
        "grandTotal": 25.0,
        "basePrice": 100.0,
        "finalAmount": 120.0,
    }
