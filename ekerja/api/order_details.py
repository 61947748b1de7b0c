"""Cost ledger API for an order's negotiated line items."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.dependencies import get_db, require_auth, require_role
from ekerja.models.enums import Role
from ekerja.schemas import (
    LedgerSummary, OrderDetailCreate, OrderDetailDecision, OrderDetailRead, OrderLedgerRead,
)
from ekerja.services import cost_ledger, orders
from ekerja.services.auth import AuthContext

router = APIRouter(prefix="/api/orders/{order_id}/details", tags=["order_details"])

_party_dep = require_role(Role.CUSTOMER, Role.PROVIDER)


@router.get("", response_model=OrderLedgerRead)
async def get_ledger(
    order_id: int,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    order = await orders.get_order(db, order_id, auth)
    details, summary = await cost_ledger.ledger_summary(db, order)
    return OrderLedgerRead(
        details=[OrderDetailRead.model_validate(d) for d in details],
        summary=LedgerSummary(**summary),
    )


@router.post("", status_code=201, response_model=OrderDetailRead)
async def propose_detail(
    order_id: int,
    body: OrderDetailCreate,
    auth: AuthContext = Depends(_party_dep),
    db: AsyncSession = Depends(get_db),
):
    detail = await cost_ledger.propose_cost(
        db, order_id, auth, body.description, body.quantity, body.price_per_unit,
    )
    return OrderDetailRead.model_validate(detail)


@router.put("/{detail_id}")
async def decide_detail(
    order_id: int,
    detail_id: int,
    body: OrderDetailDecision,
    auth: AuthContext = Depends(_party_dep),
    db: AsyncSession = Depends(get_db),
):
    detail, order = await cost_ledger.decide_cost(db, order_id, detail_id, auth, body.status)
    return {
        "detail": OrderDetailRead.model_validate(detail).model_dump(mode="json"),
        "finalAmount": order.final_amount,
    }


@router.delete("/{detail_id}")
async def delete_detail(
    order_id: int,
    detail_id: int,
    auth: AuthContext = Depends(_party_dep),
    db: AsyncSession = Depends(get_db),
):
    order = await cost_ledger.delete_cost(db, order_id, detail_id, auth)
    return {"ok": True, "finalAmount": order.final_amount}
