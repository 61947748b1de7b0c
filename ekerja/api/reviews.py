"""Reviews API: submit, edit, list, report, and the customer's pending list."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.dependencies import get_db, require_auth, require_role
from ekerja.models.enums import Role
from ekerja.schemas import OrderRead, ReportCreate, ReportRead, ReviewCreate, ReviewRead, ReviewUpdate
from ekerja.services import reviews
from ekerja.services.auth import AuthContext

router = APIRouter(prefix="/api", tags=["reviews"])


@router.post("/reviews", status_code=201, response_model=ReviewRead)
async def submit_review(
    body: ReviewCreate,
    auth: AuthContext = Depends(require_role(Role.CUSTOMER)),
    db: AsyncSession = Depends(get_db),
):
    review = await reviews.submit_review(db, body.order_id, auth, body.rating, body.comment)
    return ReviewRead.model_validate(review)


@router.get("/reviews")
async def list_reviews(
    provider_id: int | None = None,
    customer_id: int | None = None,
    is_show: bool | None = None,
    min_rating: int | None = Query(default=None, ge=1, le=5),
    max_rating: int | None = Query(default=None, ge=1, le=5),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await reviews.list_reviews_for(
        db, auth,
        provider_id=provider_id, customer_id=customer_id, is_show=is_show,
        min_rating=min_rating, max_rating=max_rating, page=page, limit=limit,
    )
    return {
        "reviews": [ReviewRead.model_validate(r).model_dump(mode="json") for r in rows],
        "total": total,
        "page": page,
        "limit": limit,
    }


@router.get("/reviews/{review_id}", response_model=ReviewRead)
async def get_review(
    review_id: int,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return ReviewRead.model_validate(await reviews.get_review(db, review_id, auth))


@router.put("/customer/reviews/{review_id}", response_model=ReviewRead)
async def edit_review(
    review_id: int,
    body: ReviewUpdate,
    auth: AuthContext = Depends(require_role(Role.CUSTOMER)),
    db: AsyncSession = Depends(get_db),
):
    review = await reviews.edit_review(db, review_id, auth, rating=body.rating, comment=body.comment)
    return ReviewRead.model_validate(review)


@router.get("/customer/pending-reviews")
async def pending_reviews(
    auth: AuthContext = Depends(require_role(Role.CUSTOMER)),
    db: AsyncSession = Depends(get_db),
):
    rows = await reviews.pending_reviews(db, auth)
    return {
        "orders": [OrderRead.model_validate(o).model_dump(mode="json") for o in rows],
        "total": len(rows),
    }


@router.post("/reviews/{review_id}/report", status_code=201, response_model=ReportRead)
async def report_review(
    review_id: int,
    body: ReportCreate,
    auth: AuthContext = Depends(require_role(Role.CUSTOMER, Role.PROVIDER)),
    db: AsyncSession = Depends(get_db),
):
    report = await reviews.report_review(db, review_id, auth, body.reason)
    return ReportRead.model_validate(report)
