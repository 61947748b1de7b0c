"""Admin API: review moderation, report rulings, chat access requests and reads."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.db import crud
from ekerja.dependencies import get_db, require_role
from ekerja.models.enums import ReportStatus, Role
from ekerja.schemas import (
    AccessRead, AccessRequestCreate, AdminAccessRead, MessageRead, ReportRead,
    ReportResolve, ReviewRead, ReviewVisibilityUpdate, TranscriptRead,
)
from ekerja.services import chat_access, reviews
from ekerja.services.auth import AuthContext
from ekerja.services.email import send_chat_access_request_email

router = APIRouter(prefix="/api/admin", tags=["admin"])

_admin_dep = require_role(Role.ADMIN)


# ── Reviews & reports ─────────────────────────────────────

@router.get("/review-reports")
async def list_reports(
    status: ReportStatus | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    auth: AuthContext = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await reviews.list_reports(db, status=status, page=page, limit=limit)
    return {
        "reports": [ReportRead.model_validate(r).model_dump(mode="json") for r in rows],
        "total": total,
        "page": page,
        "limit": limit,
    }


@router.put("/review-reports/{report_id}")
async def resolve_report(
    report_id: int,
    body: ReportResolve,
    auth: AuthContext = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    report, review = await reviews.resolve_report(db, report_id, auth, body.action, body.admin_notes)
    return {
        "report": ReportRead.model_validate(report).model_dump(mode="json"),
        "review": ReviewRead.model_validate(review).model_dump(mode="json"),
    }


@router.get("/reviews/hidden")
async def hidden_reviews(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    auth: AuthContext = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await reviews.list_reviews_for(db, auth, is_show=False, page=page, limit=limit)
    return {
        "reviews": [ReviewRead.model_validate(r).model_dump(mode="json") for r in rows],
        "total": total,
    }


@router.get("/reviews/{review_id}", response_model=ReviewRead)
async def review_detail(
    review_id: int,
    auth: AuthContext = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    return ReviewRead.model_validate(await reviews.get_review(db, review_id, auth))


@router.put("/reviews/{review_id}/visibility", response_model=ReviewRead)
async def set_visibility(
    review_id: int,
    body: ReviewVisibilityUpdate,
    auth: AuthContext = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    review = await reviews.set_visibility(db, review_id, auth, body.is_show, body.admin_notes)
    return ReviewRead.model_validate(review)


# ── Chat access ───────────────────────────────────────────

@router.post("/chat-access/requests", status_code=201, response_model=AccessRead)
async def request_chat_access(
    body: AccessRequestCreate,
    background_tasks: BackgroundTasks,
    auth: AuthContext = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    request = await chat_access.request_access(db, body.conversation_id, auth, body.reason)
    customer = await crud.get_user(db, request.customer_id)
    if customer:
        background_tasks.add_task(
            send_chat_access_request_email, customer.email, request.conversation_id, request.reason,
        )
    return AccessRead.model_validate(request)


@router.get("/chat-access/accessible", response_model=list[AdminAccessRead])
async def accessible_conversations(
    auth: AuthContext = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    return [AdminAccessRead.model_validate(g) for g in await chat_access.accessible_for_admin(db, auth)]


@router.get("/chat-access/view", response_model=TranscriptRead)
async def view_transcript(
    conversation_id: int,
    access_token: str,
    auth: AuthContext = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    grant, messages = await chat_access.read_transcript(db, conversation_id, auth, access_token)
    return TranscriptRead(
        conversation_id=conversation_id,
        expires_at=grant.expires_at,
        messages=[MessageRead.model_validate(m) for m in messages],
    )
