"""Row-level async helpers. Business rules live in ekerja.services."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.models import (
    ChatAdminAccess, ChatConversation, ChatMessage, ChatParticipant,
    Order, OrderDetail, ProviderService, Review, ReviewReport, User,
)
from ekerja.models.enums import DetailStatus, GrantStatus, OrderStatus, ReportStatus, Role


# ── User ──────────────────────────────────────────────────

async def create_user(
    db: AsyncSession, email: str, password_hash: str, role: Role,
    full_name: str = "", phone_number: str = "",
) -> User:
    user = User(
        email=email, password_hash=password_hash, role=role,
        full_name=full_name, phone_number=phone_number,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalars().first()


# ── ProviderService ───────────────────────────────────────

async def create_provider_service(
    db: AsyncSession, provider_id: int, title: str, price: float,
    description: str = "", is_available: bool = True,
) -> ProviderService:
    svc = ProviderService(
        provider_id=provider_id, title=title, price=price,
        description=description, is_available=is_available,
    )
    db.add(svc)
    await db.commit()
    await db.refresh(svc)
    return svc


async def get_provider_service(db: AsyncSession, service_id: int) -> ProviderService | None:
    return await db.get(ProviderService, service_id)


# ── Order ─────────────────────────────────────────────────

async def get_order(db: AsyncSession, order_id: int) -> Order | None:
    return await db.get(Order, order_id)


async def get_order_for_update(db: AsyncSession, order_id: int) -> Order | None:
    """Load an order with a row lock where the backend supports one."""
    result = await db.execute(
        select(Order).where(Order.id == order_id).with_for_update()
    )
    return result.scalars().first()


async def list_orders(
    db: AsyncSession,
    customer_id: int | None = None,
    provider_id: int | None = None,
    status: OrderStatus | None = None,
    offset: int = 0,
    limit: int = 10,
) -> tuple[list[Order], int]:
    query = select(Order)
    if customer_id is not None:
        query = query.where(Order.customer_id == customer_id)
    if provider_id is not None:
        query = query.where(Order.provider_id == provider_id)
    if status is not None:
        query = query.where(Order.status == status)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(limit)
    )
    return list(result.scalars().all()), total


async def count_orders_by_status(
    db: AsyncSession, customer_id: int | None = None, provider_id: int | None = None,
) -> dict[OrderStatus, int]:
    query = select(Order.status, func.count(Order.id)).group_by(Order.status)
    if customer_id is not None:
        query = query.where(Order.customer_id == customer_id)
    if provider_id is not None:
        query = query.where(Order.provider_id == provider_id)
    result = await db.execute(query)
    return {OrderStatus(status): count for status, count in result.all()}


async def list_reviewable_orders(db: AsyncSession, customer_id: int) -> list[Order]:
    """Completed orders of a customer that have no review yet."""
    result = await db.execute(
        select(Order)
        .outerjoin(Review, Review.order_id == Order.id)
        .where(
            Order.customer_id == customer_id,
            Order.status == OrderStatus.COMPLETED,
            Review.id.is_(None),
        )
        .order_by(Order.updated_at.desc())
    )
    return list(result.scalars().all())


# ── OrderDetail ───────────────────────────────────────────

async def get_order_detail(db: AsyncSession, detail_id: int) -> OrderDetail | None:
    return await db.get(OrderDetail, detail_id)


async def list_order_details(db: AsyncSession, order_id: int) -> list[OrderDetail]:
    result = await db.execute(
        select(OrderDetail).where(OrderDetail.order_id == order_id).order_by(OrderDetail.id)
    )
    return list(result.scalars().all())


async def list_approved_details(db: AsyncSession, order_id: int) -> list[OrderDetail]:
    result = await db.execute(
        select(OrderDetail)
        .where(OrderDetail.order_id == order_id, OrderDetail.status == DetailStatus.APPROVED)
        .order_by(OrderDetail.id)
    )
    return list(result.scalars().all())


# ── Review ────────────────────────────────────────────────

async def get_review(db: AsyncSession, review_id: int) -> Review | None:
    return await db.get(Review, review_id)


async def get_review_for_order(db: AsyncSession, order_id: int) -> Review | None:
    result = await db.execute(select(Review).where(Review.order_id == order_id))
    return result.scalars().first()


async def list_reviews(
    db: AsyncSession,
    customer_id: int | None = None,
    provider_id: int | None = None,
    is_show: bool | None = None,
    min_rating: int | None = None,
    max_rating: int | None = None,
    offset: int = 0,
    limit: int = 10,
) -> tuple[list[Review], int]:
    query = select(Review)
    if customer_id is not None:
        query = query.where(Review.customer_id == customer_id)
    if provider_id is not None:
        query = query.where(Review.provider_id == provider_id)
    if is_show is not None:
        query = query.where(Review.is_show == is_show)
    if min_rating is not None:
        query = query.where(Review.rating >= min_rating)
    if max_rating is not None:
        query = query.where(Review.rating <= max_rating)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(Review.created_at.desc(), Review.id.desc()).offset(offset).limit(limit)
    )
    return list(result.scalars().all()), total


# ── ReviewReport ──────────────────────────────────────────

async def get_review_report(db: AsyncSession, report_id: int) -> ReviewReport | None:
    return await db.get(ReviewReport, report_id)


async def find_report_by_user(db: AsyncSession, review_id: int, user_id: int) -> ReviewReport | None:
    result = await db.execute(
        select(ReviewReport).where(
            ReviewReport.review_id == review_id,
            ReviewReport.reported_by_user_id == user_id,
        )
    )
    return result.scalars().first()


async def list_reports_for_review(db: AsyncSession, review_id: int) -> list[ReviewReport]:
    result = await db.execute(
        select(ReviewReport).where(ReviewReport.review_id == review_id).order_by(ReviewReport.id)
    )
    return list(result.scalars().all())


async def list_review_reports(
    db: AsyncSession, status: ReportStatus | None = None, offset: int = 0, limit: int = 10,
) -> tuple[list[ReviewReport], int]:
    query = select(ReviewReport)
    if status is not None:
        query = query.where(ReviewReport.status == status)
    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(ReviewReport.created_at.desc(), ReviewReport.id.desc()).offset(offset).limit(limit)
    )
    return list(result.scalars().all()), total


# ── Chat ──────────────────────────────────────────────────

async def get_conversation(db: AsyncSession, conversation_id: int) -> ChatConversation | None:
    return await db.get(ChatConversation, conversation_id)


async def get_conversation_for_order(db: AsyncSession, order_id: int) -> ChatConversation | None:
    result = await db.execute(select(ChatConversation).where(ChatConversation.order_id == order_id))
    return result.scalars().first()


async def is_participant(db: AsyncSession, conversation_id: int, user_id: int) -> bool:
    result = await db.execute(
        select(ChatParticipant.id).where(
            ChatParticipant.conversation_id == conversation_id,
            ChatParticipant.user_id == user_id,
        )
    )
    return result.first() is not None


async def list_conversations_for_user(db: AsyncSession, user_id: int) -> list[ChatConversation]:
    result = await db.execute(
        select(ChatConversation)
        .join(ChatParticipant, ChatParticipant.conversation_id == ChatConversation.id)
        .where(ChatParticipant.user_id == user_id)
        .order_by(ChatConversation.created_at.desc(), ChatConversation.id.desc())
    )
    return list(result.scalars().all())


async def list_messages(
    db: AsyncSession, conversation_id: int, offset: int = 0, limit: int | None = 50,
) -> tuple[list[ChatMessage], int]:
    query = select(ChatMessage).where(ChatMessage.conversation_id == conversation_id)
    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(ChatMessage.sent_at, ChatMessage.id).offset(offset).limit(limit)
    )
    return list(result.scalars().all()), total


# ── ChatAdminAccess ───────────────────────────────────────

async def get_access(db: AsyncSession, access_id: int) -> ChatAdminAccess | None:
    return await db.get(ChatAdminAccess, access_id)


async def find_access(
    db: AsyncSession,
    conversation_id: int,
    customer_id: int | None = None,
    status: GrantStatus | None = None,
) -> ChatAdminAccess | None:
    query = select(ChatAdminAccess).where(ChatAdminAccess.conversation_id == conversation_id)
    if customer_id is not None:
        query = query.where(ChatAdminAccess.customer_id == customer_id)
    if status is not None:
        query = query.where(ChatAdminAccess.status == status)
    result = await db.execute(query.order_by(ChatAdminAccess.id.desc()))
    return result.scalars().first()


async def find_access_by_token(
    db: AsyncSession, conversation_id: int, admin_id: int, access_token: str,
) -> ChatAdminAccess | None:
    result = await db.execute(
        select(ChatAdminAccess).where(
            ChatAdminAccess.conversation_id == conversation_id,
            ChatAdminAccess.requested_by_admin == admin_id,
            ChatAdminAccess.access_token == access_token,
        )
    )
    return result.scalars().first()


async def list_access_for_customer(
    db: AsyncSession, customer_id: int, status: GrantStatus | None = None,
) -> list[ChatAdminAccess]:
    query = select(ChatAdminAccess).where(ChatAdminAccess.customer_id == customer_id)
    if status is not None:
        query = query.where(ChatAdminAccess.status == status)
    result = await db.execute(query.order_by(ChatAdminAccess.created_at.desc(), ChatAdminAccess.id.desc()))
    return list(result.scalars().all())


async def list_live_access_for_admin(
    db: AsyncSession, admin_id: int, now: datetime,
) -> list[ChatAdminAccess]:
    result = await db.execute(
        select(ChatAdminAccess).where(
            ChatAdminAccess.requested_by_admin == admin_id,
            ChatAdminAccess.status == GrantStatus.APPROVED,
            ChatAdminAccess.expires_at > now,
        ).order_by(ChatAdminAccess.expires_at)
    )
    return list(result.scalars().all())
