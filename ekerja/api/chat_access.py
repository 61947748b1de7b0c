"""Customer side of admin chat access: grant, revoke, answer requests."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.dependencies import get_db, require_role
from ekerja.models.enums import GrantStatus, Role
from ekerja.schemas import AccessRead, AccessRespond, AccessToggle, CustomerConversationAccess
from ekerja.services import chat_access
from ekerja.services.auth import AuthContext

router = APIRouter(prefix="/api/customer/chat-access", tags=["chat_access"])

_customer_dep = require_role(Role.CUSTOMER)


@router.get("/conversations", response_model=list[CustomerConversationAccess])
async def list_conversations(
    auth: AuthContext = Depends(_customer_dep),
    db: AsyncSession = Depends(get_db),
):
    rows = await chat_access.customer_conversations(db, auth)
    return [CustomerConversationAccess(**row) for row in rows]


@router.put("/conversations/{conversation_id}")
async def toggle_access(
    conversation_id: int,
    body: AccessToggle,
    auth: AuthContext = Depends(_customer_dep),
    db: AsyncSession = Depends(get_db),
):
    if body.grant_access:
        grant = await chat_access.grant_access(
            db, conversation_id, auth, body.admin_id, body.access_hours,
        )
        return {
            "isAdminAccessible": True,
            "grant": AccessRead.model_validate(grant).model_dump(mode="json"),
        }
    revoked = await chat_access.revoke_access(db, conversation_id, auth)
    return {"isAdminAccessible": False, "revoked": revoked}


@router.get("/requests", response_model=list[AccessRead])
async def list_requests(
    status: GrantStatus | None = None,
    auth: AuthContext = Depends(_customer_dep),
    db: AsyncSession = Depends(get_db),
):
    return [AccessRead.model_validate(r) for r in await chat_access.list_requests(db, auth, status)]


@router.post("/requests/{access_id}/respond", response_model=AccessRead)
async def respond(
    access_id: int,
    body: AccessRespond,
    auth: AuthContext = Depends(_customer_dep),
    db: AsyncSession = Depends(get_db),
):
    request = await chat_access.respond_to_request(
        db, access_id, auth, body.action, response=body.response, access_hours=body.access_hours,
    )
    return AccessRead.model_validate(request)
