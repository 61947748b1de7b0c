"""Provider service listings: just enough for orders to price against."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ekerja.db import crud
from ekerja.dependencies import get_db, require_role
from ekerja.models.enums import Role
from ekerja.schemas import ProviderServiceCreate, ProviderServiceRead
from ekerja.services.auth import AuthContext
from ekerja.services.errors import NotFound

router = APIRouter(prefix="/api", tags=["provider_services"])


@router.post("/provider/services", status_code=201, response_model=ProviderServiceRead)
async def create_service(
    body: ProviderServiceCreate,
    auth: AuthContext = Depends(require_role(Role.PROVIDER)),
    db: AsyncSession = Depends(get_db),
):
    svc = await crud.create_provider_service(
        db, provider_id=auth.user_id, title=body.title.strip(), price=body.price,
        description=body.description, is_available=body.is_available,
    )
    return ProviderServiceRead.model_validate(svc)


@router.get("/services/{service_id}", response_model=ProviderServiceRead)
async def get_service(service_id: int, db: AsyncSession = Depends(get_db)):
    svc = await crud.get_provider_service(db, service_id)
    if not svc:
        raise NotFound("Provider service not found")
    return ProviderServiceRead.model_validate(svc)
