from __future__ import annotations
from pydantic import BaseModel, Field


class ProviderServiceCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    price: float = Field(ge=0)
    is_available: bool = True


class ProviderServiceRead(BaseModel):
    id: int
    provider_id: int
    title: str
    description: str
    price: float
    is_available: bool

    model_config = {"from_attributes": True}
