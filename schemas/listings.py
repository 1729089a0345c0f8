from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from services.listings import ListingStatus, ListingType, PropertyType


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ListingCreateRequest(CamelModel):
    type: ListingType
    property_type: PropertyType = PropertyType.default
    title: str | None = Field(default=None, max_length=200)
    price: float | None = Field(default=None, ge=0)
    summary: str | None = Field(default=None, max_length=500)
    description: str | None = Field(default=None, max_length=2000)
    highlights: list[str] | None = None
    keywords: list[str] | None = None
    meta_description: str | None = Field(default=None, max_length=160)
    user_fields: dict[str, Any] | None = None


class ListingUpdateRequest(CamelModel):
    type: ListingType | None = None
    property_type: PropertyType | None = None
    status: ListingStatus | None = None
    title: str | None = Field(default=None, max_length=200)
    price: float | None = Field(default=None, ge=0)
    summary: str | None = Field(default=None, max_length=500)
    description: str | None = Field(default=None, max_length=2000)
    highlights: list[str] | None = None
    keywords: list[str] | None = None
    meta_description: str | None = Field(default=None, max_length=160)
    user_fields: dict[str, Any] | None = None


class ListingResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: ListingType
    property_type: str
    status: ListingStatus
    title: str | None = None
    price: float | None = None
    summary: str | None = None
    description: str | None = None
    highlights: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    meta_description: str | None = None
    user_fields: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class ListingListResponse(CamelModel):
    items: list[ListingResponse]
    page: int
    limit: int
    total: int
