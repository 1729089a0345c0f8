from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from schemas.listings import CamelModel

MimeType = Literal["image/jpeg", "image/png", "image/webp", "image/heic"]

MAX_UPLOAD_BYTES = 20 * 1024 * 1024
MAX_DECLARED_DIMENSION = 10000


class UploadSlotsRequest(CamelModel):
    count: int = Field(ge=1, le=10)
    mime_types: list[MimeType] | None = Field(default=None, max_length=10)


class UploadSlotResponse(CamelModel):
    asset_id: str
    key: str
    upload_url: str


class UploadSlotsResponse(CamelModel):
    items: list[UploadSlotResponse]
    expires_in_seconds: int


class CompleteUploadRequest(CamelModel):
    asset_id: str = Field(min_length=1, max_length=36)
    key: str = Field(min_length=1, max_length=500)
    size: int = Field(ge=1, le=MAX_UPLOAD_BYTES)
    width: int = Field(ge=1, le=MAX_DECLARED_DIMENSION)
    height: int = Field(ge=1, le=MAX_DECLARED_DIMENSION)
    mime: MimeType
    original_name: str | None = Field(default=None, max_length=255)


class CompleteUploadResponse(CamelModel):
    status: str
    photo_id: str


class PhotoResponse(CamelModel):
    id: str
    status: str
    is_cover: bool
    sort_order: int
    mime: str | None = None
    width: int | None = None
    height: int | None = None
    variants: dict[str, dict[str, str]] | None = None
    cdn_base_url: str
    created_at: datetime
    updated_at: datetime


class PhotoCoverRequest(CamelModel):
    is_cover: bool


class PhotoOrderRequest(CamelModel):
    ids: list[str] = Field(min_length=1, max_length=100)


class PhotoOperationResponse(CamelModel):
    ok: bool = True


class PhotoDeletedResponse(CamelModel):
    deleted: bool = True


class PhotosDeletedResponse(CamelModel):
    deleted: int
