"""Listing photos: upload slots, upload confirmation, variant processing and ordering."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.models import Listing, Photo
from services.image_processing import ImageProcessor
from services.listings import ListingNotFoundError
from services.storage import MIME_EXTENSIONS, ObjectStorage, StorageError, processed_key, upload_key

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES: tuple[str, ...] = tuple(MIME_EXTENSIONS)
DEFAULT_MIME = "image/jpeg"


class PhotoStatus(str, Enum):
    uploading = "UPLOADING"
    processing = "PROCESSING"
    ready = "READY"
    failed = "FAILED"


class PhotoNotFoundError(RuntimeError):
    """Raised when a photo is missing or belongs to another listing."""

    def __init__(self, photo_id: str) -> None:
        super().__init__("Photo not found")
        self.photo_id = photo_id


class PhotoRequestError(RuntimeError):
    """Raised when a photo operation is not allowed in the current state."""


@dataclass(frozen=True)
class PhotoPolicy:
    max_files_per_listing: int = 30
    cdn_base_url: str = "https://media.casalabia.dev"


@dataclass(frozen=True)
class UploadSlot:
    asset_id: str
    key: str
    upload_url: str


@dataclass(frozen=True)
class UploadSlots:
    items: list[UploadSlot]
    expires_in_seconds: int


@dataclass(frozen=True)
class UploadedFile:
    asset_id: str
    key: str
    size: int
    width: int
    height: int
    mime: str
    original_name: str | None = None


def variant_keys(photo: Photo) -> list[str]:
    keys = [photo.s3_key_original] if photo.s3_key_original else []
    for sizes in (photo.s3_key_variants or {}).values():
        if isinstance(sizes, dict):
            keys.extend(key for key in sizes.values() if isinstance(key, str) and key)
    return keys


class PhotosService:
    def __init__(
        self,
        session: AsyncSession,
        storage: ObjectStorage,
        policy: PhotoPolicy | None = None,
    ) -> None:
        self._session = session
        self._storage = storage
        self.policy = policy or PhotoPolicy()

    async def _require_listing(self, listing_id: str) -> None:
        found = await self._session.scalar(
            select(Listing.id).where(Listing.id == listing_id, Listing.deleted_at.is_(None))
        )
        if found is None:
            raise ListingNotFoundError(listing_id)

    async def _get_photo(self, listing_id: str, photo_id: str) -> Photo:
        photo = await self._session.get(Photo, photo_id)
        if photo is None or photo.listing_id != listing_id:
            raise PhotoNotFoundError(photo_id)
        return photo

    async def _delete_files(self, photos: Iterable[Photo]) -> None:
        keys = [key for photo in photos for key in variant_keys(photo)]
        if not keys:
            return
        try:
            await self._storage.delete_objects(keys)
        except StorageError:
            # Rows are already gone; orphaned objects are left for a bucket lifecycle rule.
            logger.exception("Failed to delete %s stored objects", len(keys))

    async def create_upload_slots(
        self,
        listing_id: str,
        user_id: str,
        count: int,
        mime_types: Sequence[str] | None = None,
    ) -> UploadSlots:
        await self._require_listing(listing_id)
        current = await self._session.scalar(
            select(func.count()).select_from(Photo).where(Photo.listing_id == listing_id)
        ) or 0
        if current + count > self.policy.max_files_per_listing:
            raise PhotoRequestError(
                f"Photo limit exceeded: {current} stored, {count} requested, "
                f"max {self.policy.max_files_per_listing}."
            )

        mime_types = list(mime_types or [])
        slots: list[UploadSlot] = []
        for index in range(count):
            mime = mime_types[index] if index < len(mime_types) else DEFAULT_MIME
            photo_id = str(uuid.uuid4())
            photo = Photo(
                id=photo_id,
                listing_id=listing_id,
                uploaded_by=user_id,
                status=PhotoStatus.uploading.value,
                s3_key_original=upload_key(user_id, listing_id, photo_id, mime),
                sort_order=current + index,
                mime=mime,
            )
            self._session.add(photo)
            try:
                url = await self._storage.presigned_put_url(photo.s3_key_original, mime)
            except StorageError as exc:
                await self._session.rollback()
                raise PhotoRequestError("Could not create upload slots.") from exc
            slots.append(UploadSlot(photo.id, photo.s3_key_original, url))

        await self._session.commit()
        logger.info("Upload slots created listing_id=%s count=%s", listing_id, count)
        return UploadSlots(items=slots, expires_in_seconds=self._storage.presign_expires_seconds)

    async def complete_upload(self, listing_id: str, upload: UploadedFile) -> Photo:
        photo = await self._session.get(Photo, upload.asset_id)
        if photo is None:
            raise PhotoNotFoundError(upload.asset_id)
        if photo.listing_id != listing_id:
            raise PhotoRequestError("Photo does not belong to this listing.")
        if photo.status != PhotoStatus.uploading.value:
            raise PhotoRequestError("Photo is already processed or processing.")
        if photo.s3_key_original != upload.key:
            raise PhotoRequestError("Storage key does not match the upload slot.")

        try:
            exists = await self._storage.object_exists(upload.key)
        except StorageError:
            logger.exception("Failed to check uploaded object photo_id=%s", photo.id)
            exists = False
        if not exists:
            photo.status = PhotoStatus.failed.value
            await self._session.commit()
            raise PhotoRequestError("Uploaded file was not found in storage.")

        photo.mime = upload.mime
        photo.width = upload.width
        photo.height = upload.height
        photo.size_bytes = upload.size
        photo.original_name = upload.original_name
        photo.status = PhotoStatus.processing.value
        await self._session.commit()
        logger.info("Upload confirmed photo_id=%s listing_id=%s", photo.id, listing_id)
        return photo

    async def list_photos(self, listing_id: str) -> list[Photo]:
        await self._require_listing(listing_id)
        result = await self._session.scalars(
            select(Photo)
            .where(Photo.listing_id == listing_id)
            .order_by(Photo.sort_order.asc(), Photo.created_at.asc())
        )
        return list(result.all())

    async def set_cover(self, listing_id: str, photo_id: str, is_cover: bool) -> None:
        photo = await self._get_photo(listing_id, photo_id)
        if photo.status != PhotoStatus.ready.value:
            raise PhotoRequestError("Photo is not ready yet.")
        if is_cover:
            await self._session.execute(
                update(Photo)
                .where(Photo.listing_id == listing_id, Photo.is_cover.is_(True), Photo.id != photo_id)
                .values(is_cover=False)
            )
        photo.is_cover = is_cover
        await self._session.commit()

    async def reorder(self, listing_id: str, ids: Sequence[str]) -> None:
        if len(set(ids)) != len(ids):
            raise PhotoRequestError("Photo ids must be unique.")
        result = await self._session.scalars(
            select(Photo).where(Photo.listing_id == listing_id, Photo.id.in_(ids))
        )
        photos = {photo.id: photo for photo in result.all()}
        if len(photos) != len(ids):
            raise PhotoRequestError("Some photos were not found.")
        for index, photo_id in enumerate(ids):
            photos[photo_id].sort_order = index
        await self._session.commit()

    async def delete_photo(self, listing_id: str, photo_id: str) -> None:
        photo = await self._get_photo(listing_id, photo_id)
        was_cover = photo.is_cover
        await self._session.delete(photo)
        await self._session.flush()
        if was_cover:
            successor = await self._session.scalar(
                select(Photo)
                .where(Photo.listing_id == listing_id)
                .order_by(Photo.sort_order.asc(), Photo.created_at.asc())
                .limit(1)
            )
            if successor is not None:
                successor.is_cover = True
        await self._session.commit()
        logger.info("Photo deleted photo_id=%s listing_id=%s", photo_id, listing_id)
        await self._delete_files([photo])

    async def delete_all(self, listing_id: str) -> int:
        result = await self._session.scalars(select(Photo).where(Photo.listing_id == listing_id))
        photos = list(result.all())
        if not photos:
            return 0
        for photo in photos:
            await self._session.delete(photo)
        await self._session.commit()
        logger.info("Deleted %s photos listing_id=%s", len(photos), listing_id)
        await self._delete_files(photos)
        return len(photos)


class PhotoPipeline:
    """Background step that turns a confirmed upload into stored variants.

    Runs after the request that confirmed the upload has finished, so it opens
    its own database session.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        storage: ObjectStorage,
        processor: ImageProcessor,
    ) -> None:
        self._session_factory = session_factory
        self._storage = storage
        self._processor = processor

    async def process(self, photo_id: str) -> None:
        async with self._session_factory() as session:
            photo = await session.get(Photo, photo_id)
            if photo is None:
                logger.warning("Photo vanished before processing photo_id=%s", photo_id)
                return
            try:
                photo.s3_key_variants = await self._render(photo)
                photo.status = PhotoStatus.ready.value
                logger.info("Photo processed photo_id=%s", photo_id)
            except Exception:  # noqa: BLE001 - any failure leaves the photo FAILED
                logger.exception("Failed to process photo photo_id=%s", photo_id)
                photo.status = PhotoStatus.failed.value
            await session.commit()

    async def _render(self, photo: Photo) -> dict[str, dict[str, str]]:
        original = await self._storage.get_object(photo.s3_key_original)
        processed = await asyncio.to_thread(
            self._processor.process, original, photo.width, photo.height
        )
        variants: dict[str, dict[str, str]] = {}
        for variant in processed.variants:
            key = processed_key(
                photo.uploaded_by or "anonymous",
                photo.listing_id,
                photo.id,
                variant.size,
                variant.format,
            )
            await self._storage.put_object(key, variant.body, variant.content_type)
            variants.setdefault(variant.format, {})[variant.size] = key
        return variants


def photo_view(photo: Photo, cdn_base_url: str) -> dict[str, Any]:
    return {
        "id": photo.id,
        "status": photo.status,
        "is_cover": photo.is_cover,
        "sort_order": photo.sort_order,
        "mime": photo.mime,
        "width": photo.width,
        "height": photo.height,
        "variants": photo.s3_key_variants,
        "cdn_base_url": cdn_base_url,
        "created_at": photo.created_at,
        "updated_at": photo.updated_at,
    }
