"""S3-compatible object storage used for listing photos.

boto3 is synchronous, so every call is pushed to a worker thread to keep the
event loop free.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

IMMUTABLE_CACHE_CONTROL = "public, max-age=31536000, immutable"
_DELETE_BATCH = 1000
_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}

MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/heic": "heic",
}


class StorageError(RuntimeError):
    """Raised when the object store rejects or fails a request."""


class StorageConfigurationError(StorageError):
    """Raised when no bucket is configured."""


def create_s3_client(
    region: str,
    endpoint_url: str | None = None,
    access_key_id: str | None = None,
    secret_access_key: str | None = None,
) -> Any:
    kwargs: dict[str, Any] = {"region_name": region}
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    if access_key_id and secret_access_key:
        kwargs["aws_access_key_id"] = access_key_id
        kwargs["aws_secret_access_key"] = secret_access_key
    return boto3.client("s3", **kwargs)


def upload_key(user_id: str, listing_id: str, photo_id: str, mime: str) -> str:
    extension = MIME_EXTENSIONS.get(mime, "jpg")
    return f"uploads/users/{user_id}/listings/{listing_id}/{photo_id}/orig.{extension}"


def processed_key(user_id: str, listing_id: str, photo_id: str, size: str, fmt: str) -> str:
    return f"processed/users/{user_id}/listings/{listing_id}/{photo_id}/{size}.{fmt}"


class ObjectStorage:
    def __init__(self, client: Any, bucket: str | None, presign_expires_seconds: int = 300) -> None:
        if not bucket:
            raise StorageConfigurationError("Object storage bucket is not configured.")
        self._client = client
        self._bucket = bucket
        self.presign_expires_seconds = presign_expires_seconds

    async def presigned_put_url(self, key: str, content_type: str) -> str:
        try:
            return await asyncio.to_thread(
                self._client.generate_presigned_url,
                "put_object",
                Params={"Bucket": self._bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=self.presign_expires_seconds,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Failed to presign upload key=%s", key)
            raise StorageError("Failed to generate upload URL.") from exc

    async def object_exists(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self._client.head_object, Bucket=self._bucket, Key=key)
        except ClientError as exc:
            if str(exc.response.get("Error", {}).get("Code")) in _MISSING_CODES:
                return False
            raise StorageError(f"Failed to check object {key}.") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to check object {key}.") from exc
        return True

    async def get_object(self, key: str) -> bytes:
        def _read() -> bytes:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
            return response["Body"].read()

        try:
            return await asyncio.to_thread(_read)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to read object {key}.") from exc

    async def put_object(
        self,
        key: str,
        body: bytes,
        content_type: str,
        cache_control: str = IMMUTABLE_CACHE_CONTROL,
    ) -> None:
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self._bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
                CacheControl=cache_control,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to upload object {key}.") from exc
        logger.info("Uploaded object key=%s bytes=%s", key, len(body))

    async def delete_objects(self, keys: Iterable[str]) -> int:
        keys = [key for key in keys if key]
        for start in range(0, len(keys), _DELETE_BATCH):
            batch = keys[start : start + _DELETE_BATCH]
            try:
                await asyncio.to_thread(
                    self._client.delete_objects,
                    Bucket=self._bucket,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                )
            except (BotoCoreError, ClientError) as exc:
                raise StorageError(f"Failed to delete {len(batch)} objects.") from exc
        if keys:
            logger.info("Deleted %s objects", len(keys))
        return len(keys)
