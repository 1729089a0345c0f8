from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.responses import Response

from app.core.config import Settings, get_settings
from app.core.errors import error_detail
from app.db.session import AsyncSessionFactory, get_session
from services.ai_client import AIConfigurationError, ChatCompletionClient
from services.auth import AuthService, AuthUser
from services.draft_generator import DraftGeneratorConfig, DraftGeneratorService
from services.image_processing import ImageLimits, ImageProcessor
from services.listings import ListingsService
from services.photos import PhotoPipeline, PhotoPolicy, PhotosService
from services.sessions import SessionPolicy, SessionService
from services.storage import ObjectStorage, StorageConfigurationError, create_s3_client


@dataclass(frozen=True)
class CurrentSession:
    user: AuthUser
    session_id: str


def session_policy(settings: Settings) -> SessionPolicy:
    return SessionPolicy(
        idle_days=settings.session_idle_days,
        absolute_days=settings.session_absolute_days,
        ip_hash_salt=settings.ip_hash_salt,
        ua_hash_salt=settings.ua_hash_salt,
    )


def get_listings_service(session: AsyncSession = Depends(get_session)) -> ListingsService:
    return ListingsService(session)


def get_auth_service(
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(session, SessionService(session, session_policy(settings)))


def draft_generator_config(settings: Settings) -> DraftGeneratorConfig:
    return DraftGeneratorConfig(
        refine_enabled=settings.ai_refine_enabled,
        quality_threshold=settings.ai_quality_threshold,
    )


def get_draft_generator(settings: Settings = Depends(get_settings)) -> DraftGeneratorService:
    try:
        client = ChatCompletionClient(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            temperature=settings.ai_temperature,
            top_p=settings.ai_top_p,
            frequency_penalty=settings.ai_frequency_penalty,
            max_tokens=settings.ai_max_tokens,
            sandbox_prefix=settings.ai_sandbox_key_prefix,
            timeout=settings.ai_timeout_seconds,
        )
    except AIConfigurationError as exc:
        raise HTTPException(
            status_code=500, detail=error_detail("AI_NOT_CONFIGURED", str(exc))
        ) from exc
    return DraftGeneratorService(client, config=draft_generator_config(settings))


def _clear_cookie_header(settings: Settings) -> str:
    response = Response()
    response.delete_cookie(
        settings.session_cookie_name,
        domain=settings.cookie_domain,
        secure=settings.cookie_secure,
        httponly=True,
        samesite=settings.cookie_samesite,
    )
    return response.headers["set-cookie"]


async def get_current_user(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> CurrentSession:
    session_id = request.cookies.get(settings.session_cookie_name)
    if not session_id:
        raise HTTPException(status_code=401, detail=error_detail("UNAUTHORIZED", "Session missing."))

    user = await auth.validate_session(session_id)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail=error_detail("UNAUTHORIZED", "Session is invalid or expired."),
            headers={"set-cookie": _clear_cookie_header(settings)},
        )
    return CurrentSession(user=user, session_id=session_id)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return AsyncSessionFactory


@lru_cache
def _s3_client(
    region: str,
    endpoint_url: str | None,
    access_key_id: str | None,
    secret_access_key: str | None,
) -> Any:
    return create_s3_client(region, endpoint_url, access_key_id, secret_access_key)


def get_object_storage(settings: Settings = Depends(get_settings)) -> ObjectStorage:
    try:
        return ObjectStorage(
            _s3_client(
                settings.aws_region,
                settings.s3_endpoint_url,
                settings.aws_access_key_id,
                settings.aws_secret_access_key,
            )
            if settings.s3_bucket_name
            else None,
            settings.s3_bucket_name,
            presign_expires_seconds=settings.media_presigned_url_expires_minutes * 60,
        )
    except StorageConfigurationError as exc:
        raise HTTPException(
            status_code=500, detail=error_detail("STORAGE_NOT_CONFIGURED", str(exc))
        ) from exc


def get_image_processor(settings: Settings = Depends(get_settings)) -> ImageProcessor:
    return ImageProcessor(
        ImageLimits(
            max_bytes=settings.media_max_file_size_mb * 1024 * 1024,
            quality_webp=settings.image_quality_webp,
            quality_avif=settings.image_quality_avif,
        )
    )


def get_photos_service(
    session: AsyncSession = Depends(get_session),
    storage: ObjectStorage = Depends(get_object_storage),
    settings: Settings = Depends(get_settings),
) -> PhotosService:
    policy = PhotoPolicy(
        max_files_per_listing=settings.media_max_files_per_listing,
        cdn_base_url=settings.cdn_base_url,
    )
    return PhotosService(session, storage, policy)


def get_photo_pipeline(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    storage: ObjectStorage = Depends(get_object_storage),
    processor: ImageProcessor = Depends(get_image_processor),
) -> PhotoPipeline:
    return PhotoPipeline(session_factory, storage, processor)
