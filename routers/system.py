from __future__ import annotations

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.core.config import Settings, get_settings
from schemas.system import ConfigResponse, FeaturesResponse, HealthResponse, LimitsResponse

router = APIRouter(tags=["system"])
health_router = APIRouter(tags=["system"])

_STARTED_AT = time.monotonic()


@health_router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        uptime_sec=int(time.monotonic() - _STARTED_AT),
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/config", response_model=ConfigResponse)
async def public_config(settings: Settings = Depends(get_settings)) -> ConfigResponse:
    return ConfigResponse(
        version=settings.app_version,
        env=settings.environment,
        limits=LimitsResponse(max_upload_mb=settings.max_upload_mb),
        features=FeaturesResponse(
            listings=settings.features_listings,
            ai_refine=settings.ai_refine_enabled,
        ),
    )
