from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str = "ok"
    uptime_sec: int = Field(alias="uptimeSec")
    timestamp: datetime


class LimitsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    max_upload_mb: int = Field(alias="maxUploadMb")


class FeaturesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    listings: bool
    ai_refine: bool = Field(alias="aiRefine")


class ConfigResponse(BaseModel):
    version: str
    env: str
    limits: LimitsResponse
    features: FeaturesResponse


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Any | None = None


class ErrorResponse(BaseModel):
    error: ErrorBody
