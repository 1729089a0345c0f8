from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["development", "production", "staging", "test"]
SameSite = Literal["lax", "strict", "none"]


def _resolve_env_files() -> tuple[str, ...]:
    env = os.getenv("CASALABIA_ENVIRONMENT", "development").lower()
    if env in {"prod", "production"}:
        return (".env", ".env.prod")
    if env in {"dev", "development"}:
        return (".env", ".env.dev")
    if env in {"test", "testing"}:
        return (".env", ".env.test")
    return (".env",)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CASALABIA_",
        env_file=_resolve_env_files(),
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: Environment = "development"
    project_name: str = "Casalabia Listings API"
    app_version: str = "0.1.0"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"
    log_json: bool = False
    allowed_hosts: list[str] = ["*"]
    cors_origins: list[str] = []
    enable_docs: bool = True
    max_upload_mb: int = 25
    features_listings: bool = True

    rate_limit_enabled: bool = True
    rate_limit: str = "60/minute"
    auth_rate_limit: str = "5/minute"
    ai_rate_limit: str = "60/minute"

    database_url: str | None = None
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "casalabia"
    db_auto_create: bool = True

    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    ai_temperature: float = 0.6
    ai_top_p: float = 0.8
    ai_frequency_penalty: float = 0.2
    ai_max_tokens: int = 2000
    ai_refine_enabled: bool = False
    ai_quality_threshold: float = 0.7
    ai_sandbox_key_prefix: str = "sk-test-"
    ai_timeout_seconds: float = 600.0

    session_cookie_name: str = "sid"
    session_idle_days: int = 7
    session_absolute_days: int = 30
    cookie_domain: str | None = None
    cookie_secure: bool = True
    cookie_samesite: SameSite = "lax"
    ip_hash_salt: str = "ip_salt"
    ua_hash_salt: str = "ua_salt"

    s3_bucket_name: str | None = None
    s3_endpoint_url: str | None = None
    aws_region: str = "eu-south-1"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    cdn_base_url: str = "https://media.casalabia.dev"
    media_presigned_url_expires_minutes: int = 5
    media_max_files_per_listing: int = 30
    media_max_file_size_mb: int = 20
    image_quality_webp: int = 85
    image_quality_avif: int = 75

    scheduler_enabled: bool = True
    session_cleanup_hour: int = 2
    expired_sessions_alert_threshold: int = 1000

    @property
    def async_database_uri(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            "postgresql+asyncpg://"
            f"{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
