from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from app.core.config import Settings, get_settings
from app.core.errors import register_exception_handlers
from app.core.logging_config import configure_logging
from app.core.rate_limit import limiter
from app.db import models  # noqa: F401 - registers tables on Base.metadata
from app.db.session import AsyncSessionFactory, create_tables, dispose_engine
from routers import auth, listings, photos, system
from routers.dependencies import session_policy
from scheduler.job_runner import SchedulerConfig, start_scheduler
from schemas.system import ErrorResponse

ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    status: {"model": ErrorResponse} for status in (400, 401, 404, 429, 500)
}


def _lifespan(settings: Settings):  # type: ignore[no-untyped-def]
    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if settings.db_auto_create:
            await create_tables()
        scheduler = None
        if settings.scheduler_enabled:
            scheduler = start_scheduler(
                AsyncSessionFactory,
                SchedulerConfig(
                    cleanup_hour=settings.session_cleanup_hour,
                    expired_alert_threshold=settings.expired_sessions_alert_threshold,
                    policy=session_policy(settings),
                ),
            )
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.shutdown(wait=False)
            await dispose_engine()

    return lifespan


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)
    docs_url = "/docs" if settings.enable_docs else None
    redoc_url = "/redoc" if settings.enable_docs else None
    openapi_url = "/openapi.json" if settings.enable_docs else None
    app = FastAPI(
        title=settings.project_name,
        version=settings.app_version,
        docs_url=docs_url,
        redoc_url=redoc_url,
        openapi_url=openapi_url,
        lifespan=_lifespan(settings),
    )

    if settings.environment == "production":
        app.add_middleware(HTTPSRedirectMiddleware)

    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.allowed_hosts,
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or ["*"],
        allow_credentials=bool(settings.cors_origins),
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    register_exception_handlers(app)

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):  # type: ignore[no-untyped-def]
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["X-XSS-Protection"] = "0"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        response.headers["Content-Security-Policy"] = "default-src 'self'"
        return response

    app.include_router(system.health_router)
    app.include_router(system.router, prefix=settings.api_v1_prefix)
    app.include_router(auth.router, prefix=settings.api_v1_prefix, responses=ERROR_RESPONSES)
    app.include_router(listings.router, prefix=settings.api_v1_prefix, responses=ERROR_RESPONSES)
    app.include_router(photos.router, prefix=settings.api_v1_prefix, responses=ERROR_RESPONSES)
    return app
