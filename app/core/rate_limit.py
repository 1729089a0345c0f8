from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import get_settings

settings = get_settings()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit],
    enabled=settings.rate_limit_enabled,
)


def auth_limit() -> str:
    return get_settings().auth_rate_limit


def ai_limit() -> str:
    return get_settings().ai_rate_limit
