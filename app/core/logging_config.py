from __future__ import annotations

import logging
from logging.config import dictConfig

from app.core.config import Settings

_PLAIN_FORMAT = "%(levelname)s %(asctime)s %(name)s %(message)s"
_JSON_FORMAT = (
    '{"level":"%(levelname)s","time":"%(asctime)s","logger":"%(name)s","message":"%(message)s"}'
)

# Third-party loggers that are too chatty at DEBUG.
_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "apscheduler", "sqlalchemy.engine")


def configure_logging(settings: Settings) -> None:
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": _JSON_FORMAT if settings.log_json else _PLAIN_FORMAT,
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                }
            },
            "root": {
                "level": settings.log_level,
                "handlers": ["default"],
            },
        }
    )

    logging.getLogger("uvicorn.error").setLevel(settings.log_level)
    if settings.log_level.upper() == "DEBUG":
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.INFO)
