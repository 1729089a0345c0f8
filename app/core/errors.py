"""Render every failure as ``{"error": {"code", "message", "details"}}``."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMIT_EXCEEDED",
    500: "INTERNAL_SERVER_ERROR",
}


def error_detail(code: str, message: str) -> dict[str, str]:
    """Shape for ``HTTPException.detail`` when a router wants its own error code."""

    return {"code": code, "message": message}


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        body["details"] = details
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"error": body}),
        headers=headers,
    )


def _default_code(status_code: int) -> str:
    return STATUS_CODES.get(status_code, "INTERNAL_SERVER_ERROR" if status_code >= 500 else "BAD_REQUEST")


def _default_message(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


async def http_exception_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    code = _default_code(exc.status_code)
    details = None
    if isinstance(detail, dict):
        code = detail.get("code", code)
        message = detail.get("message") or _default_message(exc.status_code)
        details = detail.get("details")
    else:
        message = str(detail) if detail else _default_message(exc.status_code)
    return error_response(exc.status_code, code, message, details, getattr(exc, "headers", None))


async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return error_response(422, "VALIDATION_ERROR", message, errors)


async def rate_limit_handler(_: Request, exc: RateLimitExceeded) -> JSONResponse:
    return error_response(429, "RATE_LIMIT_EXCEEDED", f"Rate limit exceeded: {exc.detail}")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(500, "INTERNAL_SERVER_ERROR", "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
