from __future__ import annotations

import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Iterable

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for failures that map onto an error envelope."""

    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, error: str | None = None) -> None:
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)


class BadRequest(AppError):
    status_code = 400
    default_message = "Bad request"


class InvalidTransition(AppError):
    status_code = 400
    default_message = "Invalid status transition"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(AppError):
    status_code = 404
    default_message = "Resource not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict"


class ValidationFailed(AppError):
    status_code = 422
    default_message = "Validation failed"

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors = list(errors)
        super().__init__(self.default_message, ", ".join(self.errors))


class Internal(AppError):
    status_code = 500
    default_message = "Internal server error"


def _default_message(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Request failed"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_error_payload(message: str, error: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "success": False,
        "message": message,
        "timestamp": _timestamp(),
    }
    if error is not None:
        payload["error"] = error
    return payload


def _build_response(
    status_code: int,
    message: str,
    error: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(build_error_payload(message, error)),
        headers=headers,
    )


def _parse_http_exception_detail(detail: Any, status_code: int) -> tuple[str, str | None]:
    message = _default_message(status_code)
    if isinstance(detail, dict):
        message = detail.get("message") or detail.get("detail") or message
        error = detail.get("error")
        return message, str(error) if error is not None else None
    if isinstance(detail, list):
        return message, ", ".join(str(item) for item in detail)
    if isinstance(detail, str):
        return detail, None
    return message, str(detail)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed: %s", exc.message)
    return _build_response(exc.status_code, exc.message, exc.error)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message, error = _parse_http_exception_detail(exc.detail, exc.status_code)
    return _build_response(exc.status_code, message, error, getattr(exc, "headers", None))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages: list[str] = []
    for item in exc.errors():
        loc = item.get("loc") or []
        msg = item.get("msg") or "Invalid value"
        # Drop the request section (body/query/path) from the location
        loc_parts = [str(part) for part in loc if part not in {"body", "query", "path"}]
        messages.append(f"{'.'.join(loc_parts)}: {msg}" if loc_parts else str(msg))
    return _build_response(422, "Validation failed", ", ".join(messages) or None)


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    response = _build_response(429, "Too many requests", getattr(exc, "detail", None))
    headers = getattr(exc, "headers", None)
    if isinstance(headers, dict):
        response.headers.update(headers)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _build_response(500, "Internal server error")


def register_exception_handlers(app) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
