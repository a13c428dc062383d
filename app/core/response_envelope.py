from __future__ import annotations

import json
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any

from fastapi.encoders import jsonable_encoder
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response


def _success_message(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Success"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def success_envelope(message: str, data: Any = None) -> dict[str, Any]:
    """Envelope a route payload with an explicit, operation-specific message."""
    return {
        "success": True,
        "message": message,
        "data": jsonable_encoder(data),
        "timestamp": _timestamp(),
    }


def _build_success_envelope(data: Any, status_code: int) -> dict[str, Any]:
    return {
        "success": True,
        "message": _success_message(status_code),
        "data": data,
        "timestamp": _timestamp(),
    }


def _is_enveloped(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return False
    return "success" in payload and "message" in payload


def _normalize_envelope(payload: dict[str, Any], status_code: int) -> dict[str, Any]:
    normalized = dict(payload)
    normalized.setdefault("message", _success_message(status_code))
    normalized.setdefault("timestamp", _timestamp())
    return normalized


def _copy_headers(source: Response, target: Response) -> Response:
    for key, value in source.headers.items():
        if key.lower() in {"content-length", "content-type"}:
            continue
        target.headers[key] = value
    return target


class ResponseEnvelopeMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next) -> Response:
        response = await call_next(request)

        if response.status_code < 200 or response.status_code >= 300:
            return response

        # Convert 204 to a 200 success envelope for frontend consistency
        if response.status_code == 204:
            new_response = JSONResponse(status_code=200, content=_build_success_envelope(None, 200))
            return _copy_headers(response, new_response)

        content_type = response.headers.get("content-type", "")
        if not content_type.startswith("application/json"):
            return response

        raw_body = b"".join([chunk async for chunk in response.body_iterator])
        try:
            payload = json.loads(raw_body.decode("utf-8")) if raw_body else None
        except ValueError:
            passthrough = Response(
                content=raw_body, status_code=response.status_code, media_type=content_type
            )
            return _copy_headers(response, passthrough)

        if _is_enveloped(payload):
            content = _normalize_envelope(payload, response.status_code)
        else:
            content = _build_success_envelope(payload, response.status_code)
        new_response = JSONResponse(status_code=response.status_code, content=content)
        return _copy_headers(response, new_response)


def register_response_envelope(app) -> None:
    app.add_middleware(ResponseEnvelopeMiddleware)
