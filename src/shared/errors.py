"""JSON error envelope for requests that fall outside the labyrinth.

Labyrinth pages answer with plain text on failure; everything else the app
serves (unknown routes, bad methods, oversized bodies) gets
``{"error": {"code", "message"}, "request_id", "detail"}``.
"""

from __future__ import annotations

import logging
import os
import uuid
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .observability import get_request_id

logger = logging.getLogger(__name__)

ERROR_CODE_BY_STATUS = {
    400: "invalid_request",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
    422: "validation_error",
    429: "rate_limited",
    500: "internal_error",
}


def _phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Request failed"


def error_response(
    request: Request,
    status_code: int,
    message: str,
    details: Any | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    settings = getattr(request.app.state, "observability", None)
    header = settings.request_id_header if settings else "X-Request-ID"
    request_id = request.headers.get(header) or get_request_id() or uuid.uuid4().hex

    error: dict[str, Any] = {
        "code": ERROR_CODE_BY_STATUS.get(status_code, f"http_{status_code}"),
        "message": message,
    }
    if details is not None:
        error["details"] = details
    response = JSONResponse(
        {"error": error, "request_id": request_id, "detail": message},
        status_code=status_code,
        headers=headers,
    )
    response.headers.setdefault(header, request_id)
    return response


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else _phrase(exc.status_code)
        return error_response(request, exc.status_code, message, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Validation details stay server-side unless explicitly enabled.
        include = os.getenv("ERROR_INCLUDE_DETAILS", "false").lower() == "true"
        details = exc.errors() if include else None
        return error_response(request, 422, "Validation error", details=details)

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return error_response(request, 500, _phrase(500))
