"""Shared middleware for the labyrinth API with secure defaults."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Any

from cachetools import TTLCache
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .errors import register_error_handlers
from .observability import ObservabilitySettings, configure_observability


@dataclass(frozen=True)
class SecuritySettings:
    """Runtime configuration for security middleware."""

    rate_limit_requests: int
    rate_limit_window: int
    max_body_size: int
    enable_https: bool


def _parse_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(
            f"Environment variable {name} must be a non-negative integer, got {value!r}"
        )
    if parsed < 0:
        raise ValueError(
            f"Environment variable {name} must be a non-negative integer, got {parsed!r}"
        )
    return parsed


def _load_security_settings() -> SecuritySettings:
    """Load security middleware settings from environment variables.

    Rate limiting is off by default: throttling a crawler lets it escape the
    labyrinth sooner.
    """

    return SecuritySettings(
        rate_limit_requests=_parse_int("RATE_LIMIT_REQUESTS", 0),
        rate_limit_window=_parse_int("RATE_LIMIT_WINDOW", 60),
        max_body_size=_parse_int("MAX_BODY_SIZE", 64 * 1024),
        enable_https=os.getenv("ENABLE_HTTPS", "false").lower() == "true",
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request counter per client IP."""

    def __init__(self, app: FastAPI, max_requests: int, window_seconds: int) -> None:
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = max(window_seconds, 1)
        # Keys are (ip, window number); stale windows age out of the cache.
        self._counts: TTLCache[tuple[str, int], int] = TTLCache(
            maxsize=10000, ttl=self.window_seconds
        )

    async def dispatch(self, request: Request, call_next):
        if self.max_requests <= 0:
            return await call_next(request)
        ip = request.client.host if request.client else "unknown"
        key = (ip, int(time.time() // self.window_seconds))
        count = self._counts.get(key, 0)
        if count >= self.max_requests:
            return JSONResponse(status_code=429, content={"detail": "Too Many Requests"})
        self._counts[key] = count + 1
        return await call_next(request)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared body exceeds the configured limit."""

    def __init__(self, app: FastAPI, max_body_size: int) -> None:
        super().__init__(app)
        self.max_body_size = max_body_size

    async def dispatch(self, request: Request, call_next):
        if self.max_body_size <= 0:
            return await call_next(request)
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > self.max_body_size:
            return JSONResponse(
                status_code=413, content={"detail": "Request body too large"}
            )
        return await call_next(request)


def add_security_middleware(
    app: FastAPI, security_settings: SecuritySettings | None = None
) -> SecuritySettings:
    settings = security_settings or _load_security_settings()

    app.add_middleware(BodySizeLimitMiddleware, max_body_size=settings.max_body_size)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window,
    )

    @app.middleware("http")
    async def _security_headers(request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Content-Security-Policy", "default-src 'self'")
        if settings.enable_https:
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )
        return response

    return settings


def create_app(
    *,
    security_settings: SecuritySettings | None = None,
    observability_settings: ObservabilitySettings | None = None,
    **kwargs: Any,
) -> FastAPI:
    app = FastAPI(**kwargs)
    add_security_middleware(app, security_settings=security_settings)
    configure_observability(app, settings=observability_settings)
    register_error_handlers(app)
    return app
