"""Operational surface of the labyrinth service.

Log records leave the process as one JSON object per line, stamped with the
id of the request that produced them. ``/metrics`` exposes the Prometheus
registry and ``/health`` reports the checks the service registered (the
labyrinth registers one for its corpus file).
"""
from __future__ import annotations

import json
import logging
import os
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .log_filter import configure_sensitive_logging
from .metrics import REQUEST_LATENCY, get_metrics, record_request

logger = logging.getLogger(__name__)

_current_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    return _current_request_id.get()


@dataclass
class HealthCheckResult:
    ok: bool
    detail: Dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> str:
        return "ok" if self.ok else "error"


HealthCheck = Callable[[], HealthCheckResult]


@dataclass
class ObservabilitySettings:
    """Where the operational routes live and how loud the logs are.

    ``debug`` wins over ``log_level``: a debug deployment wants the
    generator's per-request lines, which are emitted at DEBUG.
    """

    service_name: str = "labyrinth"
    log_level: str | None = None
    debug: bool = False
    metrics_path: str = "/metrics"
    health_path: str = "/health"
    request_id_header: str = "X-Request-ID"

    def resolved_level(self) -> int:
        if self.debug:
            return logging.DEBUG
        level = logging.getLevelName((self.log_level or os.getenv("LOG_LEVEL", "INFO")).upper())
        return level if isinstance(level, int) else logging.INFO


class JsonFormatter(logging.Formatter):
    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service_name,
            "message": record.getMessage(),
        }
        request_id = get_request_id()
        if request_id:
            entry["request_id"] = request_id
        entry.update(getattr(record, "request_fields", {}))
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(settings: ObservabilitySettings) -> None:
    """Route every record through JSON handlers on the root logger.

    An existing root handler (e.g. one installed by a test) is reused and
    switched to the JSON formatter; otherwise a stderr handler is added.
    """
    root = logging.getLogger()
    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    level = settings.resolved_level()
    for handler in root.handlers:
        if not isinstance(handler.formatter, JsonFormatter):
            handler.setFormatter(JsonFormatter(settings.service_name))
        handler.setLevel(level)
    root.setLevel(level)
    configure_sensitive_logging(root)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag the request with an id, time it and log one line when it completes."""

    def __init__(self, app: FastAPI, settings: ObservabilitySettings) -> None:
        super().__init__(app)
        self.settings = settings
        self.access_logger = logging.getLogger(settings.service_name)

    async def dispatch(self, request: Request, call_next):
        header = self.settings.request_id_header
        request_id = request.headers.get(header) or uuid.uuid4().hex
        token = _current_request_id.set(request_id)
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers.setdefault(header, request_id)
            return response
        finally:
            elapsed = time.perf_counter() - started
            endpoint = getattr(request.scope.get("route"), "path", request.url.path)
            record_request(request.method, endpoint, status_code)
            REQUEST_LATENCY.labels(method=request.method, endpoint=endpoint).observe(elapsed)
            self.access_logger.info(
                "Handled request",
                extra={
                    "request_fields": {
                        "method": request.method,
                        "path": request.url.path,
                        "status_code": status_code,
                        "duration_seconds": round(elapsed, 6),
                    }
                },
            )
            _current_request_id.reset(token)


def _health_report(app: FastAPI) -> JSONResponse:
    checks: Dict[str, Dict[str, Any]] = {}
    healthy = True
    for name, check in app.state.health_checks.items():
        try:
            result = check()
        except Exception as exc:
            logger.exception("Health check '%s' raised", name)
            result = HealthCheckResult(False, {"error": type(exc).__name__})
        healthy = healthy and result.ok
        checks[name] = {"status": result.status, "detail": result.detail}
    payload = {
        "status": "ok" if healthy else "error",
        "service": app.state.observability.service_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }
    return JSONResponse(payload, status_code=200 if healthy else 503)


def configure_observability(
    app: FastAPI, settings: ObservabilitySettings | None = None
) -> ObservabilitySettings:
    settings = settings or ObservabilitySettings()
    configure_logging(settings)
    app.state.observability = settings
    app.state.health_checks = {}
    app.add_middleware(RequestContextMiddleware, settings=settings)

    @app.get(settings.metrics_path, include_in_schema=False)
    async def metrics() -> PlainTextResponse:
        return PlainTextResponse(get_metrics(), media_type="text/plain; version=0.0.4")

    @app.get(settings.health_path, include_in_schema=False)
    def health() -> JSONResponse:
        return _health_report(app)

    return settings


def register_health_check(app: FastAPI, name: str) -> Callable[[HealthCheck], HealthCheck]:
    """Decorator adding a synchronous check to the ``/health`` report."""
    if not hasattr(app.state, "health_checks"):
        raise RuntimeError("configure_observability() must run before registering checks")

    def decorator(check: HealthCheck) -> HealthCheck:
        app.state.health_checks[name] = check
        return check

    return decorator
