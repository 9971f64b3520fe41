# labyrinth/labyrinth_api.py
import logging
import os
import re
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from pydantic import BaseModel, Field, ValidationError, field_validator
from starlette.concurrency import run_in_threadpool

from src.shared.config import CONFIG, Config
from src.shared.config_schema import validate_config
from src.shared.honeypot_logger import configure_honeypot_logger, log_honeypot_hit
from src.shared.metrics import LABYRINTH_HITS
from src.shared.middleware import create_app
from src.shared.observability import (
    HealthCheckResult,
    ObservabilitySettings,
    register_health_check,
)

from .generator import PageGenerator

logger = logging.getLogger(__name__)

SENSITIVE_HEADERS = {"authorization", "cookie", "set-cookie"}


class LabyrinthPathValidator(BaseModel):
    """Validates the requested page name under the labyrinth base path."""

    page: str = Field(default="", max_length=2048, description="Requested page")

    @field_validator("page")
    @classmethod
    def sanitize_page(cls, v: str) -> str:
        if not v:
            return ""
        v = re.sub(r"[\x00-\x1f\x7f]", "", v)
        return v.replace("..", "")


def sanitize_headers(headers: Dict[str, str]) -> Dict[str, str]:
    sanitized: Dict[str, str] = {}
    for k, v in headers.items():
        if k.lower() in SENSITIVE_HEADERS:
            continue
        cleaned = re.sub(r"[\x00-\x1f\x7f]", "", str(v))
        sanitized[k] = cleaned[:1024]
    return sanitized


def _route_prefix(base_path: str) -> str:
    return base_path if base_path.endswith("/") else base_path + "/"


def create_labyrinth_app(
    config: Optional[Config] = None, generator: Optional[PageGenerator] = None
) -> FastAPI:
    """Build the labyrinth FastAPI app for ``config`` (defaults to ``CONFIG``)."""
    config = config or CONFIG
    validate_config(config)

    debug = config.APP_ENV == "development" or config.DEBUG
    generator = generator or PageGenerator(
        title=config.LABYRINTH_PAGE_TITLE, stylesheet=config.LABYRINTH_STYLESHEET
    )
    params = config.generation_params()
    prefix = _route_prefix(config.LABYRINTH_BASE_PATH)

    app = create_app(
        title="labyrinth",
        observability_settings=ObservabilitySettings(
            service_name="labyrinth", log_level=config.LOG_LEVEL, debug=debug
        ),
    )
    logger.debug("Debug logging enabled.")
    configure_honeypot_logger(config.HONEYPOT_LOG_FILE)
    app.state.generator = generator

    @register_health_check(app, "corpus")
    def _corpus_health() -> HealthCheckResult:
        try:
            size = os.stat(config.LABYRINTH_CORPUS).st_size
        except OSError:
            return HealthCheckResult(False, {"corpus_readable": False})
        if size == 0:
            return HealthCheckResult(False, {"corpus_readable": True, "empty": True})
        return HealthCheckResult(True, {"corpus_bytes": size})

    @app.get("/", include_in_schema=False)
    async def root():
        return {"message": "Labyrinth API"}

    @app.get(prefix + "{page:path}", include_in_schema=False)
    async def labyrinth_page(request: Request, page: str = ""):
        try:
            page = LabyrinthPathValidator(page=page).page
        except ValidationError as e:
            logger.warning(f"Invalid labyrinth page parameter: {e}")
            raise HTTPException(status_code=400, detail="Invalid path")

        client_ip = request.client.host if request.client else "unknown"
        user_agent = request.headers.get("user-agent", "unknown")[:500]
        details = {
            "ip": client_ip,
            "user_agent": user_agent,
            "method": request.method,
            "path": str(request.url.path)[:2048],
            "referer": request.headers.get("referer", "-")[:2048],
            "headers": sanitize_headers(dict(request.headers)),
        }
        try:
            log_honeypot_hit(details)
        except Exception as e:
            logger.error(f"Error logging labyrinth hit: {e}")
        LABYRINTH_HITS.inc()
        logger.debug(f"LABYRINTH HIT: page={page!r}, UA='{user_agent}'")

        status, body = await run_in_threadpool(
            request.app.state.generator.generate, params
        )
        if status == 200:
            return HTMLResponse(content=body, status_code=status)
        return PlainTextResponse(content=body, status_code=status)

    return app


app = create_labyrinth_app()


def main() -> None:
    # Logging was configured when the module-level app was built.
    import uvicorn

    logger.info("--- Labyrinth API Starting ---")
    logger.info(f"Base path: {CONFIG.LABYRINTH_BASE_PATH}")
    logger.info(f"Corpus: {CONFIG.LABYRINTH_CORPUS}")
    logger.info(
        "Block size: %s, total size: %s",
        CONFIG.LABYRINTH_BLOCK_SIZE or "default",
        CONFIG.LABYRINTH_TOTAL_SIZE or "default",
    )
    logger.info(f"Starting Labyrinth API on port {CONFIG.LABYRINTH_API_PORT}")
    uvicorn.run(
        app,
        host=CONFIG.LABYRINTH_HOST,
        port=CONFIG.LABYRINTH_API_PORT,
        log_level=CONFIG.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
