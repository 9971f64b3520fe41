# shared/honeypot_logger.py
# Dedicated logger for labyrinth hits.
"""JSON-lines log of every request served from inside the labyrinth."""

import datetime
import json
import logging
import os
import tempfile

logger = logging.getLogger(__name__)

# --- Configuration ---
HONEYPOT_LOG_FILE = os.getenv("HONEYPOT_LOG_FILE", "/app/logs/labyrinth_hits.log")

# --- Logger Setup ---
honeypot_logger = logging.getLogger("honeypot_logger")
honeypot_logger.setLevel(logging.INFO)
honeypot_logger.propagate = False


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": datetime.datetime.fromtimestamp(
                record.created, datetime.timezone.utc
            )
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            **getattr(record, "details", {}),
        }
        return json.dumps(log_record, default=str)


def _build_handler(log_file: str) -> logging.Handler:
    """File handler for ``log_file``, falling back to the temp dir, then stderr."""
    for candidate in (
        log_file,
        os.path.join(tempfile.gettempdir(), os.path.basename(log_file)),
    ):
        try:
            os.makedirs(os.path.dirname(candidate) or ".", exist_ok=True)
            return logging.FileHandler(candidate, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Cannot write labyrinth hit log {candidate}: {e}")
    return logging.StreamHandler()


def configure_honeypot_logger(log_file: str = HONEYPOT_LOG_FILE) -> logging.Logger:
    """Point the hit logger at ``log_file``, replacing any previous handler."""
    for handler in list(honeypot_logger.handlers):
        honeypot_logger.removeHandler(handler)
        handler.close()
    handler = _build_handler(log_file)
    handler.setFormatter(JsonFormatter())
    honeypot_logger.addHandler(handler)
    return honeypot_logger


def log_honeypot_hit(details: dict) -> None:
    """Log a labyrinth hit with structured details (ip, user_agent, path, ...)."""
    if not honeypot_logger.handlers:
        configure_honeypot_logger()
    honeypot_logger.info("Labyrinth page served", extra={"details": details})
