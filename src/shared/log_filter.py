import logging
import re
from typing import List, Tuple

_REPLACEMENTS: List[Tuple[re.Pattern[str], str]] = [
    # IPv4 addresses
    (
        re.compile(
            r"\b(?:(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)\.){3}"
            r"(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)\b"
        ),
        "[REDACTED_IP]",
    ),
    # API keys and tokens
    (
        re.compile(r"(?i)(api[_-]?key|token|authorization)[:=]\s*[^\s]+"),
        r"\1=<redacted>",
    ),
    # Passwords
    (
        re.compile(r"(?i)(password|passwd|pwd)[:=]\s*[^\s]+"),
        r"\1=<redacted>",
    ),
]


def mask(message: str) -> str:
    for pattern, repl in _REPLACEMENTS:
        message = pattern.sub(repl, message)
    return message


class SensitiveDataFilter(logging.Filter):
    """Mask sensitive data such as IPs, API keys, and passwords."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = mask(record.getMessage())
        record.args = ()
        return True


_FILTER = SensitiveDataFilter()


def configure_sensitive_logging(logger: logging.Logger) -> None:
    """Attach the shared sensitive data filter to ``logger`` and its handlers."""
    if _FILTER not in logger.filters:
        logger.addFilter(_FILTER)
    for handler in logger.handlers:
        if _FILTER not in handler.filters:
            handler.addFilter(_FILTER)
