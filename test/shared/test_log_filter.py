import io
import logging

from src.shared import log_filter


def _logger(name):
    logger = logging.getLogger(name)
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger, stream


def test_sensitive_data_is_masked():
    logger, stream = _logger("test_logger")

    log_filter.configure_sensitive_logging(logger)
    logger.info("User 192.168.0.1 used api_key=ABC123 and password=secret")
    message = stream.getvalue().strip()
    assert "192.168.0.1" not in message
    assert "api_key=ABC123" not in message
    assert "password=secret" not in message
    assert "[REDACTED_IP]" in message
    assert "api_key=<redacted>" in message
    assert "password=<redacted>" in message


def test_invalid_ip_not_redacted():
    logger, stream = _logger("invalid_ip")

    log_filter.configure_sensitive_logging(logger)
    logger.info("Bad IP 999.999.999.999 detected")
    message = stream.getvalue().strip()
    assert "999.999.999.999" in message
    assert "[REDACTED_IP]" not in message


def test_configure_is_idempotent():
    logger, _ = _logger("idempotent")
    log_filter.configure_sensitive_logging(logger)
    log_filter.configure_sensitive_logging(logger)
    assert logger.filters.count(log_filter._FILTER) == 1
    assert logger.handlers[0].filters.count(log_filter._FILTER) == 1


def test_args_are_masked():
    logger, stream = _logger("with_args")
    log_filter.configure_sensitive_logging(logger)
    logger.info("Request from %s", "10.0.0.7")
    assert stream.getvalue().strip() == "Request from [REDACTED_IP]"
