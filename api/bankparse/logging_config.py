"""
Structured JSON logging configuration.

JSON lines are easier to ship and query than free text; set LOG_JSON=false
for the plain developer format.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict

_RESERVED = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info", "taskName",
}


class JSONFormatter(logging.Formatter):
    """Formatter that outputs logs as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # extra= fields (request_id, kind, strategy, duration_ms, ...)
        for key, value in record.__dict__.items():
            if key not in _RESERVED and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_structured_logging(use_json: bool | None = None, log_level: str | None = None):
    """
    Set up root logging.

    Args:
        use_json: JSON formatter when True; defaults to the LOG_JSON env var.
        log_level: DEBUG, INFO, ...; defaults to the LOG_LEVEL env var.
    """
    if use_json is None:
        use_json = os.getenv("LOG_JSON", "true").lower() == "true"
    level_name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    if use_json:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Suppress noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pdfminer").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)

    return root_logger


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context: Any
) -> None:
    """
    Log a message with additional context fields.

    Example:
        log_with_context(
            logger,
            logging.INFO,
            "Statement parsed",
            kind="pdf",
            strategy="pdfminer",
            duration_ms=150
        )
    """
    extra = {k: v for k, v in context.items()}
    logger.log(level, message, extra=extra)
