"""
Structured JSON logging configuration.

Produces one JSON object per line so logs from the billing service can be
parsed by the hosting platform's log search.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Attributes every LogRecord carries; anything else came in through ``extra``
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

        # tenant_id, document_id, report_kind, duration_ms, ...
        for key, value in record.__dict__.items():
            if key not in _RESERVED:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_structured_logging(use_json: bool = True, log_level: str = "INFO"):
    """
    Set up structured JSON logging.

    Args:
        use_json: If True, use JSON formatter. If False, use standard formatter.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    root_logger = logging.getLogger()
    level = getattr(logging, log_level.upper(), logging.INFO)
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
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

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
            "Return recorded",
            tenant_id="tenant_demo",
            document_id="doc_1a2b3c",
            grand_total=1180,
        )
    """
    logger.log(level, message, extra=dict(context))
