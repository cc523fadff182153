"""
Structured logging utilities for application logging
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from .config import LoggingSettings

LOGGER_NAME = "healthflow"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add exception info if present
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # Add extra fields if present
        if hasattr(record, "extra_data"):
            log_obj.update(record.extra_data)

        return json.dumps(log_obj, default=str)


def configure_logging(settings: Optional[LoggingSettings] = None) -> logging.Logger:
    """Attach a stdout handler to the project logger.

    Safe to call more than once: an existing handler is replaced, not duplicated.
    """
    settings = settings or LoggingSettings()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(settings.level)

    for handler in list(logger.handlers):
        if getattr(handler, "_healthflow_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if settings.format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    handler._healthflow_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger

