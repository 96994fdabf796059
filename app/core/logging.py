"""Logging configuration.

Applies ``settings.log_level`` and ``settings.log_format`` to the standard
library logging tree. Modules keep using ``logging.getLogger(__name__)``.
"""

import json
import logging
import logging.config
from datetime import datetime, timezone

from app.core.config import LogFormatEnum, settings

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys() | {"message", "asctime"}
)


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON line including ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str | None = None, log_format: str | None = None) -> None:
    """Configure root logging from settings (or explicit overrides)."""
    level = level or settings.log_level.value
    log_format = log_format or settings.log_format.value

    formatter = (
        {"()": JsonFormatter}
        if log_format == LogFormatEnum.json.value
        else {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"}
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": formatter},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                }
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": {
                "sqlalchemy.engine": {"level": "INFO" if settings.debug else "WARNING"},
            },
        }
    )
