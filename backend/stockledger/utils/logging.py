import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Dict, Optional


class JsonFormatter(logging.Formatter):
    """One JSON object per line; attributes passed via ``extra`` become top-level keys."""

    STANDARD_ATTRS = frozenset(
        logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
    ) | {"message", "asctime"}

    def __init__(self, service: str = "stockledger"):
        super().__init__()
        self._service = service

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self._service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in self.STANDARD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    logger_levels: Optional[Dict[str, str]] = None,
) -> None:
    level = log_level.upper()
    loggers = {name: {"level": lvl.upper()} for name, lvl in (logger_levels or {"sqlalchemy.engine": "WARNING"}).items()}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {"format": "%(asctime)s %(levelname)-8s %(name)s | %(message)s"},
                "json": {"()": "stockledger.utils.logging.JsonFormatter"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if log_format.lower() == "json" else "plain",
                    "level": level,
                }
            },
            "loggers": loggers,
            "root": {"handlers": ["console"], "level": level},
        }
    )
