"""Console logging for the service.

Modules log through ``logging.getLogger(__name__)``; this module installs the
single handler on the ``paper_api`` logger, either human-readable or JSON.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

from paper_api.config import Settings

SERVICE_NAME = "doi-pdf-api"
PACKAGE_LOGGER = "paper_api"

_RESERVED_RECORD_FIELDS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _extra_fields(record: logging.LogRecord) -> dict[str, object]:
    return {key: value for key, value in vars(record).items() if key not in _RESERVED_RECORD_FIELDS}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "service": SERVICE_NAME,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_extra_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extra = _extra_fields(record)
        if extra:
            line = f"{line} {json.dumps(extra, default=str)}"
        return line


def setup_logging(settings: Settings) -> logging.Logger:
    level_name = "error" if settings.env == "test" else settings.log_level
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, level_name.upper(), logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_paper_api_managed", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if settings.log_format == "json" else ConsoleFormatter())
    handler._paper_api_managed = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.propagate = False
    return logger
