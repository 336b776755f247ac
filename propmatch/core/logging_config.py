"""Centralized structured logging configuration."""

from __future__ import annotations

import enum
import json
import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from propmatch.core.config import get_config

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

# Third-party loggers that are too chatty at INFO.
_QUIET_LOGGERS = ("sqlalchemy.engine", "alembic.runtime.migration")


def _json_default(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class JsonFormatter(logging.Formatter):
    """Emit one JSON object per record, including every ``extra`` field."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in payload:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=_json_default)


def configure_logging(level: str | None = None) -> None:
    """Install JSON handlers on the root logger once per process."""
    config = get_config()
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO))
    formatter = JsonFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.LOG_FILE:
        handlers.append(logging.FileHandler(config.LOG_FILE))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    if config.is_production:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
