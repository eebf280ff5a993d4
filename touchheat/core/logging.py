"""Logging setup shared by the API and the capture library."""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_STD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(event_type)s | %(name)s:%(lineno)d | %(message)s"


class TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "event_type"):
            record.event_type = "general"
        return super().format(record)


class JsonFormatter(logging.Formatter):
    """One JSON object per line; `extra` fields are carried through."""

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "event_type": getattr(record, "event_type", "general"),
        }
        for key, value in record.__dict__.items():
            if key not in _STD_ATTRS and key not in data:
                data[key] = value
        if record.exc_info:
            data["exception"] = "".join(traceback.format_exception(*record.exc_info))
        return json.dumps(data, default=str)


def setup_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configure the root logger with a single stdout handler.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_logs: emit JSON lines instead of the pipe-delimited text format
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JsonFormatter() if json_logs else TextFormatter(TEXT_FORMAT))
    root.addHandler(handler)

    for noisy in ("httpx", "httpcore", "asyncio", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_error(
    logger: logging.Logger,
    message: str,
    error: Optional[BaseException] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """Log an error, with the stack trace when an exception is given."""
    extra_data = dict(extra or {})
    extra_data.setdefault("event_type", "error")
    if error is not None:
        logger.error(f"{message}: {error}", exc_info=error, extra=extra_data)
    else:
        logger.error(message, extra=extra_data)
