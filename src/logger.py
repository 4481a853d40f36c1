"""
Structured JSON logging.

Every pingprobe module logs through a child of the "pingprobe" logger:

    from .logger import scoped_logger
    logger = scoped_logger("ping-command")
    logger.error("Successful stdout is empty.", extra={"fields": {"target": target}})

configure_logging() installs a single JSON handler on the root "pingprobe"
logger. Calling it again only updates the level.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Mapping, Optional, TextIO, Union

ROOT_LOGGER_NAME = "pingprobe"

_lock = RLock()
_HANDLER_MARK = "_pingprobe_json"


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


class JsonFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        ts = (
            datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

        payload: dict[str, Any] = {
            "ts": ts,
            "level": record.levelname.lower(),
            "scope": record.name,
            "msg": record.getMessage(),
        }

        fields = getattr(record, "fields", None)
        if isinstance(fields, Mapping) and fields:
            payload["fields"] = dict(fields)

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


def configure_logging(
    level: Union[int, str] = "INFO",
    stream: Optional[TextIO] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Configure the root pingprobe logger.

    Args:
        level: Log level (int or name)
        stream: Stream for the handler (defaults to sys.stderr)
        force: Replace an existing handler instead of updating it

    Returns:
        The configured root logger
    """
    numeric_level = _coerce_level(level)

    with _lock:
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        logger.propagate = False
        logger.setLevel(numeric_level)

        existing = [h for h in logger.handlers if getattr(h, _HANDLER_MARK, False)]

        if existing and not force:
            for handler in existing:
                handler.setLevel(numeric_level)
            return logger

        for handler in existing:
            logger.removeHandler(handler)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(numeric_level)
        handler.setFormatter(JsonFormatter())
        setattr(handler, _HANDLER_MARK, True)
        logger.addHandler(handler)
        return logger


def scoped_logger(scope: str) -> logging.Logger:
    """Logger for one component, e.g. scoped_logger("ping-command")."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{scope}")
