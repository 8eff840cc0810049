"""
dumble Structured Logger

Thin wrapper around the standard ``logging`` module that emits one JSON
object per record. Keyword arguments passed to a log call become fields of
that object, so call sites read like:

    logger.info("Task finished", entry="index", errors=0)

The currently running build task is tracked in a context variable. Every
asyncio task copies the context it was created in, so concurrent build
tasks each log their own id without passing it around.

Usage:
    from dumble_common.logger import get_logger, set_task_id

    logger = get_logger(__name__)
    set_task_id("lib/index.mjs")
    logger.debug("Resolving imports", count=3)
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_task_id: ContextVar[Optional[str]] = ContextVar("dumble_task_id", default=None)

DEFAULT_LOG_LEVEL = "WARNING"
LOG_LEVEL_ENV = "DUMBLE_LOG_LEVEL"


def set_task_id(task_id: str) -> None:
    """Set the id of the build task running in the current context."""
    _task_id.set(task_id)


def get_task_id() -> Optional[str]:
    """Get the id of the build task running in the current context, if any."""
    return _task_id.get()


def clear_task_id() -> None:
    """Forget the current task id."""
    _task_id.set(None)


class JSONFormatter(logging.Formatter):
    """Render a record and its structured fields as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": record.name,
            "message": record.getMessage(),
        }
        task_id = getattr(record, "task_id", None)
        if task_id:
            payload["task_id"] = task_id
        payload.update(getattr(record, "fields", {}))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _resolve_level(log_level: Optional[str]) -> int:
    name = (log_level or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


class DumbleLogger:
    """
    Structured logger bound to a service name and a set of context fields.

    Attributes:
        service_name: Name of the underlying ``logging`` logger
        context: Fields attached to every record emitted through this instance
    """

    def __init__(
        self,
        service_name: str,
        log_level: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.service_name = service_name
        self.context: Dict[str, Any] = dict(context or {})
        self._logger = logging.getLogger(service_name)
        if log_level is not None:
            self._logger.setLevel(_resolve_level(log_level))
        _ensure_handler()

    def with_context(self, **fields: Any) -> "DumbleLogger":
        """Return a copy of this logger with extra context fields."""
        merged = {**self.context, **fields}
        clone = DumbleLogger.__new__(DumbleLogger)
        clone.service_name = self.service_name
        clone.context = merged
        clone._logger = self._logger
        return clone

    def _log(self, level: int, message: str, exc_info: Any = None, **fields: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        extra = {
            "fields": {**self.context, **fields},
            "task_id": get_task_id(),
        }
        self._logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, **fields)

    warn = warning

    def error(self, message: str, **fields: Any) -> None:
        self._log(logging.ERROR, message, **fields)

    def critical(self, message: str, **fields: Any) -> None:
        self._log(logging.CRITICAL, message, **fields)

    def exception(self, message: str, **fields: Any) -> None:
        """Log at ERROR level with the active exception's traceback."""
        self._log(logging.ERROR, message, exc_info=True, **fields)


_handler: Optional[logging.Handler] = None

# Loggers that carry the JSON handler; module loggers are named after their
# package and the CLI logs as ``dumble.cli``.
LOGGER_ROOTS = ("dumble", "dumble_common", "dumble_schema", "dumble_sdk", "dumble_cli")


def _set_level(level: int) -> None:
    for name in LOGGER_ROOTS:
        logging.getLogger(name).setLevel(level)


def _ensure_handler() -> None:
    """Install the JSON handler on the dumble package loggers once."""
    global _handler
    if _handler is not None:
        return
    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(JSONFormatter())
    for name in LOGGER_ROOTS:
        logger = logging.getLogger(name)
        logger.addHandler(_handler)
        if logger.level == logging.NOTSET:
            logger.setLevel(_resolve_level(None))


def get_logger(service_name: str, log_level: Optional[str] = None) -> DumbleLogger:
    """
    Get a structured logger.

    Args:
        service_name: Logger name, usually ``__name__``
        log_level: Optional level override for this logger

    Returns:
        DumbleLogger instance
    """
    return DumbleLogger(service_name, log_level=log_level)


def configure_logging(service_name: str, log_level: str = DEFAULT_LOG_LEVEL) -> DumbleLogger:
    """
    Set the level of the dumble loggers and return a logger for the caller.

    The root logger and other libraries are left alone.

    Args:
        service_name: Logger name for the returned logger
        log_level: Level name (DEBUG, INFO, WARNING, ...)
    """
    _ensure_handler()
    _set_level(_resolve_level(log_level))
    return DumbleLogger(service_name)
