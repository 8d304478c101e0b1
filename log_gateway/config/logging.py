"""
Structured logging for the gateway.

Loggers returned by get_logger() take keyword context:

    logger.info("Server logs available", port=8090)

The context travels on the record as `extra_data` and is rendered by either
formatter: JSON lines in production, coloured single lines in development.
A `src` entry in the context is promoted to its own field, so gateway lines
tagged with LOG_SRC can be told apart from the records being relayed.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from log_gateway.config.settings import settings


def _split_context(record: logging.LogRecord) -> tuple[str | None, dict[str, Any]]:
    data = dict(getattr(record, "extra_data", None) or {})
    src = data.pop("src", None)
    return src, data


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        src, data = _split_context(record)
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if src:
            entry["src"] = src
        if data:
            entry["data"] = data
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if settings.debug:
            entry["source"] = f"{record.pathname}:{record.lineno} ({record.funcName})"

        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """
    Human-readable formatter for development.

        [14:02:11] INFO     storyboard log_gateway.components.transport.standalone:
        Server logs available on port 8090 (host=0.0.0.0 | namespace=/ws/logs)
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",     # Cyan
        logging.INFO: "\033[32m",      # Green
        logging.WARNING: "\033[33m",   # Yellow
        logging.ERROR: "\033[31m",     # Red
        logging.CRITICAL: "\033[35m",  # Magenta
    }
    SRC_COLOR = "\033[90m"  # Grey
    VALUE_COLOR = "\033[1m"  # Bold
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        src, data = _split_context(record)
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        parts = [f"{color}[{clock}] {record.levelname:8}{self.RESET}"]
        if src:
            parts.append(f"{self.SRC_COLOR}{src}{self.RESET}")
        parts.append(f"{record.name}: {record.getMessage()}")
        line = " ".join(parts)

        if data:
            line += " (" + " | ".join(
                f"{key}={self.VALUE_COLOR}{value}{self.RESET}" for key, value in data.items()
            ) + ")"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StructuredLogger(logging.Logger):
    """
    Logger whose level methods accept keyword context.

    Keywords understood by the standard library (exc_info, stack_info,
    stacklevel, extra) keep their usual meaning; every other keyword ends up
    in `extra_data`.
    """

    _STDLIB_KEYWORDS = ("exc_info", "stack_info", "stacklevel", "extra")

    def _log_structured(self, level: int, msg: str, args: tuple, context: dict[str, Any]) -> None:
        if not self.isEnabledFor(level):
            return
        options = {key: context.pop(key) for key in self._STDLIB_KEYWORDS if key in context}
        extra = dict(options.pop("extra", None) or {})
        extra["extra_data"] = context or None
        # Skip this frame and the level method when resolving the caller
        options["stacklevel"] = options.get("stacklevel", 1) + 2
        self._log(level, msg, args, extra=extra, **options)

    def debug(self, msg: str, *args: Any, **context: Any) -> None:
        self._log_structured(logging.DEBUG, msg, args, context)

    def info(self, msg: str, *args: Any, **context: Any) -> None:
        self._log_structured(logging.INFO, msg, args, context)

    def warning(self, msg: str, *args: Any, **context: Any) -> None:
        self._log_structured(logging.WARNING, msg, args, context)

    def error(self, msg: str, *args: Any, **context: Any) -> None:
        self._log_structured(logging.ERROR, msg, args, context)

    def exception(self, msg: str, *args: Any, **context: Any) -> None:
        context.setdefault("exc_info", True)
        self._log_structured(logging.ERROR, msg, args, context)

    def critical(self, msg: str, *args: Any, **context: Any) -> None:
        self._log_structured(logging.CRITICAL, msg, args, context)


logging.setLoggerClass(StructuredLogger)


def setup_logging(level: int | None = None) -> None:
    """
    Configure the root logger. Call once at startup.

    Args:
        level: Overrides the level derived from settings.debug.
    """
    if level is None:
        level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if settings.environment == "production":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(DevelopmentFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    # Reduce noise from the in-process uvicorn server
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("websockets").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger.

    Usage:
        from log_gateway.config.logging import get_logger
        logger = get_logger(__name__)

        logger.error("Error initialising standalone server logs", port=8090, exc_info=err)
    """
    return logging.getLogger(name)  # type: ignore[return-value]


gateway_logger = get_logger("log_gateway")
