"""
Logging setup for the relay.

Every log line can carry:
- the correlation ID of the HTTP request or client connection being served
- per-connection fields bound with `set_log_context` (e.g. connection_id)
- anything passed through `extra=`

Console output is human-readable in development and JSON elsewhere; errors
are additionally written as JSON to LOG_FILE_PATH.
"""

import json
import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from frame_relay.settings import app_settings

LOGGER_NAME = "frame_relay"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Fields bound to the current connection task or HTTP request
log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

# Attributes every LogRecord has; anything else on a record came from `extra=`
_STANDARD_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "correlation_id"}


def get_correlation_id() -> str:
    """
    Correlation ID of the current request or connection, or "" outside one.

    Imported lazily: the middleware module is not needed to log during
    startup.
    """
    try:
        from frame_relay.middlewares.correlation_id import correlation_id

        return correlation_id.get()
    except Exception:
        return ""


def set_log_context(**kwargs: Any) -> None:
    """
    Bind fields to every JSON log line emitted in the current context.

    Each WebSocket connection runs in its own task, so fields bound while
    handling one client never show up in another client's log lines.

    Example:
        >>> set_log_context(connection_id="3f2a9c1d")
        >>> logger.info("Client connected")  # includes connection_id
    """
    log_context.set({**log_context.get(), **kwargs})


def get_log_context() -> dict[str, Any]:
    return log_context.get()


def clear_log_context() -> None:
    log_context.set({})


class StructuredJSONFormatter(logging.Formatter):
    """
    One JSON object per log line.

    Keys: timestamp, level, logger, message, module, function, line,
    request_id (when set), the bound log context, environment, exception
    (when present) and any `extra=` fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = get_correlation_id()
        if request_id:
            payload["request_id"] = request_id

        payload.update(get_log_context())
        payload["environment"] = app_settings.ENV.value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_ATTRS
        )

        return json.dumps(payload, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Console formatter for development.

    INFO lines are short; every other level also shows where the line was
    logged from.
    """

    SHORT_FMT = "%(asctime)s - [%(correlation_id)s] %(levelname)s: %(message)s"
    LONG_FMT = "%(asctime)s - [%(correlation_id)s] %(levelname)s: %(module)s.%(funcName)s:%(lineno)d - %(message)s"

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._short = logging.Formatter(self.SHORT_FMT, datefmt=DATE_FORMAT)
        self._long = logging.Formatter(self.LONG_FMT, datefmt=DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        record.correlation_id = get_correlation_id() or "-"
        if record.levelno == logging.INFO:
            return self._short.format(record)
        return self._long.format(record)


def _error_file_handler(path: str) -> logging.Handler:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path)
    handler.setLevel(logging.ERROR)
    handler.setFormatter(StructuredJSONFormatter())
    return handler


def setup_logging() -> logging.Logger:
    """
    Configure the `frame_relay` logger from the current settings.

    Handlers are replaced on every call, so calling it again after changing
    settings does not duplicate output.

    Returns:
        Configured logger instance.
    """
    relay_logger = logging.getLogger(LOGGER_NAME)
    relay_logger.setLevel(getattr(logging, app_settings.LOG_LEVEL.upper()))
    relay_logger.propagate = False
    relay_logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(
        StructuredJSONFormatter()
        if app_settings.LOG_CONSOLE_FORMAT == "json"
        else HumanReadableFormatter()
    )
    relay_logger.addHandler(console)

    try:
        relay_logger.addHandler(_error_file_handler(app_settings.LOG_FILE_PATH))
    except OSError as e:
        relay_logger.warning(f"Could not create file handler: {e}")

    return relay_logger


logger = setup_logging()
