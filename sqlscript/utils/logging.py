"""Logging helpers for sqlscript.

Every module logs through :func:`get_logger`, which places it under the
``sqlscript`` logger and tags records with the correlation ID of the current
run. The CLI assigns one correlation ID per split, so all diagnostics about a
single script can be grouped, and :func:`configure_logging` renders records
either as console text or as one JSON object per line.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Any, Final

from sqlscript._serialization import encode_json

__all__ = (
    "LOG_FORMATS",
    "ROOT_LOGGER_NAME",
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "log_with_context",
    "set_correlation_id",
)

ROOT_LOGGER_NAME: Final = "sqlscript"
LOG_FORMATS: Final = ("simple", "json")

_correlation_id: ContextVar[str | None] = ContextVar("sqlscript_correlation_id", default=None)


def set_correlation_id(correlation_id: str | None) -> None:
    """Tag the records of the current context with ``correlation_id`` (None clears it)."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


class CorrelationIDFilter(logging.Filter):
    """Copy the active correlation ID onto each record passing through."""

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = get_correlation_id()
        if correlation_id is not None:
            record.correlation_id = correlation_id  # type: ignore[attr-defined]
        return True


class StructuredFormatter(logging.Formatter):
    """Render a record as a single-line JSON object.

    Fields attached by :func:`log_with_context` are merged into the top level of
    the object; the correlation ID is included when one is active.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = getattr(record, "correlation_id", None) or get_correlation_id()
        if correlation_id:
            entry["correlation_id"] = correlation_id
        entry.update(getattr(record, "extra_fields", {}))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return str(encode_json(entry))


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``name`` as a child of the ``sqlscript`` logger.

    Args:
        name: Dotted logger name; the ``sqlscript.`` prefix is added when missing.

    Returns:
        The logger, carrying a single correlation ID filter.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    if not any(isinstance(existing, CorrelationIDFilter) for existing in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def configure_logging(level: str = "INFO", log_format: str = "simple", enable_colors: bool = True) -> None:
    """Attach one console handler to the ``sqlscript`` logger.

    Args:
        level: Level name such as ``DEBUG`` or ``WARNING``.
        log_format: ``simple`` for readable text, ``json`` for :class:`StructuredFormatter` lines.
        enable_colors: Use a rich handler for ``simple`` output on a terminal.

    Raises:
        ValueError: If ``log_format`` is not one of :data:`LOG_FORMATS`.
    """
    if log_format not in LOG_FORMATS:
        msg = f"log_format must be one of {LOG_FORMATS}, got {log_format!r}"
        raise ValueError(msg)

    handler: logging.Handler
    if log_format == "json":
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(StructuredFormatter())
    elif enable_colors and sys.stderr.isatty():
        from rich.logging import RichHandler

        handler = RichHandler(show_path=False)
        handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())
    # Records stop here so the host application's root handlers do not print them twice.
    root_logger.propagate = False


def log_with_context(logger: logging.Logger, level: int, message: str, **extra_fields: Any) -> None:
    """Log ``message`` with ``extra_fields`` attached for structured output.

    Text formatters show only the message; :class:`StructuredFormatter` merges the
    fields into the JSON object.
    """
    if logger.isEnabledFor(level):
        logger.log(level, message, extra={"extra_fields": extra_fields}, stacklevel=2)
