"""Logging helpers for qualicode."""

from __future__ import annotations

import json
import logging
import sys

_LOGGING_INITIALIZED = False

_RESERVED_ATTRS = frozenset(
    {
        "args",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with ``extra`` fields attached."""

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in data:
                continue
            try:
                json.dumps(value)
                data[key] = value
            except (TypeError, ValueError):
                data[key] = str(value)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


def init_logging(level: str = "INFO", format: str = "plain", force: bool = False) -> None:
    """Configure the root logger.

    Args:
        level: DEBUG|INFO|WARNING|ERROR|CRITICAL. Unknown names map to INFO.
        format: ``plain`` or ``json``.
        force: Reconfigure even if logging was already initialized.
    """
    global _LOGGING_INITIALIZED
    if _LOGGING_INITIALIZED and not force:
        return

    log_level = _LEVELS.get(level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(log_level)
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    if format.lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    root.addHandler(handler)

    # SQLAlchemy echoes every statement at INFO
    logging.getLogger("sqlalchemy").setLevel(max(log_level, logging.WARNING))

    _LOGGING_INITIALIZED = True


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger under the ``qualicode`` namespace."""
    if not name:
        return logging.getLogger("qualicode")
    if name == "qualicode" or name.startswith("qualicode."):
        return logging.getLogger(name)
    return logging.getLogger(f"qualicode.{name}")


__all__ = ["JsonFormatter", "init_logging", "get_logger"]
