"""Structured JSON logging with per-dispatch context."""

import json
import logging
import logging.config
import logging.handlers
import os
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from .config import DEFAULT_LOG_PATH

# Fields of the update currently being dispatched, e.g. update_id, chat_id.
_dispatch_context: ContextVar[dict[str, Any]] = ContextVar("dispatch_context", default={})


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Attach values to every record logged inside the block (task-local)."""
    token = _dispatch_context.set({**_dispatch_context.get(), **values})
    try:
        yield
    finally:
        _dispatch_context.reset(token)


class DispatchContextFilter(logging.Filter):
    """Merges the dispatch context into ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        current = _dispatch_context.get()
        if current:
            record.context = {**current, **getattr(record, "context", {})}
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        context = getattr(record, "context", None)
        if context:
            log_data["context"] = context
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(
    log_level: str | None = None,
    log_file: str | Path | None = None,
) -> None:
    """
    Configure root logging: JSON to a rotating file and to stdout.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
                   Defaults to LOG_LEVEL env var or INFO.
        log_file: Path to log file. Defaults to 04_logs/app.log.
    """
    level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_path = Path(log_file) if log_file else DEFAULT_LOG_PATH
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "dispatch": {"()": "updatechain.logging_config.DispatchContextFilter"},
            },
            "formatters": {
                "json": {"()": "updatechain.logging_config.JSONFormatter"},
            },
            "handlers": {
                "file": {
                    "class": "logging.handlers.RotatingFileHandler",
                    "filename": str(log_path),
                    "maxBytes": 10 * 1024 * 1024,  # 10 MB
                    "backupCount": 5,
                    "formatter": "json",
                    "filters": ["dispatch"],
                    "encoding": "utf-8",
                },
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "filters": ["dispatch"],
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {"level": level, "handlers": ["file", "console"]},
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger; call with the module's ``__name__``."""
    return logging.getLogger(name)
