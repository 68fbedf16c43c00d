"""Logging configuration for FollowDesk."""

import json
import logging
import logging.handlers
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from contextvars import ContextVar, Token
from datetime import datetime
from pathlib import Path
from time import perf_counter
from typing import Any

from .settings import settings

# Attributes every LogRecord carries; anything else was passed through `extra`.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}

# Bound per request by the HTTP middleware; every ContextLogger reads it.
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """Configure application logging.

    Args:
        log_level: Level name; defaults to DEBUG in debug mode, INFO otherwise.
        log_file: Log file path; defaults to a dated file in the log directory.
        max_bytes: Rotation threshold of the file handler.
        backup_count: Number of rotated files kept.
    """
    if log_level is None:
        level = logging.DEBUG if settings.debug else logging.INFO
    else:
        level = logging.getLevelName(log_level.upper())

    if log_file is None:
        logs_dir = Path(settings.api.log_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)
        log_path = logs_dir / f"followdesk-{datetime.now():%Y-%m-%d}.log"
    else:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    file_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    if settings.debug:
        console_handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] %(levelname)s [%(name)s:%(lineno)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    else:
        console_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(console_handler)

    # httpx logs every PostgREST round trip at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


class ContextLogger:
    """Logger with context and performance tracking."""

    def __init__(self, name: str) -> None:
        self.logger = logging.getLogger(name)
        self.context: dict[str, Any] = {}

    @property
    def correlation_id(self) -> str | None:
        return correlation_id_var.get()

    def set_correlation_id(self, correlation_id: str | None) -> Token:
        """Bind `correlation_id` to the current task; returns a reset token."""
        return correlation_id_var.set(correlation_id)

    def reset_correlation_id(self, token: Token) -> None:
        correlation_id_var.reset(token)

    def add_context(self, **kwargs: Any) -> "ContextLogger":
        self.context.update(kwargs)
        return self

    @asynccontextmanager
    async def track_time(self, operation: str) -> AsyncGenerator[None, None]:
        start = perf_counter()
        try:
            yield
        finally:
            duration_ms = (perf_counter() - start) * 1000
            self.info(
                f"{operation} completed", extra={"duration_ms": round(duration_ms, 2)}
            )

    def _log(
        self,
        level: int,
        msg: str,
        *args: Any,
        exc_info: bool = False,
        **kwargs: Any,
    ) -> None:
        extra = dict(kwargs.pop("extra", None) or {})
        correlation_id = correlation_id_var.get()
        if correlation_id:
            extra["correlation_id"] = correlation_id
        if self.context:
            extra.update(self.context)
        self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        kwargs["exc_info"] = True
        self._log(logging.ERROR, msg, *args, **kwargs)
