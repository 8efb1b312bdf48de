"""
Logging configuration for the NoteVault backend.
"""
import json
import logging
import logging.config
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import get_settings

# attributes every LogRecord carries; anything else came in through `extra`
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "traceback": self.formatException(record.exc_info),
            }

        extra = {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output in debug mode."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        # work on a copy so file handlers don't receive escape codes
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname:<8}{self.RESET}"
        return super().format(record)


def get_log_level(level_str: Optional[str] = None) -> int:
    """Resolve a level name, falling back to INFO."""
    level_str = (level_str or get_settings().log_level).upper()
    level = logging.getLevelName(level_str)
    return level if isinstance(level, int) else logging.INFO


def build_logging_config() -> Dict[str, Any]:
    """dictConfig payload for the current settings."""
    settings = get_settings()
    app_handlers = ["console"]

    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "colored" if settings.debug else "json",
            "stream": sys.stdout,
            "level": get_log_level(),
        },
    }

    if settings.log_to_file:
        log_dir = Path("logs")
        log_dir.mkdir(exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(log_dir / "notevault.log"),
            "maxBytes": 10_000_000,
            "backupCount": 5,
            "formatter": "plain",
            "level": "DEBUG",
        }
        handlers["error_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(log_dir / "error.log"),
            "maxBytes": 10_000_000,
            "backupCount": 5,
            "formatter": "json",
            "level": "ERROR",
        }
        app_handlers = ["console", "file", "error_file"]

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": JSONFormatter},
            "colored": {
                "()": ColoredFormatter,
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "plain": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)-30s | %(funcName)s:%(lineno)d | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": handlers,
        "loggers": {
            "notevault": {"handlers": app_handlers, "level": "DEBUG", "propagate": False},
            "uvicorn": {"handlers": ["console"], "level": "INFO", "propagate": False},
            "sqlalchemy.engine": {"handlers": ["console"], "level": "WARNING", "propagate": False},
            "alembic": {"handlers": ["console"], "level": "INFO", "propagate": False},
        },
        "root": {"handlers": ["console"], "level": "WARNING"},
    }


def setup_logging() -> None:
    """Install the logging configuration."""
    settings = get_settings()
    logging.config.dictConfig(build_logging_config())
    get_logger("logging").info(
        "Logging system initialized",
        extra={"log_level": settings.log_level, "environment": settings.environment},
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the notevault namespace."""
    return logging.getLogger(f"notevault.{name}")


class LoggingMiddleware:
    """ASGI middleware logging one line per request and one per response."""

    def __init__(self, app, logger_name: str = "http"):
        self.app = app
        self.logger = get_logger(logger_name)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        request_id = uuid.uuid4().hex[:12]
        client = scope.get("client")

        self.logger.info("HTTP Request", extra={
            "request_id": request_id,
            "method": scope["method"],
            "path": scope["path"],
            "client_ip": client[0] if client else "unknown",
        })

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                self.logger.info("HTTP Response", extra={
                    "request_id": request_id,
                    "status_code": message.get("status", 0),
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "method": scope["method"],
                    "path": scope["path"],
                })
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            self.logger.error("HTTP Request Failed", extra={
                "request_id": request_id,
                "method": scope["method"],
                "path": scope["path"],
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                "exception_type": type(exc).__name__,
            })
            raise
