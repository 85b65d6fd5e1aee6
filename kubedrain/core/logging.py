"""
Logging configuration for kubedrain.

Configures the stdlib root logger (colored console, plain text or JSON lines,
optional rotating file) and routes ``structlog`` through it, so modules log
with ``structlog.get_logger(__name__)`` and dotted event names.
"""
import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from ..config import get_settings

_CONFIGURED = False

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRS = frozenset(
    {
        "args", "asctime", "created", "exc_info", "exc_text", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs", "message", "msg", "name",
        "pathname", "process", "processName", "relativeCreated", "stack_info", "thread",
        "threadName", "taskName", "service", "env",
    }
)


class ContextFilter(logging.Filter):
    """Stamp service and environment fields onto every record."""

    def __init__(self, env: str) -> None:
        super().__init__()
        self._env = env

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        if not hasattr(record, "service"):
            record.service = "kubedrain"
        if not hasattr(record, "env"):
            record.env = self._env
        return True


class KeyValueFormatter(logging.Formatter):
    """Plain text formatter that appends structured fields as ``key=value``."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        extras = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        ]
        if extras:
            text = f"{text} {' '.join(extras)}"
        return text


class ColoredFormatter(KeyValueFormatter):
    """Colored console output."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        levelname = record.levelname
        record.levelname = f"{self.COLORS.get(levelname, self.RESET)}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class JSONFormatter(logging.Formatter):
    """JSON lines formatter.

    Emits ``time``, ``level``, ``name`` and ``message`` and merges any extra
    fields. Values of sensitive keys (tokens, passwords) are redacted, since
    kubeconfig material can end up in log context.
    """

    REDACT_KEYS = {"password", "passwd", "secret", "token", "authorization", "kubeconfig"}

    def __init__(self, datefmt: Optional[str] = None) -> None:
        super().__init__(datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS - {"service", "env"}:
                continue
            safe_key = str(key)
            payload[safe_key] = self._redact(value) if safe_key.lower() in self.REDACT_KEYS else value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)

    @staticmethod
    def _redact(value: Any) -> str:
        try:
            text = str(value)
        except Exception:
            text = "<redacted>"
        return "***REDACTED***" if text else text


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    use_color: bool = True,
) -> logging.Logger:
    """Configure the root logger and structlog once per process.

    Args:
        level: log level name, defaults to ``Settings.log_level``
        log_file: optional path of a rotating log file
        use_color: color console output when stdout is a terminal

    Returns:
        logging.Logger: the ``kubedrain`` logger
    """
    global _CONFIGURED
    logger = logging.getLogger("kubedrain")

    if _CONFIGURED:
        return logger

    settings = get_settings()
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())

    for h in list(root.handlers):
        root.removeHandler(h)

    context_filter = ContextFilter(settings.app_env)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if settings.is_debug else logging.INFO)
    console_handler.addFilter(context_filter)

    if settings.log_json:
        console_formatter: logging.Formatter = JSONFormatter(datefmt=settings.log_date_format)
    elif use_color and sys.stdout.isatty():
        console_formatter = ColoredFormatter(settings.log_format, datefmt=settings.log_date_format)
    else:
        console_formatter = KeyValueFormatter(settings.log_format, datefmt=settings.log_date_format)

    console_handler.setFormatter(console_formatter)
    root.addHandler(console_handler)

    file_path = log_file or settings.log_file
    if file_path:
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.addFilter(context_filter)

        if settings.log_json:
            file_formatter: logging.Formatter = JSONFormatter(datefmt=settings.log_date_format)
        else:
            file_formatter = KeyValueFormatter(settings.log_format, datefmt=settings.log_date_format)
        file_handler.setFormatter(file_formatter)
        root.addHandler(file_handler)

    # The client library logs through these; let them reach the root handlers.
    for log_name in ("kubernetes", "urllib3"):
        lib_logger = logging.getLogger(log_name)
        lib_logger.handlers = []
        lib_logger.propagate = True

    _configure_structlog()

    _CONFIGURED = True
    return logger


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
