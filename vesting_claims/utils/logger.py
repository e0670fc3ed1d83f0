"""
Logging setup for CLI runs.

Every module logs through ``get_logger(__name__)``; keyword arguments become
structured fields. Console output is human readable (fields appended as
key=value), the optional log file gets one JSON object per line. Fields bound
with ``bind_run_context`` (command, project) are stamped on every record so a
log file shared between runs can be split per run.
"""
import json
import logging
import logging.config
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

ROOT_LOGGER_NAME = "vesting_claims"
# Third-party loggers routed to our handlers, with their floor level
_THIRD_PARTY_LEVELS = {"aiohttp": "WARNING"}

_run_context: Dict[str, Any] = {}


def bind_run_context(**fields: Any) -> None:
    """Attach fields to every subsequent record. ``None`` removes a field."""
    for key, value in fields.items():
        if value is None:
            _run_context.pop(key, None)
        else:
            _run_context[key] = value


class RunContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.run_context = dict(_run_context)
        return True


def _fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields: Dict[str, Any] = dict(getattr(record, "run_context", None) or {})
    fields.update(getattr(record, "extra_data", None) or {})
    return fields


class JSONFormatter(logging.Formatter):
    """One JSON document per record; structured fields are merged at top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(_fields(record))
        # big ints and Paths are not JSON native
        return json.dumps(entry, ensure_ascii=False, default=str)


class KeyValueFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _fields(record)
        if not fields:
            return line
        return line + " | " + " ".join(f"{key}={value}" for key, value in fields.items())


class StructuredLogger:
    """
    Thin wrapper over ``logging.Logger`` taking structured fields as kwargs.
    Fields whose value is None are dropped.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _emit(self, level: int, message: str, fields: Dict[str, Any]) -> None:
        if not self.logger.isEnabledFor(level):
            return
        extra_data = {k: v for k, v in fields.items() if v is not None}
        self.logger.log(level, message, extra={"extra_data": extra_data}, stacklevel=3)

    def debug(self, message: str, **fields: Any) -> None:
        self._emit(logging.DEBUG, message, fields)

    def info(self, message: str, **fields: Any) -> None:
        self._emit(logging.INFO, message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._emit(logging.WARNING, message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._emit(logging.ERROR, message, fields)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    enable_console: bool = True,
) -> None:
    """
    Configure handlers for the package and the third-party loggers it uses.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        log_file: Optional path of a rotating JSON-lines log file
        enable_console: Human readable output on stderr (stdout is kept for
            the run summary)
    """
    handlers: Dict[str, Dict[str, Any]] = {}
    if enable_console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "stream": sys.stderr,
            "formatter": "console",
            "filters": ["run_context"],
            "level": log_level,
        }
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file,
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
            "encoding": "utf-8",
            "formatter": "json",
            "filters": ["run_context"],
            "level": log_level,
        }
    names = list(handlers)

    loggers: Dict[str, Dict[str, Any]] = {
        ROOT_LOGGER_NAME: {"level": log_level, "handlers": names, "propagate": False},
    }
    for name, level in _THIRD_PARTY_LEVELS.items():
        loggers[name] = {"level": level, "handlers": names, "propagate": False}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"run_context": {"()": RunContextFilter}},
        "formatters": {
            "json": {"()": JSONFormatter},
            "console": {
                "()": KeyValueFormatter,
                "format": "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
                "datefmt": "%H:%M:%S",
            },
        },
        "handlers": handlers,
        "loggers": loggers,
        "root": {"level": "WARNING", "handlers": names},
    })


def get_logger(name: str) -> StructuredLogger:
    """Structured logger under the package namespace (``__name__`` works as-is)."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return StructuredLogger(name)
    return StructuredLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_business_event(event_type: str, details: Dict[str, Any]) -> None:
    """Run outcome record (e.g. 'claims_reconciled') on the audit logger."""
    get_logger("audit").info(f"Run event: {event_type}", event_type=event_type, **details)


def log_performance(
    operation: str,
    duration_ms: float,
    additional_data: Optional[Dict[str, Any]] = None,
) -> None:
    data: Dict[str, Any] = {"duration_ms": round(duration_ms, 1)}
    data.update(additional_data or {})
    get_logger("performance").info(f"Timing: {operation}", operation=operation, **data)


__all__ = [
    "bind_run_context",
    "get_logger",
    "setup_logging",
    "log_business_event",
    "log_performance",
    "StructuredLogger",
]
