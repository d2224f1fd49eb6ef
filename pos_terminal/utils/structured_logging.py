"""
Structured logging for the checkout terminals.

Production emits one JSON object per line; everywhere else gets a compact
colored line tagged with the terminal (and scanner handle, when known).

    from pos_terminal.utils.structured_logging import configure_logging, get_logger
    configure_logging()
    log = get_logger(__name__).bind(terminal="staff")
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pos_terminal.utils.config import settings

# Record attributes promoted into the JSON payload when present
CONTEXT_FIELDS = ("terminal", "handle", "request_id", "duration_ms")

QUIET_LOGGERS = ("httpx", "httpcore", "websockets", "apscheduler")


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    return {f: getattr(record, f) for f in CONTEXT_FIELDS if getattr(record, f, None) is not None}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for the kiosk host's log shipper."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}:{record.lineno}",
        }
        payload.update(_context(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ColoredFormatter(logging.Formatter):
    """Human-readable development output."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        ctx = _context(record)
        tags = []
        if "terminal" in ctx:
            tags.append(str(ctx["terminal"]))
        if "handle" in ctx:
            tags.append(f"#{ctx['handle']}")
        if "request_id" in ctx:
            tags.append(f"req={ctx['request_id']}")
        prefix = f"[{' '.join(tags)}] " if tags else ""

        line = (
            f"{datetime.fromtimestamp(record.created).strftime('%H:%M:%S')} "
            f"{record.levelname:<8} {record.name} | {prefix}{record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        color = self.LEVEL_COLORS.get(record.levelno, "")
        return f"{color}{line}{self.RESET}"


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """Install a single stdout handler on the root logger. Safe to call twice."""
    level = (level or settings.LOG_LEVEL).upper()
    if json_output is None:
        json_output = settings.ENVIRONMENT == "production"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else ColoredFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level, logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(f"Logging configured: env={settings.ENVIRONMENT}, level={level}, json={json_output}")


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter carrying bound context (terminal, handle) into every record."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def bind(self, **context) -> "ContextLogger":
        return ContextLogger(self.logger, {**self.extra, **context})


def get_logger(name: str) -> ContextLogger:
    return ContextLogger(logging.getLogger(name), {})
