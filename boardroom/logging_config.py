"""JSON logging for Boardroom.

Every record is one JSON line. Agents log through `AgentLogAdapter`, which
stamps the role and agent id into the record's `context` so a single log file
can be filtered per board member.
"""

import json
import logging
import logging.config
import logging.handlers
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import DEFAULT_LOG_PATH

# Libraries that are chatty at DEBUG/INFO.
QUIET_LOGGERS = ("aiosqlite", "httpx", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        context = getattr(record, "context", None)
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # Payloads and results may hold datetimes or enums
        return json.dumps(entry, default=str)


class AgentLogAdapter(logging.LoggerAdapter):
    """Logger adapter that merges agent identity into `extra["context"]`."""

    def bind(self, **fields: Any) -> None:
        self.extra = {**self.extra, **fields}

    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        extra["context"] = {**self.extra, **extra.get("context", {})}
        return msg, kwargs


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    console: bool = True,
) -> None:
    """
    Configure the root logger.

    Args:
        log_level: Log level name. Defaults to LOG_LEVEL env var or INFO.
        log_file: Rotating log file. Defaults to logs/boardroom.log.
        console: Also write JSON lines to stdout.
    """
    level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_path = Path(log_file) if log_file else DEFAULT_LOG_PATH
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handlers: dict[str, dict[str, Any]] = {
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(log_path),
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "formatter": "json",
            "encoding": "utf-8",
        },
    }
    if console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": JSONFormatter}},
            "handlers": handlers,
            "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
            "root": {"level": level, "handlers": list(handlers)},
        }
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_agent_logger(name: str, role: str) -> AgentLogAdapter:
    """Logger for one agent; `bind(agent_id=...)` once the identity is known."""
    return AgentLogAdapter(logging.getLogger(name), {"role": role})
