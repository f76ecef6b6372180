"""
Logging for the Synapse mastery service.

Every engine logs through get_logger(__name__) and passes the entity it is
working on through extra=, e.g.

    logger.info("Debate concluded", extra={"session_id": sid, "mastery_status": "refined"})

The handler installed by configure_logging() stamps each record with the current
request id and lifts the known entity ids (assignment, milestone, debate session,
scaffolding task) into a compact context, so one learner's path through
mini-course -> gate -> debate can be followed across log lines. Production
emits one JSON object per line; development emits a single readable line.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Set by RequestIdMiddleware for the duration of a request
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Entity ids worth correlating on, in display order
CONTEXT_FIELDS = ("assignment_id", "milestone_id", "session_id", "task_id", "event_type")

# Generation calls go through httpx; their per-request INFO lines drown the engines
_CHATTY_LOGGERS = ("httpx", "openai")

_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "request_id", "context"}


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS and value is not None
    }


class MasteryContextFilter(logging.Filter):
    """Attach request_id and a short `key=value` context built from entity ids."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"  # type: ignore[attr-defined]
        parts = [
            f"{key.removesuffix('_id')}={getattr(record, key)}"
            for key in CONTEXT_FIELDS
            if getattr(record, key, None) is not None
        ]
        record.context = " ".join(parts)  # type: ignore[attr-defined]
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: entity ids at top level, everything else under `extra`."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", "-")
        if request_id != "-":
            entry["request_id"] = request_id

        extras = _extras(record)
        for key in CONTEXT_FIELDS:
            if key in extras:
                entry[key] = str(extras.pop(key))
        if extras:
            entry["extra"] = extras
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class DevFormatter(logging.Formatter):
    """Readable single line; the entity context goes after the message."""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s %(levelname)-5s [%(name)s] req=%(request_id)s %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", "")
        return f"{line} ({context})" if context else line


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
) -> None:
    """
    Install the service's single stderr handler on the root logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        environment: 'production' switches to JSON lines
        debug: If True, use DEBUG level regardless of log_level
    """
    level = logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    # Reload installs a fresh handler; drop the previous one
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(MasteryContextFilter())
    handler.setFormatter(JsonFormatter() if environment == "production" else DevFormatter())
    root.addHandler(handler)

    if not debug:
        for name in _CHATTY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
