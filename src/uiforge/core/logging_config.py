"""
Structured Logging Configuration
Event-style logging with structlog, scoped to editing sessions and passes.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict
from pythonjsonlogger import jsonlogger

from .config import get_settings
from .id import PassID, SessionID

# Scope keys rendered ahead of the event's own context
SCOPE_KEYS = ("session_id", "pass_id")


def _scope_first(_logger: Any, _method: str, event_dict: EventDict) -> EventDict:
    """Move session/pass ids to the front so interleaved passes read cleanly."""
    scope = {key: event_dict.pop(key) for key in SCOPE_KEYS if key in event_dict}
    if not scope:
        return event_dict
    return {"event": event_dict.pop("event", ""), **scope, **event_dict}


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """
    Configure structured logging for the engine.

    Args:
        level: Log level (defaults to ``Settings.log_level``)
        json_logs: JSON output for machine-readable logs (defaults to ``Settings.json_logs``)
    """
    settings = get_settings()
    level = level or settings.log_level
    json_logs = settings.json_logs if json_logs is None else json_logs
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    if json_logs:
        handler.setFormatter(jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            _scope_first,
            structlog.processors.JSONRenderer()
            if json_logs
            else structlog.dev.ConsoleRenderer(sort_keys=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


class LogContext:
    """
    Tag every log event in scope with a session and, inside a pass, its pass id.

    Leaving the scope restores whatever was bound before, so a pass scope
    nested in a session scope keeps the session id afterwards.
    """

    def __init__(self, session_id: SessionID | str, pass_id: PassID | str | None = None, **extra: Any):
        self.context: dict[str, Any] = {"session_id": session_id, **extra}
        if pass_id is not None:
            self.context["pass_id"] = pass_id
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
        self._tokens = {}
