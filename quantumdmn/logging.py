"""
Structured logging for the QuantumDMN client.

The library only emits events through structlog; applications that want
the client's JSON log format call configure_logging() once at startup.
"""

import sys
import structlog
import logging
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional
from contextvars import ContextVar

# Correlation ID of the evaluation request currently being sent
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)

REDACTED = "***"
SECRET_FIELDS = frozenset({"access_token", "assertion", "authorization", "key", "private_key", "token"})


def configure_logging(log_level: str = "info", json_logs: bool = True) -> None:
    """Configure structlog and the standard library root logger."""

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            add_component_context,
            add_correlation_context,
            redact_secrets,
            renderer
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )


def add_component_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Tag events with the client component (auth, model, engine, ...)."""
    logger_name = event_dict.get("logger", "")
    parts = logger_name.split(".")
    if len(parts) > 1 and parts[0] == "quantumdmn":
        event_dict["component"] = parts[1]
    return event_dict


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    request_id = request_id_var.get()
    if request_id:
        event_dict.setdefault("request_id", request_id)
    return event_dict


def redact_secrets(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask credential-bearing fields before rendering."""
    for name in event_dict:
        if name.lower() in SECRET_FIELDS:
            event_dict[name] = REDACTED
    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set the correlation ID for the current task, generating one if needed."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


@contextmanager
def request_context(request_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of one request, then restore the previous one."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    token = request_id_var.set(request_id)
    try:
        yield request_id
    finally:
        request_id_var.reset(token)


def clear_context():
    request_id_var.set(None)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
