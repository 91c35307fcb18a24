"""
Structured logging configuration for the advisor board service.

JSON-structured logging with correlation IDs. Every log entry includes:
- timestamp (ISO 8601 format)
- level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- service (service name identifier)
- trace_id (correlation ID for request tracing, when set)
- request_id (unique per request, when set)
- session_id (consultation session, when set)
"""
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from structlog.types import Processor

trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
session_id_var: ContextVar[Optional[str]] = ContextVar("session_id", default=None)

SERVICE_NAME = "advisorboard_orchestrator"


def add_request_context(
    logger: structlog.BoundLogger,
    method_name: str,
    event_dict: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Add request context (trace_id, request_id, session_id, service) to log entries.
    """
    for key, var in (
        ("trace_id", trace_id_var),
        ("request_id", request_id_var),
        ("session_id", session_id_var),
    ):
        value = var.get()
        if value:
            event_dict[key] = value

    event_dict["service"] = SERVICE_NAME

    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()

    return event_dict


def configure_logging(
    log_level: str = "INFO",
    service_name: Optional[str] = None,
    json_output: bool = True,
) -> None:
    """
    Configure structured logging for the service.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Service name identifier (defaults to SERVICE_NAME)
        json_output: JSON lines when True (production), console renderer otherwise
    """
    global SERVICE_NAME
    if service_name:
        SERVICE_NAME = service_name

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_request_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)
    """
    return structlog.get_logger(name)


def set_trace_id(trace_id: Optional[str]) -> None:
    trace_id_var.set(trace_id)


def get_trace_id() -> Optional[str]:
    return trace_id_var.get()


def set_request_id(request_id: Optional[str]) -> None:
    request_id_var.set(request_id)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def set_session_id(session_id: Optional[str]) -> None:
    """Bind a consultation session ID to all subsequent log entries in this context."""
    session_id_var.set(session_id)


def get_session_id() -> Optional[str]:
    return session_id_var.get()


def generate_request_id() -> str:
    """Generate a new unique request ID (UUID4 string)."""
    return str(uuid.uuid4())


def generate_trace_id() -> str:
    """Generate a new unique trace ID (UUID4 string)."""
    return str(uuid.uuid4())
