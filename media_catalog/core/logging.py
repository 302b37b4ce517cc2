"""Structured logging setup.

Every log line is a structlog event routed through the stdlib ``logging``
module. The current request's ID is carried in a context variable so that
log lines emitted deep inside the engine pipeline can still be correlated
with the HTTP request that caused them.
"""

import contextvars
import logging
import sys
from typing import Any, Dict, List, Optional
from uuid import uuid4

import structlog

request_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)

# Engine stderr can run to tens of kilobytes; log lines keep only the head
MAX_FIELD_LENGTH = 2000
_CLIPPED_FIELDS = ("stderr", "stderr_preview", "error")


def add_request_id(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor: attach the current request_id, if any."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def clip_long_fields(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor: shorten oversized diagnostic text fields."""
    for key in _CLIPPED_FIELDS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > MAX_FIELD_LENGTH:
            dropped = len(value) - MAX_FIELD_LENGTH
            event_dict[key] = f"{value[:MAX_FIELD_LENGTH]}... [{dropped} more chars]"
    return event_dict


def _renderer(log_format: str) -> Any:
    if log_format == "console":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: "json" for production, "console" for local development
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)
    logging.getLogger().setLevel(numeric_level)
    # httpx logs every request at INFO, including the engine binary download
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))

    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_request_id,
        clip_long_fields,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _renderer(log_format),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Bind a request ID to the current context.

    Args:
        request_id: ID supplied by the client; a ``req_<12 hex>`` ID is
            generated when omitted

    Returns:
        The request ID now in effect
    """
    if request_id is None:
        request_id = f"req_{uuid4().hex[:12]}"
    request_id_var.set(request_id)
    return request_id


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def clear_request_id() -> None:
    request_id_var.set(None)
