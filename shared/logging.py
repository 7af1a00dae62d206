"""
Structured logging for the NASA Mission Control access layer.

Every event carries the service and component parsed from the logger name
("gateway.nasa_client" -> service="gateway", component="nasa_client") plus
whatever request context the HTTP middleware bound for the current task.
"""

import logging
import re
import sys
import uuid
from typing import Any, Dict, Optional

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars


_API_KEY_PATTERN = re.compile(r"(api_key=)[^&\s]+")


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Split the logger name into service and component fields."""
    service, _, component = event_dict.get("logger", "").partition(".")
    if component:
        event_dict["service"] = service
        event_dict["component"] = component
    return event_dict


def redact_api_key(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask NASA api_key query values in any string field."""
    for key, value in event_dict.items():
        if isinstance(value, str) and "api_key=" in value:
            event_dict[key] = _API_KEY_PATTERN.sub(r"\1***", value)
    return event_dict


def _renderer(log_format: str):
    if log_format.lower() == "console":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def configure_logging(service_name: str, log_level: str = "info", log_format: str = "json") -> None:
    """Configure structlog on top of stdlib logging.

    ``log_format`` is ``json`` (one object per line) or ``console`` for
    human-readable local output.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            add_service_context,
            redact_api_key,
            _renderer(log_format),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger(service_name).setLevel(level)


def set_request_id(request_id: Optional[str] = None) -> str:
    """Bind a request id for the current task, generating one if absent."""
    request_id = request_id or str(uuid.uuid4())
    bind_contextvars(request_id=request_id)
    return request_id


def set_client_context(client_ip: Optional[str] = None) -> None:
    if client_ip:
        bind_contextvars(client_ip=client_ip)


def clear_context() -> None:
    clear_contextvars()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
