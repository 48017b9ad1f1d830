"""
Structured Logging with Structlog.

Provides JSON-formatted logs with request/client context.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from mdrg.config import settings


# Event keys whose values are credentials
CREDENTIAL_KEYS = frozenset(
    {
        "password",
        "current_password",
        "new_password",
        "password_hash",
        "token",
        "authorization",
        "x_admin_key",
        "admin_key",
    }
)
REDACTED = "[REDACTED]"


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add application-level context to all log entries."""
    event_dict["service"] = settings.service_name
    event_dict["version"] = settings.api_version
    return event_dict


def add_request_defaults(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Every entry carries request_id and client_id, null outside a request or login."""
    event_dict.setdefault("request_id", None)
    event_dict.setdefault("client_id", None)
    return event_dict


def redact_credentials(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask passwords, bearer tokens and the admin key before rendering."""
    for key in event_dict:
        if key.lower().replace("-", "_") in CREDENTIAL_KEYS:
            event_dict[key] = REDACTED
    return event_dict


def setup_logging() -> None:
    """
    Configure structured logging with structlog.

    Logs are formatted as JSON for machine parsing with the following structure:
    {
        "event": "case_created",
        "level": "info",
        "timestamp": "2026-01-08T12:00:00.123456Z",
        "logger": "mdrg.services.cases",
        "service": "mdrg-api",
        "version": "1.0.0",
        "request_id": "req-123",
        "client_id": "MDRG...",
        ...additional context
    }
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper()),
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_app_context,
        add_request_defaults,
        redact_credentials,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_level.upper() == "DEBUG":
        processors.append(structlog.processors.ExceptionRenderer())
    else:
        processors.append(structlog.processors.format_exc_info)

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("case_created", client_id=client_id, case_id=case_id)
    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]


class log_context:
    """
    Context manager for adding structured logging context.

    Usage:
        with log_context(request_id="req-123"):
            logger.info("processing_request")
            # All logs within this context will include request_id
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs

    def __enter__(self) -> None:
        """Enter context - bind context variables."""
        structlog.contextvars.bind_contextvars(**self.context)

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit context - clear context variables."""
        structlog.contextvars.unbind_contextvars(*self.context.keys())
