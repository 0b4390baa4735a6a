"""
Structured logging for the marketplace backend.

`structlog` renders every event: JSON in production, a coloured console in
development. Standard library logging (Django, the database layer) is routed
through the same stdout handler by the `LOGGING` dict in settings.

Sensitive keys are redacted before rendering. Verification codes are never
passed to a logger in the first place; the redaction is there for anything
that slips through, such as a password field in a request payload.

Usage:
    >>> from config.logging import get_logger
    >>> log = get_logger(__name__)
    >>> log.info("verification_code_issued", subject="a@x.com", purpose="otp_login")
"""

import logging

import structlog
from structlog.types import EventDict, Processor

REDACTED = "***REDACTED***"
SENSITIVE_MARKERS = ("password", "code", "token", "secret", "payload", "otp")
PRESERVED_KEYS = {"event", "level", "logger", "timestamp", "error_code"}


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact values whose key looks like a credential or a code."""
    for key in list(event_dict.keys()):
        if key in PRESERVED_KEYS:
            continue
        if any(marker in key.lower() for marker in SENSITIVE_MARKERS):
            event_dict[key] = REDACTED
    return event_dict


def configure_structlog(log_format: str = "console") -> None:
    """
    Configure structlog processors for the given output format.

    Args:
        log_format: ``"json"`` for production, anything else for the
            development console renderer.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
