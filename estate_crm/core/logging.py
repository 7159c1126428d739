"""
core/logging.py
---------------
Structured logging using structlog.
DEBUG=true  → human-readable console output
DEBUG=false → JSON (for CloudWatch and friends)

Request context (path, method, user_id, company_id) is carried in
structlog contextvars and merged into every event. Fields that look like
credentials are masked before rendering.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional

import structlog

from estate_crm.core.config import settings

SENSITIVE_FIELDS = frozenset(
    {"password", "password_hash", "new_password", "token", "secret", "authorization"}
)


def mask_sensitive_fields(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    for key in event_dict.keys() & SENSITIVE_FIELDS:
        event_dict[key] = "***"
    return event_dict


def configure_logging() -> None:
    log_level = logging.DEBUG if settings.DEBUG else logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    # Chatty third-party loggers stay quiet outside DEBUG.
    if not settings.DEBUG:
        for noisy in ("uvicorn.access", "sqlalchemy.engine", "botocore", "boto3"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

    if settings.DEBUG:
        renderers = [structlog.dev.ConsoleRenderer()]
    else:
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            mask_sensitive_fields,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            *renderers,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_request_identity(user_id: str, company_id: Optional[str]) -> None:
    """Attach the caller to every log line emitted for the current request."""
    structlog.contextvars.bind_contextvars(user_id=user_id, company_id=company_id)


def get_logger(name: str = __name__):
    return structlog.get_logger(name)
