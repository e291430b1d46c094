"""Structured logging configuration with redaction support."""

import logging
import sys
from typing import Any, Dict, Optional

import structlog

# Substrings of event keys whose values never reach the logs
SENSITIVE_KEYS = (
    "api_key",
    "authorization",
    "secret",
    "password",
    "postgres_url",
    "dsn",
)


def redact_sensitive(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Redact sensitive information from log entries.

    Redacts:
    - api_key fields (including llm_api_key)
    - Authorization headers
    - Any field containing 'secret' or 'password'
    - Database connection strings
    """
    for key in list(event_dict.keys()):
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in SENSITIVE_KEYS):
            event_dict[key] = "REDACTED"

    return event_dict


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog for JSON output with correlation ID support.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_sensitive,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance.

    Args:
        name: Optional logger name for context

    Returns:
        Configured structlog logger
    """
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger_name=name)
    return logger


def bind_analysis_context(
    session_id: Optional[str] = None,
    call_id: Optional[str] = None,
) -> None:
    """Attach session and call ids to every log line of the current request."""
    context = {}
    if session_id:
        context["session_id"] = session_id
    if call_id:
        context["call_id"] = call_id
    if context:
        structlog.contextvars.bind_contextvars(**context)


def log_analysis_complete(
    logger: Any,
    turn_count: int,
    overall_score: int,
    risk_level: str,
    degraded: bool,
    persisted: bool,
    duration_ms: int,
) -> None:
    """Log the summary event for one analysis. Never logs transcript text."""
    logger.info(
        "analysis_complete",
        turn_count=turn_count,
        overall_score=overall_score,
        risk_level=risk_level,
        degraded=degraded,
        persisted=persisted,
        duration_ms=duration_ms,
    )
