"""structlog setup for authgate.

Every log line passes through ``redact_sensitive`` before rendering, so
credentials bound anywhere in an event (including inside nested mappings
such as request headers) never reach the output.
"""

import logging
import sys
from typing import Any, Mapping

import structlog

SENSITIVE_KEYS = (
    "password",
    "token",
    "secret",
    "authorization",
)
REDACTED = "REDACTED"


def _is_sensitive(key: Any) -> bool:
    key_lower = str(key).lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)


def _scrub(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: REDACTED if _is_sensitive(k) else _scrub(v) for k, v in value.items()}
    return value


def redact_sensitive(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Mask values whose key mentions a password, token, secret or auth header."""
    for key in list(event_dict.keys()):
        if key == "event":
            continue
        if _is_sensitive(key):
            event_dict[key] = REDACTED
        else:
            event_dict[key] = _scrub(event_dict[key])
    return event_dict


def configure_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Route structlog to stdout.

    Args:
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR)
        json_logs: One JSON object per line; False renders for a terminal
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a logger, bound to ``logger_name`` when a name is given."""
    logger = structlog.get_logger()
    return logger.bind(logger_name=name) if name else logger
