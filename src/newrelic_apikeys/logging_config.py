import logging
import os
import sys
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor

REDACTED = "***"
SENSITIVE_KEYS = frozenset({"api_key", "api-key", "API-Key"})


def redact_secrets(_logger: Any, _method_name: str, event_dict: EventDict) -> EventDict:
    """Mask credential values, including inside a logged headers dict."""
    for key in event_dict.keys() & SENSITIVE_KEYS:
        event_dict[key] = REDACTED
    headers = event_dict.get("headers")
    if isinstance(headers, dict):
        event_dict["headers"] = {
            k: (REDACTED if k in SENSITIVE_KEYS else v) for k, v in headers.items()
        }
    return event_dict


def setup_logging(
    verbose: bool = False,
    log_format: Literal["json", "console"] | None = None,
    log_level: str | None = None,
) -> None:
    """Configure structured logging with structlog.

    Logs are written to stderr so that command output on stdout stays
    machine readable.

    Args:
        verbose: Force DEBUG level, which includes raw request/response events.
        log_format: "json" or "console". Falls back to LOG_FORMAT env var or "console".
        log_level: Logging level. Falls back to LOG_LEVEL env var or "WARNING".
    """
    log_format = log_format or os.getenv("LOG_FORMAT", "console")
    log_level = "DEBUG" if verbose else (log_level or os.getenv("LOG_LEVEL", "WARNING"))

    numeric_level = getattr(logging, log_level.upper(), logging.WARNING)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=numeric_level,
        force=True,
    )

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=False),
        structlog.contextvars.merge_contextvars,
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer(sort_keys=False))
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=False,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logger = structlog.get_logger(__name__)
    logger.debug("logging_initialized", log_format=log_format, log_level=log_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    return structlog.get_logger(name)
