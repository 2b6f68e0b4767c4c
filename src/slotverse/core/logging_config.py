"""Structured logging configuration using structlog.

Call ``configure_logging()`` once at process startup: ``api/main.py`` does it
for the HTTP service and ``scraper/worker.py`` for the background worker.
Modules then log through either API:

Stdlib usage::

    import logging
    logger = logging.getLogger(__name__)
    logger.warning("scraper: timeout fetching %s", url)

Structlog usage (keyword context)::

    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("scrape_job_claimed", job_id=job.id, url=job.url)

Two context variables are copied onto every record emitted while they are
set, whichever API produced it: ``request_id_var`` (set by the HTTP
middleware) and ``job_id_var`` (set by the worker for the duration of one
job, so strategy and fetch logs from ``scraper.runner`` carry the job).
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
"""Per-request ID propagated from the HTTP middleware to log processors."""

job_id_var: ContextVar[int | None] = ContextVar("job_id", default=None)
"""ID of the scrape job the current asyncio task is running."""

_CONTEXT_VARS: tuple[tuple[str, ContextVar], ...] = (
    ("request_id", request_id_var),
    ("job_id", job_id_var),
)

_SECRET_SUBSTRINGS: frozenset[str] = frozenset({
    "token",
    "secret",
    "password",
    "api_key",
    "public_key",
    "authorization",
    "signature",
    "webhook_url",
})
"""Lower-cased substrings that identify event-dict keys whose values must be
redacted.  Discord interaction tokens and Telegram bot tokens both match
``token``, so callback credentials never reach a renderer."""

_REDACTED = "[REDACTED]"

#: Libraries whose INFO output drowns the job logs outside DEBUG.
_NOISY_LOGGERS: tuple[str, ...] = ("uvicorn.access", "httpx", "httpcore", "aiosqlite")


def _is_secret(key: object) -> bool:
    lowered = str(key).lower()
    return any(secret in lowered for secret in _SECRET_SUBSTRINGS)


def _redact_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Replace values of secret-bearing keys with a redaction marker.

    Scans top-level keys and one level of nested ``dict`` values (e.g. a
    ``headers={...}`` keyword).
    """
    for key, value in list(event_dict.items()):
        if _is_secret(key):
            event_dict[key] = _REDACTED
        elif isinstance(value, dict):
            for nested_key in list(value):
                if _is_secret(nested_key):
                    value[nested_key] = _REDACTED
    return event_dict


def _inject_context_ids(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Copy set context variables onto the record without overriding explicit keys."""
    for key, var in _CONTEXT_VARS:
        value = var.get()
        if value is not None:
            event_dict.setdefault(key, value)
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        _inject_context_ids,
        _redact_secrets,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog and the stdlib root logger.

    ``DEBUG`` selects the coloured console renderer; every other level emits
    newline-delimited JSON.  Safe to call repeatedly: handlers on the root
    logger are replaced, not appended.

    Args:
        log_level: Logging verbosity, case-insensitive.
    """
    level_name = log_level.upper()
    development = level_name == "DEBUG"
    shared = _shared_processors()

    renderer: Processor = (
        structlog.dev.ConsoleRenderer(colors=True)
        if development
        else structlog.processors.JSONRenderer()
    )

    # stdlib records get the shared chain as a pre-chain; structlog records
    # arrive already processed through wrap_for_formatter.
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    if not development:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
