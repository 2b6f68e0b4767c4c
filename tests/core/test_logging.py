"""Unit tests for the structured logging configuration.

Verifies that ``configure_logging()`` emits JSON, that the request and job
id context variables reach every record and that callback credentials are
redacted.
"""

from __future__ import annotations

import json
import logging
from io import StringIO

from slotverse.core.logging_config import (
    _redact_secrets,
    configure_logging,
    job_id_var,
    request_id_var,
)


def _capture(message: str, *args: object) -> list[dict]:
    """Emit one stdlib record at INFO and return the parsed JSON lines."""
    configure_logging("INFO")

    buffer = StringIO()
    root = logging.getLogger()
    original_streams = []
    for handler in root.handlers:
        if hasattr(handler, "stream"):
            original_streams.append((handler, handler.stream))
            handler.stream = buffer

    logging.getLogger("test.logging_config").info(message, *args)

    for handler, stream in original_streams:
        handler.flush()
        handler.stream = stream

    return [json.loads(line) for line in buffer.getvalue().splitlines() if line.strip()]


class TestConfigureLogging:
    def test_stdlib_records_become_json(self) -> None:
        records = _capture("scraper: job %s created", 5)

        target = next(r for r in records if r["event"] == "scraper: job 5 created")
        assert target["level"] == "info"
        assert target["logger"] == "test.logging_config"
        assert "timestamp" in target

    def test_request_id_is_injected(self) -> None:
        token = request_id_var.set("req-123")
        try:
            records = _capture("with_request_id")
        finally:
            request_id_var.reset(token)

        target = next(r for r in records if r["event"] == "with_request_id")
        assert target["request_id"] == "req-123"

    def test_job_id_is_injected(self) -> None:
        token = job_id_var.set(42)
        try:
            records = _capture("scraper: strategy %s failed", "Mobile")
        finally:
            job_id_var.reset(token)

        target = next(r for r in records if r["event"] == "scraper: strategy Mobile failed")
        assert target["job_id"] == 42

    def test_no_request_id_outside_requests(self) -> None:
        records = _capture("without_request_id")

        target = next(r for r in records if r["event"] == "without_request_id")
        assert "request_id" not in target


class TestRedactSecrets:
    def test_token_keys_are_redacted(self) -> None:
        event = _redact_secrets(
            None,
            "info",
            {"event": "x", "callback_token": "abc", "bot_token": "123:xyz", "job_id": 4},
        )

        assert event["callback_token"] == "[REDACTED]"
        assert event["bot_token"] == "[REDACTED]"
        assert event["job_id"] == 4

    def test_nested_headers_are_redacted(self) -> None:
        event = _redact_secrets(
            None,
            "info",
            {"event": "x", "headers": {"Authorization": "Bot abc", "Accept": "*/*"}},
        )

        assert event["headers"]["Authorization"] == "[REDACTED]"
        assert event["headers"]["Accept"] == "*/*"
