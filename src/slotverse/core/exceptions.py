"""Application-wide exception hierarchy for SlotVerse.

All custom exceptions subclass ``SlotVerseError`` so callers can catch the
whole family with one ``except`` clause.

Hierarchy::

    SlotVerseError
    ├── ScrapeValidationError     (rejected at ingress, no job created)
    ├── DispatchError             (job row could not be written)
    ├── RequesterThrottledError   (too many jobs in the last hour)
    ├── JobStateError             (illegal lifecycle transition)
    ├── JobFailure                (recorded on the job, never raised to ingress)
    │   ├── ExhaustedStrategiesError  (attempts: list)
    │   ├── PersistenceError
    │   └── JobTimeoutError           (timeout_seconds: float)
    ├── FetchError                (one strategy attempt, non-fatal)
    └── NotificationError         (platform, status_code; logged only)

``JobFailure`` subclasses carry a short ``kind`` tag that the worker writes
at the start of ``error_message`` (``"timeout: ..."``) and the notifier maps
to a remediation hint.
"""

from __future__ import annotations

from typing import Any


class SlotVerseError(Exception):
    """Base class for all SlotVerse exceptions."""


# ---------------------------------------------------------------------------
# Ingress
# ---------------------------------------------------------------------------


class ScrapeValidationError(SlotVerseError):
    """Raised when a submitted URL is missing or not an absolute http(s) URL.

    Args:
        message: User-facing description of the problem.
        url: The rejected value, if one was supplied.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class DispatchError(SlotVerseError):
    """Raised when a validated request could not be persisted as a job."""


class RequesterThrottledError(SlotVerseError):
    """Raised when a requester has submitted too many jobs in the current window.

    Args:
        requested_by: Identity of the throttled requester.
        limit: Jobs allowed per window.
    """

    def __init__(self, requested_by: str, limit: int) -> None:
        super().__init__(
            f"{requested_by} has reached the limit of {limit} scrape jobs per hour"
        )
        self.requested_by = requested_by
        self.limit = limit


# ---------------------------------------------------------------------------
# Job store
# ---------------------------------------------------------------------------


class JobStateError(SlotVerseError):
    """Raised when a job transition would break the one-way lifecycle.

    Args:
        message: Human-readable description of the rejected transition.
        job_id: Primary key of the job concerned.
    """

    def __init__(self, message: str, job_id: int | None = None) -> None:
        super().__init__(message)
        self.job_id = job_id


# ---------------------------------------------------------------------------
# Job failures, recorded on the job row
# ---------------------------------------------------------------------------


class JobFailure(SlotVerseError):
    """A terminal failure while running a job."""

    kind: str = "internal"

    def as_error_message(self) -> str:
        """Return ``"<kind>: <message>"`` for storage in ``error_message``."""
        return f"{self.kind}: {self}"


class ExhaustedStrategiesError(JobFailure):
    """Raised when every fetch strategy failed or none yielded a game.

    Args:
        message: Summary naming how many strategies were tried.
        attempts: The ``StrategyAttempt`` records, in order.
    """

    kind = "exhausted"

    def __init__(self, message: str, attempts: list[Any] | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts or []


class PersistenceError(JobFailure):
    """Raised when the extracted game could not be saved."""

    kind = "persistence"


class JobTimeoutError(JobFailure):
    """Raised when a job exceeds its hard deadline.

    Args:
        timeout_seconds: The deadline that was exceeded.
    """

    kind = "timeout"

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Job exceeded the {timeout_seconds:g}s deadline")
        self.timeout_seconds = timeout_seconds


# ---------------------------------------------------------------------------
# Fetch and delivery
# ---------------------------------------------------------------------------


class FetchError(SlotVerseError):
    """Raised for a single failed fetch attempt.

    Args:
        message: Description of the failure.
        strategy: Name of the strategy that failed.
        status_code: HTTP status, when a response was received.
    """

    def __init__(
        self,
        message: str,
        strategy: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.strategy = strategy
        self.status_code = status_code


class NotificationError(SlotVerseError):
    """Raised when a completion message could not be delivered.

    Expired Discord interaction tokens surface here as 401/404 responses.

    Args:
        message: Description of the delivery failure.
        platform: ``"discord"`` or ``"telegram"``.
        status_code: HTTP status returned by the platform, if any.
    """

    def __init__(
        self,
        message: str,
        platform: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.platform = platform
        self.status_code = status_code
