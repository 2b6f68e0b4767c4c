"""Prometheus metrics for SlotVerse.

All metrics are module-level singletons on the default ``REGISTRY``.  The
API process exposes them at ``GET /metrics``.  The worker process records
into the same names, so scrape them from both processes.

Metrics defined here:

  scrape_jobs_total{status}
      Counter: jobs reaching a terminal state (completed, failed).

  scrape_job_duration_seconds
      Histogram: claim-to-finish wall-clock time of a job.

  strategy_attempts_total{strategy, outcome}
      Counter: one increment per strategy tried.  ``outcome`` is one of
      ``success``, ``fetch_failed`` or ``no_game``.

  notifications_total{platform, outcome}
      Counter: completion messages by platform and ``delivered`` /
      ``failed`` / ``skipped``.

  ingress_requests_total{platform, outcome}
      Counter: scrape submissions by ingress and ``accepted`` / ``rejected`` /
      ``throttled`` / ``error``.

  celery_tasks_total{task_name, status}
      Counter: maintenance task completions by outcome (success, error).

Usage::

    from slotverse.api.metrics import scrape_jobs_total
    scrape_jobs_total.labels(status="completed").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Job pipeline
# ---------------------------------------------------------------------------

scrape_jobs_total: Counter = Counter(
    "scrape_jobs_total",
    "Scrape jobs reaching a terminal state.",
    labelnames=["status"],
)

scrape_job_duration_seconds: Histogram = Histogram(
    "scrape_job_duration_seconds",
    "Wall-clock time from claim to finish of a scrape job.",
    buckets=[1, 5, 15, 30, 60, 120, 180, 300, 600],
)
"""Histogram of job run time.  The top buckets straddle the default 300 s deadline."""

strategy_attempts_total: Counter = Counter(
    "strategy_attempts_total",
    "Fetch strategies tried, by strategy and outcome.",
    labelnames=["strategy", "outcome"],
)

# ---------------------------------------------------------------------------
# Delivery and ingress
# ---------------------------------------------------------------------------

notifications_total: Counter = Counter(
    "notifications_total",
    "Completion messages by platform and delivery outcome.",
    labelnames=["platform", "outcome"],
)
"""Counter of notifier results.  A high ``failed`` rate on ``discord``
usually means interaction tokens expired before jobs finished."""

ingress_requests_total: Counter = Counter(
    "ingress_requests_total",
    "Scrape submissions by ingress platform and outcome.",
    labelnames=["platform", "outcome"],
)

# ---------------------------------------------------------------------------
# Celery
# ---------------------------------------------------------------------------

celery_tasks_total: Counter = Counter(
    "celery_tasks_total",
    "Celery task completions by task name and outcome.",
    labelnames=["task_name", "status"],
)
