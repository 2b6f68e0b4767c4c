"""Celery Beat periodic task schedule.

+---------------------------+---------------------+-----------------------------+
| Task name                 | Schedule            | Purpose                     |
+===========================+=====================+=============================+
| fail_stale_scrape_jobs    | Every 10 minutes    | Fail jobs whose worker died |
|                           |                     | while they were processing. |
+---------------------------+---------------------+-----------------------------+
| cleanup_old_scrape_jobs   | 03:30 UTC           | Delete finished jobs older  |
|                           |                     | than JOB_RETENTION_DAYS.    |
+---------------------------+---------------------+-----------------------------+
"""

from __future__ import annotations

from celery.schedules import crontab

#: Applied to ``celery_app.conf.beat_schedule`` in ``celery_app.py``.
beat_schedule: dict[str, dict] = {  # type: ignore[type-arg]
    "fail_stale_scrape_jobs": {
        "task": "slotverse.workers.maintenance_tasks.fail_stale_scrape_jobs",
        "schedule": crontab(minute="*/10"),
        "options": {"expires": 540},
    },
    "cleanup_old_scrape_jobs": {
        "task": "slotverse.workers.maintenance_tasks.cleanup_old_scrape_jobs",
        "schedule": crontab(hour=3, minute=30),
        "options": {"expires": 3_600},
    },
}
